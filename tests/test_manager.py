"""Debate manager state machine"""

import asyncio

import pytest

from debate_core import (
    DebateAlreadyRunningError,
    DebateEvent,
    DebateManager,
    DebateMessage,
    DebateState,
    DebateValidationError,
    EventBus,
    EventKind,
    InvalidStateError,
    LiveProgress,
)
from debate_core.manager import JUDGING_INTERRUPTED
from llm_client import TransportError

from conftest import make_config


def _collect(bus: EventBus) -> list:
    events = []
    bus.subscribe(events.append)
    return events


@pytest.mark.asyncio
async def test_single_round_debate_runs_to_completion(factory):
    bus = EventBus()
    events = _collect(bus)
    manager = DebateManager.create("Remote work", "Post-pandemic offices", make_config(1), factory, bus)

    manager.start()
    await manager.wait()

    state = manager.get_state()
    assert state.status == "completed"
    assert [m.side for m in state.messages] == ["pro", "con"]
    assert len(state.judges) == 6
    assert state.final_scores.pro == pytest.approx(75.0)
    assert state.final_scores.con == pytest.approx(70.0)
    assert state.winner == "pro"
    assert state.error_message is None

    assert events[-1].kind == EventKind.JUDGING_COMPLETED
    assert events[-1].state.status == "completed"
    kinds = {event.kind for event in events}
    assert {EventKind.TURN_STARTED, EventKind.TURN_STREAMED, EventKind.JUDGE_PROGRESS} <= kinds
    [winner_step] = [
        e.progress.scoring for e in events
        if e.progress.scoring is not None and e.progress.scoring.phase == "showing_winner"
    ]
    assert winner_step.highlighted_score.side == "pro"
    assert winner_step.highlighted_score.score == pytest.approx(75.0)


@pytest.mark.asyncio
async def test_turns_alternate_over_rounds(factory):
    manager = DebateManager.create("Remote work", "", make_config(3), factory)

    manager.start()
    await manager.wait()

    state = manager.get_state()
    assert [m.side for m in state.messages] == ["pro", "con"] * 3
    assert state.messages[0].message == "pro argument 1"
    assert state.messages[5].message == "con argument 3"
    progress = manager.get_progress()
    assert progress.current_round == 3
    assert progress.percentage == 100.0


@pytest.mark.asyncio
async def test_later_turns_see_earlier_messages(factory):
    manager = DebateManager.create("Remote work", "", make_config(2), factory)

    manager.start()
    await manager.wait()

    con_prompts = [call["prompt"] for call in factory.client("con-key").calls]
    assert "Round 1 Pro: pro argument 1" in con_prompts[0]
    assert "Round 1 Con: con argument 1" in con_prompts[1]


@pytest.mark.asyncio
async def test_streaming_progress_is_not_durable(factory):
    bus = EventBus()
    events = _collect(bus)
    manager = DebateManager.create("Remote work", "", make_config(1), factory, bus)

    manager.start()
    await manager.wait()

    streamed = [e for e in events if e.kind == EventKind.TURN_STREAMED]
    assert streamed
    assert all(e.state is None for e in streamed)
    assert streamed[0].progress.streaming_side == "pro"
    assert streamed[0].progress.streaming_text == "pro arg"
    assert not streamed[0].progress.is_thinking


@pytest.mark.asyncio
async def test_progress_while_thinking(factory):
    gate = asyncio.Event()
    factory.client("pro-key").gate = gate
    manager = DebateManager.create("Remote work", "", make_config(2), factory)

    manager.start()
    await asyncio.sleep(0)

    progress = manager.get_progress()
    assert manager.get_state().status == "in_progress"
    assert progress.is_thinking
    assert progress.current_speaker == "pro"
    assert progress.current_round == 1
    assert progress.total_rounds == 2
    assert progress.percentage == 0

    gate.set()
    await manager.wait()
    assert manager.get_state().status == "completed"


@pytest.mark.asyncio
async def test_agent_failure_moves_debate_to_error(factory):
    factory.client("con-key").error = TransportError("Groq API error: 503 overloaded", status_code=503)
    manager = DebateManager.create("Remote work", "", make_config(2), factory)

    manager.start()
    await manager.wait()

    state = manager.get_state()
    assert state.status == "error"
    assert state.error_message == "Groq API error: 503 overloaded"
    assert [m.side for m in state.messages] == ["pro"]
    assert state.judges == []
    assert manager.get_progress().current_speaker is None


@pytest.mark.asyncio
async def test_failing_judges_still_give_full_panel_and_tie(factory):
    bus = EventBus()
    events = _collect(bus)
    for i in range(6):
        factory.client(f"judge-{i}").error = TransportError("Groq API error: 502", status_code=502)
    manager = DebateManager.create("Remote work", "", make_config(1), factory, bus)

    manager.start()
    await manager.wait()

    state = manager.get_state()
    assert state.status == "completed"
    assert len(state.judges) == 6
    assert all(judge.degraded for judge in state.judges)
    assert state.final_scores.pro == state.final_scores.con == 75.0
    assert state.winner is None

    winner_steps = [
        e.progress.scoring for e in events
        if e.progress.scoring is not None and e.progress.scoring.phase == "showing_winner"
    ]
    assert winner_steps and all(step.highlighted_score is None for step in winner_steps)


@pytest.mark.asyncio
async def test_start_twice_is_rejected(factory):
    gate = asyncio.Event()
    factory.client("pro-key").gate = gate
    manager = DebateManager.create("Remote work", "", make_config(1), factory)

    manager.start()
    with pytest.raises(DebateAlreadyRunningError):
        manager.start()

    gate.set()
    await manager.wait()
    with pytest.raises(InvalidStateError):
        manager.start()


def test_create_rejects_invalid_input(factory):
    config = make_config(0)
    config.judge_configs.pop()
    with pytest.raises(DebateValidationError) as excinfo:
        DebateManager.create("Remote work", "", config, factory)
    assert len(excinfo.value.problems) == 2

    with pytest.raises(DebateValidationError):
        DebateManager.create("   ", "", make_config(1), factory)


def _persisted(status: str, sides: list[str], max_rounds: int = 2) -> DebateState:
    state = DebateState.new("Remote work", "", make_config(max_rounds))
    state.status = status
    state.messages = [DebateMessage(side=side, message=f"earlier {side}") for side in sides]
    return state


@pytest.mark.asyncio
async def test_restore_mid_round_does_not_replay_turns(factory):
    state = _persisted("in_progress", ["pro", "con", "pro"])
    manager = DebateManager(state, factory)

    manager.restore_state(state)
    assert manager.is_running
    await manager.wait()

    final = manager.get_state()
    assert final.status == "completed"
    assert [m.side for m in final.messages] == ["pro", "con", "pro", "con"]
    assert final.messages[2].message == "earlier pro"
    assert factory.client("pro-key").calls == []
    assert len(factory.client("con-key").calls) == 1


@pytest.mark.asyncio
async def test_restore_while_judging_ends_in_error(factory):
    state = _persisted("judging", ["pro", "con", "pro", "con"])
    manager = DebateManager(state, factory)

    manager.restore_state(state)

    assert not manager.is_running
    assert manager.state.status == "error"
    assert manager.state.error_message == JUDGING_INTERRUPTED
    assert all(factory.client(f"judge-{i}").calls == [] for i in range(6))


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["pending", "completed", "error"])
async def test_restore_does_not_resume_other_statuses(factory, status):
    state = _persisted(status, ["pro", "con"])
    manager = DebateManager(state, factory)

    manager.restore_state(state)

    assert not manager.is_running
    assert manager.state.status == status


@pytest.mark.asyncio
async def test_restore_in_progress_with_error_message_is_not_resumed(factory):
    state = _persisted("in_progress", ["pro"])
    state.error_message = "boom"
    manager = DebateManager(state, factory)

    manager.restore_state(state)

    assert not manager.is_running


@pytest.mark.asyncio
async def test_stop_keeps_durable_status(factory):
    gate = asyncio.Event()
    factory.client("pro-key").gate = gate
    manager = DebateManager.create("Remote work", "", make_config(1), factory)

    manager.start()
    await asyncio.sleep(0)
    await manager.stop()

    assert not manager.is_running
    assert manager.get_state().status == "in_progress"


def test_event_bus_survives_failing_subscriber():
    bus = EventBus()
    received = []

    def broken(event):
        raise RuntimeError("subscriber bug")

    bus.subscribe(broken)
    unsubscribe = bus.subscribe(received.append)
    event = DebateEvent(kind=EventKind.ERROR, debate_id="d1", progress=LiveProgress())
    bus.publish(event)
    unsubscribe()
    bus.publish(event)

    assert received == [event]
    assert len(bus) == 1
