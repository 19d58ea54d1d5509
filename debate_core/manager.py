"""Debate manager: the per-session state machine

pending -> in_progress -> judging -> completed, with error reachable from
in_progress and judging. The round loop runs as a background asyncio task;
every durable mutation is published on the event bus together with a copy of
the state, so observers (the store, live status readers) never touch the
manager's own objects.
"""

import asyncio
import copy
import logging
from typing import Optional

from llm_client import ClientFactory

from .agents import DebateAgent
from .config import JUDGE_PANEL_SIZE, SCORE_CATEGORIES, SCORE_REVEAL_DELAY
from .events import DebateEvent, EventBus, EventKind
from .exceptions import DebateAlreadyRunningError, DebateValidationError, InvalidStateError
from .judge import Judge
from .scoring import aggregate, decide_winner
from .types import (
    SIDES,
    DebateConfig,
    DebateMessage,
    DebateState,
    HighlightedScore,
    JudgeResult,
    LiveProgress,
    ScoringProgress,
    Side,
)

logger = logging.getLogger(__name__)

JUDGING_INTERRUPTED = "Judging was interrupted by a restart; create the debate again to get a verdict"


class DebateManager:
    """Drives one debate from its first turn to the panel's verdict"""

    def __init__(
        self,
        state: DebateState,
        client_factory: ClientFactory,
        events: Optional[EventBus] = None,
        reveal_delay: float = SCORE_REVEAL_DELAY,
    ):
        self.state = state
        self.client_factory = client_factory
        self.events = events or EventBus()
        self.reveal_delay = reveal_delay
        self.current_round = state.completed_rounds
        self.progress = LiveProgress()
        self._task: Optional[asyncio.Task] = None
        self._initialize_agents(state.config)

    @classmethod
    def create(
        cls,
        topic: str,
        background: str,
        config: DebateConfig,
        client_factory: ClientFactory,
        events: Optional[EventBus] = None,
        reveal_delay: float = SCORE_REVEAL_DELAY,
    ) -> "DebateManager":
        """Validate the configuration and build a manager for a new debate

        Raises:
            DebateValidationError: If the topic or configuration is invalid
        """
        if not topic.strip():
            raise DebateValidationError(["topic must not be empty"])
        config.validate()
        return cls(DebateState.new(topic, background, config), client_factory, events, reveal_delay)

    def _initialize_agents(self, config: DebateConfig) -> None:
        if len(config.judge_configs) != JUDGE_PANEL_SIZE:
            raise DebateValidationError(
                [f"exactly {JUDGE_PANEL_SIZE} judges are required, got {len(config.judge_configs)}"]
            )
        self.pro_agent = DebateAgent("pro", self.client_factory(config.pro_config.api_key))
        self.con_agent = DebateAgent("con", self.client_factory(config.con_config.api_key))
        self.judges = [
            Judge(judge_config.name, self.client_factory(judge_config.api_key))
            for judge_config in config.judge_configs
        ]

    @property
    def id(self) -> str:
        return self.state.id

    @property
    def max_rounds(self) -> int:
        return self.state.config.max_rounds

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def get_state(self) -> DebateState:
        """Consistent copy of the durable state"""
        return copy.deepcopy(self.state)

    def get_progress(self) -> LiveProgress:
        """Consistent copy of the live progress"""
        progress = copy.deepcopy(self.progress)
        progress.current_round = min(self.current_round + 1, self.max_rounds)
        progress.total_rounds = self.max_rounds
        progress.percentage = min(100.0, self.current_round / self.max_rounds * 100)
        return progress

    def _emit(self, kind: EventKind, state_changed: bool = False) -> None:
        self.events.publish(DebateEvent(
            kind=kind,
            debate_id=self.id,
            progress=self.get_progress(),
            state=self.get_state() if state_changed else None,
        ))

    def _reset_turn_progress(self) -> None:
        self.progress.is_thinking = False
        self.progress.streaming_text = ""
        self.progress.streaming_side = None
        self.progress.current_speaker = None

    def start(self) -> None:
        """Begin the debate in the background and return immediately

        Failures of the loop show up as the error status, not here.

        Raises:
            DebateAlreadyRunningError: If the round loop is already active
            InvalidStateError: If the debate is not pending
        """
        if self.is_running:
            raise DebateAlreadyRunningError()
        if self.state.status != "pending":
            raise InvalidStateError(f"Cannot start a debate in status {self.state.status}")

        logger.info(f"Starting debate {self.id}")
        self.state.status = "in_progress"
        self.state.touch()
        self._emit(EventKind.PHASE_CHANGED, state_changed=True)
        self._task = asyncio.create_task(self._run_loop(), name=f"debate-{self.id}")

    async def wait(self) -> None:
        """Wait for the background loop, if any, to finish"""
        if self._task is not None:
            await asyncio.wait({self._task})

    async def stop(self) -> None:
        """Cancel the background loop without touching the durable state

        Used on shutdown: an in_progress debate stays in_progress on disk and
        is resumed by the next process.
        """
        if self.is_running:
            self._task.cancel()
            await asyncio.wait({self._task})

    async def _run_turn(self, side: Side) -> None:
        agent = self.pro_agent if side == "pro" else self.con_agent
        logger.info(f"Waiting for {side} side response...")

        self.progress.is_thinking = True
        self.progress.current_speaker = side
        self.progress.streaming_side = side
        self.progress.streaming_text = ""
        self._emit(EventKind.TURN_STARTED)

        def on_partial(text: str) -> None:
            self.progress.is_thinking = False
            self.progress.streaming_text = text
            self._emit(EventKind.TURN_STREAMED)

        text = await agent.generate_response(
            self.state.topic,
            self.state.background,
            list(self.state.messages),
            on_partial,
        )

        self.state.messages.append(DebateMessage(side=side, message=text))
        self.state.touch()
        self._reset_turn_progress()
        self._emit(EventKind.TURN_COMPLETED, state_changed=True)
        logger.info(f"{side.capitalize()} side responded")

    async def run_round(self) -> None:
        """Pro speaks, then con

        A side that already spoke in this round (a debate resumed mid-round)
        is not asked again.
        """
        logger.info(f"Running round {self.current_round + 1} of {self.max_rounds} for {self.id}")
        for side in SIDES[len(self.state.messages) % 2:]:
            await self._run_turn(side)

    async def _run_loop(self) -> None:
        try:
            while self.current_round < self.max_rounds:
                await self.run_round()
                self.current_round += 1

            logger.info(f"All rounds of {self.id} completed, starting judging")
            await self.run_judging()
            logger.info(f"Debate {self.id} completed, winner: {self.state.winner or 'tie'}")
        except Exception as e:
            logger.exception(f"Error in debate {self.id}")
            self.set_error_status(str(e) or type(e).__name__)

    def _update_scoring(self, phase: str, **fields) -> None:
        self.progress.scoring = ScoringProgress(phase=phase, total_judges=len(self.judges), **fields)
        self._emit(EventKind.JUDGE_PROGRESS)

    async def _pause(self) -> None:
        if self.reveal_delay > 0:
            await asyncio.sleep(self.reveal_delay)

    async def _collect_verdicts(self) -> list[JudgeResult]:
        total = len(self.judges)
        results = []
        for i, judge in enumerate(self.judges):
            self._update_scoring(
                "judge_thinking",
                current_judge=i + 1,
                reveal_progress=i / total * 100,
            )
            result = await judge.evaluate(self.state.topic, self.state.background, list(self.state.messages))
            results.append(result)

            for side in SIDES:
                self._update_scoring(
                    "revealing_scores",
                    current_judge=i + 1,
                    reveal_progress=(i + 1) / total * 100,
                    highlighted_score=HighlightedScore(side=side, score=result.score[side]),
                )
                await self._pause()
        return results

    async def run_judging(self) -> None:
        """Consult every judge in order, aggregate, and complete the debate

        Judges never raise, so this always ends with a full panel.
        """
        self.state.status = "judging"
        self.state.touch()
        self._reset_turn_progress()
        self._emit(EventKind.PHASE_CHANGED, state_changed=True)

        results = await self._collect_verdicts()
        final = aggregate(results)

        for i, category in enumerate(SCORE_CATEGORIES):
            for side in SIDES:
                self._update_scoring(
                    "calculating_final",
                    current_category=category,
                    reveal_progress=(i + 1) / len(SCORE_CATEGORIES) * 100,
                    highlighted_score=HighlightedScore(
                        side=side, category=category, score=final.details[side].get(category)
                    ),
                )
                await self._pause()

        for side in SIDES:
            self._update_scoring(
                "calculating_final",
                reveal_progress=100.0,
                highlighted_score=HighlightedScore(side=side, score=final.total(side)),
                eliminated_scores=final.eliminated_scores[side],
            )
            await self._pause()

        winner = decide_winner(final)
        self._update_scoring(
            "showing_winner",
            reveal_progress=100.0,
            highlighted_score=HighlightedScore(side=winner, score=final.total(winner)) if winner else None,
        )
        await self._pause()

        self.state.judges = results
        self.state.final_scores = final
        self.state.winner = winner
        self.state.status = "completed"
        self.state.touch()
        self.progress.scoring = ScoringProgress(
            phase="completed",
            current_judge=len(self.judges),
            total_judges=len(self.judges),
            reveal_progress=100.0,
        )
        self._emit(EventKind.JUDGING_COMPLETED, state_changed=True)

    def set_error_status(self, message: str) -> None:
        """Halt the debate for good with the given message"""
        self.state.status = "error"
        self.state.error_message = message
        self.state.touch()
        self._reset_turn_progress()
        self._emit(EventKind.ERROR, state_changed=True)

    def restore_state(self, state: DebateState) -> None:
        """Adopt a persisted state and resume it if it was mid-debate

        Only an in_progress debate without an error is resumed, from round
        len(messages) // 2. A debate interrupted while judging is moved to
        error instead of consulting the panel a second time.
        """
        self.state = state
        self.current_round = state.completed_rounds
        self.progress = LiveProgress()
        self._initialize_agents(state.config)
        self._emit(EventKind.RESTORED)

        if state.status == "judging":
            logger.warning(f"Debate {self.id} was judging when the process stopped")
            self.set_error_status(JUDGING_INTERRUPTED)
            return

        if state.status == "in_progress" and not state.error_message and not self.is_running:
            logger.info(f"Resuming debate {self.id} at round {self.current_round + 1}")
            self._task = asyncio.create_task(self._run_loop(), name=f"debate-{self.id}")
