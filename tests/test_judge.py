"""Judges and debate agents against scripted clients"""

import pytest

from debate_core.agents import DebateAgent
from debate_core.judge import Judge
from debate_core.types import DebateMessage
from llm_client import APIKeyError, TransportError

from conftest import JUDGE_TEXT, FakeClient

MESSAGES = [
    DebateMessage(side="pro", message="Remote work boosts output."),
    DebateMessage(side="con", message="It erodes collaboration."),
]


@pytest.mark.asyncio
async def test_judge_scores_debate():
    client = FakeClient([JUDGE_TEXT])
    judge = Judge("Judge A", client)

    result = await judge.evaluate("Remote work", "", MESSAGES)

    assert result.name == "Judge A"
    assert result.score["pro"] == pytest.approx(75.0)
    assert result.recommended_winner.side == "pro"
    assert "Round 1 Pro: Remote work boosts output." in client.calls[0]["prompt"]
    assert client.calls[0]["role"] == "judge"


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [TransportError("Groq API error: 503", status_code=503), APIKeyError()])
async def test_judge_failure_degrades_to_defaults(error):
    judge = Judge("Judge B", FakeClient(error=error))

    result = await judge.evaluate("Remote work", "", MESSAGES)

    assert result.degraded
    assert result.score == {"pro": 75.0, "con": 75.0}
    for side in ("pro", "con"):
        assert result.detailed_scores[side].logic == 75.0
        assert "could not score" in result.score_reasons[side].expression
    assert result.recommended_winner is None


@pytest.mark.asyncio
async def test_judge_unreadable_answer_degrades_to_defaults():
    judge = Judge("Judge C", FakeClient(["Both were fine, I guess."]))

    result = await judge.evaluate("Remote work", "", MESSAGES)

    assert not result.degraded
    assert result.confidence == 0.0
    assert result.score == {"pro": 75.0, "con": 75.0}


@pytest.mark.asyncio
async def test_agent_sends_transcript_and_keeps_conversation():
    client = FakeClient(["  My rebuttal.  "])
    agent = DebateAgent("con", client)
    partials = []

    text = await agent.generate_response("Remote work", "Post-pandemic offices", MESSAGES[:1], partials.append)

    assert text == "My rebuttal."
    assert partials[-1] == "  My rebuttal.  "
    prompt = client.calls[0]["prompt"]
    assert "oppose and refute" in prompt
    assert "Post-pandemic offices" in prompt
    assert "Round 1 Pro: Remote work boosts output." in prompt
    assert agent.conversation_id == "conv-con"

    await agent.generate_response("Remote work", "", MESSAGES, None)
    assert client.calls[1]["conversation_id"] == "conv-con"


@pytest.mark.asyncio
async def test_agent_propagates_errors():
    agent = DebateAgent("pro", FakeClient(error=APIKeyError()))
    with pytest.raises(APIKeyError):
        await agent.generate_response("Remote work", "", [], None)
