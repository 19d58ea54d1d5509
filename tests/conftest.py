"""Shared fixtures: scripted text generators and debate configs"""

import asyncio
from typing import Optional

import pytest

from debate_core import DebateConfig, DebateStore, JudgeConfig, MemoryStorageBackend, ParticipantConfig
from llm_client import GenerationResult, PartialCallback

JUDGE_TEXT = """PRO SCORES:
Logic: 80 - clear structure
Evidence: 70 - thin sources
Rebuttal: 60 - missed the key point
Expression: 90 - vivid language

CON SCORES:
Logic: 70 - consistent
Evidence: 70 - adequate
Rebuttal: 70 - on target
Expression: 70 - plain

STRENGTHS:
- Pro opened strongly
- Con stayed focused

WEAKNESSES:
- Few statistics on either side

SUGGESTIONS:
- Cite concrete sources

OVERALL:
A close debate decided by structure.

WINNER: Pro - better structure
"""


class FakeClient:
    """Scripted TextGenerator

    Returns the queued responses in order (repeating the last one), streams
    each in two halves, and raises `error` when set.
    """

    def __init__(self, responses: Optional[list[str]] = None, error: Optional[Exception] = None):
        self.responses = list(responses or [])
        self.error = error
        self.calls: list[dict] = []
        self.gate: Optional[asyncio.Event] = None

    async def generate(
        self,
        prompt: str,
        role: str,
        conversation_id: Optional[str] = None,
        on_partial: Optional[PartialCallback] = None,
    ) -> GenerationResult:
        self.calls.append({"prompt": prompt, "role": role, "conversation_id": conversation_id})
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error

        if self.responses:
            text = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        else:
            text = f"{role} argument {len(self.calls)}"

        if on_partial is not None:
            half = len(text) // 2
            on_partial(text[:half])
            await asyncio.sleep(0)
            on_partial(text)
        return GenerationResult(text=text, conversation_id=f"conv-{role}")


class FakeFactory:
    """ClientFactory handing out one FakeClient per credential"""

    def __init__(self):
        self.clients: dict[str, FakeClient] = {}

    def client(self, api_key: str) -> FakeClient:
        if api_key not in self.clients:
            responses = [JUDGE_TEXT] if api_key.startswith("judge") else None
            self.clients[api_key] = FakeClient(responses)
        return self.clients[api_key]

    def __call__(self, api_key: str) -> FakeClient:
        return self.client(api_key)


def make_config(max_rounds: int = 1) -> DebateConfig:
    return DebateConfig(
        pro_config=ParticipantConfig(api_key="pro-key"),
        con_config=ParticipantConfig(api_key="con-key"),
        judge_configs=[JudgeConfig(api_key=f"judge-{i}", name=f"Judge {i}") for i in range(6)],
        max_rounds=max_rounds,
    )


@pytest.fixture
def factory() -> FakeFactory:
    return FakeFactory()


@pytest.fixture
def config() -> DebateConfig:
    return make_config()


@pytest.fixture
def backend() -> MemoryStorageBackend:
    return MemoryStorageBackend()


@pytest.fixture
def store(backend, factory) -> DebateStore:
    return DebateStore(backend, factory, persist_base_delay=0)
