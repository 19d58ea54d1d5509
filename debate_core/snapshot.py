"""Persisted snapshot format and its structural validation"""

import json
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .config import JUDGE_PANEL_SIZE, MAX_ROUNDS, MIN_ROUNDS
from .exceptions import DebateValidationError, SnapshotValidationError
from .types import DebateState, DebateStatus, Side, side_for_index


class MessageSchema(BaseModel):
    side: Side
    message: str
    timestamp: datetime


class ParticipantSchema(BaseModel):
    api_key: str = Field(min_length=1)


class JudgeConfigSchema(BaseModel):
    api_key: str = Field(min_length=1)
    name: str = Field(min_length=1)


class ConfigSchema(BaseModel):
    pro_config: ParticipantSchema
    con_config: ParticipantSchema
    judge_configs: list[JudgeConfigSchema]
    max_rounds: int = Field(ge=MIN_ROUNDS, le=MAX_ROUNDS)

    @field_validator("judge_configs")
    @classmethod
    def check_panel_size(cls, value: list[JudgeConfigSchema]) -> list[JudgeConfigSchema]:
        if len(value) != JUDGE_PANEL_SIZE:
            raise ValueError(f"expected {JUDGE_PANEL_SIZE} judge configs, got {len(value)}")
        return value


class SidePairSchema(BaseModel):
    pro: float
    con: float


class CategoryScoresSchema(BaseModel):
    logic: float = Field(ge=0, le=100)
    evidence: float = Field(ge=0, le=100)
    rebuttal: float = Field(ge=0, le=100)
    expression: float = Field(ge=0, le=100)


class JudgeSchema(BaseModel):
    name: str
    score: SidePairSchema
    detailed_scores: dict[Side, CategoryScoresSchema]
    score_reasons: dict[Side, dict[str, str]]
    comment: str
    overall_comment: str
    highlights: dict[str, list[str]]


class SnapshotSchema(BaseModel):
    """Required shape of a persisted debate"""
    id: str
    topic: str
    background: str = ""
    status: DebateStatus
    messages: list[MessageSchema]
    judges: list[JudgeSchema]
    winner: Optional[Side] = None
    final_scores: Optional[dict[str, Any]] = None
    error_message: Optional[str] = None
    config: ConfigSchema
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="after")
    def check_invariants(self) -> "SnapshotSchema":
        if len(self.judges) not in (0, JUDGE_PANEL_SIZE):
            raise ValueError(f"expected 0 or {JUDGE_PANEL_SIZE} judge results, got {len(self.judges)}")
        if self.status == "completed" and len(self.judges) != JUDGE_PANEL_SIZE:
            raise ValueError("completed debate without a full panel of results")
        if len(self.messages) > 2 * self.config.max_rounds:
            raise ValueError(
                f"{len(self.messages)} messages exceed {self.config.max_rounds} rounds"
            )
        for i, message in enumerate(self.messages):
            expected = side_for_index(i)
            if message.side != expected:
                raise ValueError(f"message {i} is from {message.side}, expected {expected}")
        return self


def dump_snapshot(state: DebateState) -> str:
    """Serialize a state; equal states always give identical text"""
    return json.dumps(state.to_dict(), indent=2, sort_keys=True, ensure_ascii=False)


def load_snapshot(text: str, expected_id: Optional[str] = None) -> DebateState:
    """Parse and validate a persisted snapshot

    Raises:
        SnapshotValidationError: With a human readable reason
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotValidationError(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise SnapshotValidationError("snapshot is not a JSON object")

    try:
        schema = SnapshotSchema.model_validate(data)
    except ValidationError as e:
        raise SnapshotValidationError(f"invalid snapshot: {e}") from e

    if expected_id is not None and schema.id != expected_id:
        raise SnapshotValidationError(f"snapshot id {schema.id} does not match {expected_id}")

    try:
        state = DebateState.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise SnapshotValidationError(f"cannot rebuild debate state: {e!r}") from e

    try:
        state.config.validate()
    except DebateValidationError as e:
        raise SnapshotValidationError(f"invalid debate config: {e}") from e
    return state
