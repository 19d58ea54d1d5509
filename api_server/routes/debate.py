"""Debate API endpoints"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from debate_core import (
    DebateConfig,
    DebateNotFoundError,
    DebateStore,
    DebateValidationError,
    JudgeConfig,
    ParticipantConfig,
    StoreError,
)
from debate_core.config import JUDGE_PANEL_SIZE, MAX_ROUNDS, MIN_ROUNDS
from api_server.middleware.rate_limit import limiter, get_rate_limit_string

logger = logging.getLogger("api_server")

router = APIRouter(prefix="/debate", tags=["debate"])


def get_store(request: Request) -> DebateStore:
    """The store owned by the running app"""
    return request.app.state.store


# Request/Response models
class ParticipantInput(BaseModel):
    """Credential for one debater"""
    api_key: str = Field(..., min_length=1)


class JudgeInput(BaseModel):
    """Credential and display name for one judge"""
    api_key: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=50)


class StartRequest(BaseModel):
    """Request to start a debate"""
    topic: str = Field(..., min_length=1, max_length=500)
    background: str = Field(default="", max_length=5000)
    pro_config: ParticipantInput
    con_config: ParticipantInput
    judge_configs: list[JudgeInput] = Field(..., min_length=JUDGE_PANEL_SIZE, max_length=JUDGE_PANEL_SIZE)
    max_rounds: int = Field(default=3, ge=MIN_ROUNDS, le=MAX_ROUNDS)

    def to_config(self) -> DebateConfig:
        return DebateConfig(
            pro_config=ParticipantConfig(api_key=self.pro_config.api_key),
            con_config=ParticipantConfig(api_key=self.con_config.api_key),
            judge_configs=[JudgeConfig(api_key=j.api_key, name=j.name) for j in self.judge_configs],
            max_rounds=self.max_rounds,
        )


class StartResponse(BaseModel):
    """Response when starting a debate"""
    id: str
    topic: str
    background: str
    status: str


class StatusResponse(BaseModel):
    """Durable state plus live progress of a debate"""
    id: str
    topic: str
    background: str
    status: str
    messages: list[dict]
    judges: list[dict]
    winner: Optional[str]
    final_scores: Optional[dict]
    error_message: Optional[str]
    current_round: int
    total_rounds: int
    percentage: float
    current_speaker: Optional[str]
    is_thinking: bool
    streaming_text: str
    streaming_side: Optional[str]
    scoring: Optional[dict]
    persistence_error: Optional[str]
    created_at: str
    updated_at: str


class CleanupResponse(BaseModel):
    evicted: list[str]


@router.post("", response_model=StartResponse, status_code=201)
@limiter.limit(get_rate_limit_string())
async def start_debate(
    request: Request,
    body: StartRequest,
    store: DebateStore = Depends(get_store),
):
    """Start a new debate

    The debate runs in the background; poll GET /debate/{id} for progress.
    """
    try:
        debate_id = await store.create_debate(body.topic, body.background, body.to_config())
        debate = await store.get_debate(debate_id)
    except DebateValidationError as e:
        raise HTTPException(status_code=422, detail=e.problems)
    except StoreError as e:
        logger.error(f"Failed to start debate: {e}")
        raise HTTPException(status_code=500, detail="Failed to start debate")

    return StartResponse(
        id=debate_id,
        topic=body.topic,
        background=body.background,
        status=debate.get_state().status,
    )


@router.get("/{debate_id}", response_model=StatusResponse)
async def get_debate_status(debate_id: str, store: DebateStore = Depends(get_store)):
    """Current status, transcript, verdicts and live progress of a debate"""
    try:
        debate = await store.get_debate(debate_id)
    except DebateNotFoundError:
        raise HTTPException(status_code=404, detail="Debate not found")
    except StoreError as e:
        logger.error(f"Failed to load debate {debate_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to get debate status")

    state = debate.get_state().to_dict()
    progress = debate.get_progress().to_dict()

    return StatusResponse(
        id=state["id"],
        topic=state["topic"],
        background=state["background"],
        status=state["status"],
        messages=state["messages"],
        judges=state["judges"],
        winner=state["winner"],
        final_scores=state["final_scores"],
        error_message=state["error_message"],
        current_round=progress["current_round"],
        total_rounds=progress["total_rounds"],
        percentage=progress["percentage"],
        current_speaker=progress["current_speaker"],
        is_thinking=progress["is_thinking"],
        streaming_text=progress["streaming_text"],
        streaming_side=progress["streaming_side"],
        scoring=progress["scoring"] if state["status"] == "judging" else None,
        persistence_error=store.persist_error(debate_id),
        created_at=state["created_at"],
        updated_at=state["updated_at"],
    )


@router.post("/cleanup", response_model=CleanupResponse)
async def cleanup_debates(store: DebateStore = Depends(get_store)):
    """Evict finished debates from memory and archive their snapshots"""
    return CleanupResponse(evicted=await store.cleanup())
