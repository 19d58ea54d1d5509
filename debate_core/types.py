"""Data classes for AI debate"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Optional
import uuid

from .config import JUDGE_PANEL_SIZE, MAX_ROUNDS, MIN_ROUNDS, SCORE_CATEGORIES
from .exceptions import DebateValidationError

Side = Literal["pro", "con"]
DebateStatus = Literal["pending", "in_progress", "judging", "completed", "error"]
ScoringPhase = Literal[
    "not_started",
    "judge_thinking",
    "revealing_scores",
    "calculating_final",
    "showing_winner",
    "completed",
]

SIDES: tuple[Side, Side] = ("pro", "con")
TERMINAL_STATUSES = ("completed", "error")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def side_for_index(index: int) -> Side:
    """Side of the message at the given transcript position"""
    return "pro" if index % 2 == 0 else "con"


def round_for_index(index: int) -> int:
    """One-based round number of the message at the given transcript position"""
    return index // 2 + 1


@dataclass
class ParticipantConfig:
    """Credential for one debater"""
    api_key: str

    def to_dict(self) -> dict:
        return {"api_key": self.api_key}


@dataclass
class JudgeConfig:
    """Credential and display name for one judge"""
    api_key: str
    name: str

    def to_dict(self) -> dict:
        return {"api_key": self.api_key, "name": self.name}


@dataclass
class DebateConfig:
    """Immutable configuration of a debate"""
    pro_config: ParticipantConfig
    con_config: ParticipantConfig
    judge_configs: list[JudgeConfig]
    max_rounds: int

    def validate(self) -> None:
        """Check credentials, panel size and round count

        Raises:
            DebateValidationError: Listing every problem found
        """
        problems = []
        if not self.pro_config.api_key.strip():
            problems.append("pro_config.api_key must not be empty")
        if not self.con_config.api_key.strip():
            problems.append("con_config.api_key must not be empty")
        if len(self.judge_configs) != JUDGE_PANEL_SIZE:
            problems.append(
                f"exactly {JUDGE_PANEL_SIZE} judges are required, got {len(self.judge_configs)}"
            )
        for i, judge in enumerate(self.judge_configs):
            if not judge.api_key.strip():
                problems.append(f"judge_configs[{i}].api_key must not be empty")
            if not judge.name.strip():
                problems.append(f"judge_configs[{i}].name must not be empty")
        if not MIN_ROUNDS <= self.max_rounds <= MAX_ROUNDS:
            problems.append(f"max_rounds must be between {MIN_ROUNDS} and {MAX_ROUNDS}")
        if problems:
            raise DebateValidationError(problems)

    def to_dict(self) -> dict:
        return {
            "pro_config": self.pro_config.to_dict(),
            "con_config": self.con_config.to_dict(),
            "judge_configs": [j.to_dict() for j in self.judge_configs],
            "max_rounds": self.max_rounds,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DebateConfig":
        return cls(
            pro_config=ParticipantConfig(**data["pro_config"]),
            con_config=ParticipantConfig(**data["con_config"]),
            judge_configs=[JudgeConfig(**j) for j in data["judge_configs"]],
            max_rounds=data["max_rounds"],
        )


@dataclass(frozen=True)
class DebateMessage:
    """One turn of the debate"""
    side: Side
    message: str
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "side": self.side,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DebateMessage":
        return cls(
            side=data["side"],
            message=data["message"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


@dataclass
class CategoryScores:
    """Scores for one side, each in [0, 100]"""
    logic: float
    evidence: float
    rebuttal: float
    expression: float

    @classmethod
    def uniform(cls, value: float) -> "CategoryScores":
        return cls(logic=value, evidence=value, rebuttal=value, expression=value)

    def get(self, category: str) -> float:
        return getattr(self, category)

    def to_dict(self) -> dict:
        return {c: self.get(c) for c in SCORE_CATEGORIES}

    @classmethod
    def from_dict(cls, data: dict) -> "CategoryScores":
        return cls(**{c: data[c] for c in SCORE_CATEGORIES})


@dataclass
class CategoryReasons:
    """Free-text rationale for one side, per category"""
    logic: str
    evidence: str
    rebuttal: str
    expression: str

    @classmethod
    def uniform(cls, text: str) -> "CategoryReasons":
        return cls(logic=text, evidence=text, rebuttal=text, expression=text)

    def get(self, category: str) -> str:
        return getattr(self, category)

    def to_dict(self) -> dict:
        return {c: self.get(c) for c in SCORE_CATEGORIES}

    @classmethod
    def from_dict(cls, data: dict) -> "CategoryReasons":
        return cls(**{c: data[c] for c in SCORE_CATEGORIES})


@dataclass
class Highlights:
    """Strengths, weaknesses and suggestions pulled from a judge comment"""
    pros: list[str]
    cons: list[str]
    suggestions: list[str]

    def to_dict(self) -> dict:
        return {
            "pros": list(self.pros),
            "cons": list(self.cons),
            "suggestions": list(self.suggestions),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Highlights":
        return cls(
            pros=list(data["pros"]),
            cons=list(data["cons"]),
            suggestions=list(data["suggestions"]),
        )


@dataclass
class RecommendedWinner:
    side: Side
    reason: str

    def to_dict(self) -> dict:
        return {"side": self.side, "reason": self.reason}


@dataclass(frozen=True)
class JudgeResult:
    """One judge's verdict"""
    name: str
    score: dict[str, float]
    detailed_scores: dict[str, CategoryScores]
    score_reasons: dict[str, CategoryReasons]
    comment: str
    overall_comment: str
    highlights: Highlights
    recommended_winner: Optional[RecommendedWinner] = None
    confidence: float = 1.0
    degraded: bool = False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "score": {side: self.score[side] for side in SIDES},
            "detailed_scores": {side: self.detailed_scores[side].to_dict() for side in SIDES},
            "score_reasons": {side: self.score_reasons[side].to_dict() for side in SIDES},
            "comment": self.comment,
            "overall_comment": self.overall_comment,
            "highlights": self.highlights.to_dict(),
            "recommended_winner": self.recommended_winner.to_dict() if self.recommended_winner else None,
            "confidence": self.confidence,
            "degraded": self.degraded,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "JudgeResult":
        winner = data.get("recommended_winner")
        return cls(
            name=data["name"],
            score={side: data["score"][side] for side in SIDES},
            detailed_scores={
                side: CategoryScores.from_dict(data["detailed_scores"][side]) for side in SIDES
            },
            score_reasons={
                side: CategoryReasons.from_dict(data["score_reasons"][side]) for side in SIDES
            },
            comment=data["comment"],
            overall_comment=data["overall_comment"],
            highlights=Highlights.from_dict(data["highlights"]),
            recommended_winner=RecommendedWinner(**winner) if winner else None,
            confidence=data.get("confidence", 1.0),
            degraded=data.get("degraded", False),
        )


@dataclass
class FinalScores:
    """Trimmed-mean aggregate of the panel"""
    pro: float
    con: float
    details: dict[str, CategoryScores]
    eliminated_scores: dict[str, dict[str, float]]

    def total(self, side: Side) -> float:
        return self.pro if side == "pro" else self.con

    def to_dict(self) -> dict:
        return {
            "pro": self.pro,
            "con": self.con,
            "details": {side: self.details[side].to_dict() for side in SIDES},
            "eliminated_scores": {
                side: dict(self.eliminated_scores[side]) for side in SIDES
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FinalScores":
        return cls(
            pro=data["pro"],
            con=data["con"],
            details={side: CategoryScores.from_dict(data["details"][side]) for side in SIDES},
            eliminated_scores={
                side: dict(data["eliminated_scores"][side]) for side in SIDES
            },
        )


@dataclass
class DebateState:
    """Durable state of one debate session"""
    id: str
    topic: str
    background: str
    config: DebateConfig
    status: DebateStatus = "pending"
    messages: list[DebateMessage] = field(default_factory=list)
    judges: list[JudgeResult] = field(default_factory=list)
    winner: Optional[Side] = None
    final_scores: Optional[FinalScores] = None
    error_message: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def new(cls, topic: str, background: str, config: DebateConfig) -> "DebateState":
        now = utcnow()
        return cls(
            id=str(uuid.uuid4()),
            topic=topic,
            background=background,
            config=config,
            created_at=now,
            updated_at=now,
        )

    @property
    def completed_rounds(self) -> int:
        return len(self.messages) // 2

    def touch(self) -> None:
        self.updated_at = utcnow()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "topic": self.topic,
            "background": self.background,
            "status": self.status,
            "messages": [m.to_dict() for m in self.messages],
            "judges": [j.to_dict() for j in self.judges],
            "winner": self.winner,
            "final_scores": self.final_scores.to_dict() if self.final_scores else None,
            "error_message": self.error_message,
            "config": self.config.to_dict(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DebateState":
        final_scores = data.get("final_scores")
        return cls(
            id=data["id"],
            topic=data["topic"],
            background=data.get("background", ""),
            config=DebateConfig.from_dict(data["config"]),
            status=data["status"],
            messages=[DebateMessage.from_dict(m) for m in data["messages"]],
            judges=[JudgeResult.from_dict(j) for j in data["judges"]],
            winner=data.get("winner"),
            final_scores=FinalScores.from_dict(final_scores) if final_scores else None,
            error_message=data.get("error_message"),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )


@dataclass
class HighlightedScore:
    side: Side
    score: float
    category: Optional[str] = None

    def to_dict(self) -> dict:
        return {"side": self.side, "category": self.category, "score": self.score}


@dataclass
class ScoringProgress:
    """Where the judging phase currently is"""
    phase: ScoringPhase
    current_judge: int = 0
    total_judges: int = JUDGE_PANEL_SIZE
    current_category: Optional[str] = None
    reveal_progress: float = 0.0
    highlighted_score: Optional[HighlightedScore] = None
    eliminated_scores: Optional[dict[str, float]] = None

    def to_dict(self) -> dict:
        return {
            "phase": self.phase,
            "current_judge": self.current_judge,
            "total_judges": self.total_judges,
            "current_category": self.current_category,
            "reveal_progress": self.reveal_progress,
            "highlighted_score": self.highlighted_score.to_dict() if self.highlighted_score else None,
            "eliminated_scores": dict(self.eliminated_scores) if self.eliminated_scores else None,
        }


@dataclass
class LiveProgress:
    """Transient progress of a running debate

    Never persisted. A restored debate starts from a fresh, idle value.
    """
    current_round: int = 1
    total_rounds: int = 1
    percentage: float = 0.0
    current_speaker: Optional[Side] = None
    is_thinking: bool = False
    streaming_text: str = ""
    streaming_side: Optional[Side] = None
    scoring: Optional[ScoringProgress] = None

    def to_dict(self) -> dict:
        return {
            "current_round": self.current_round,
            "total_rounds": self.total_rounds,
            "percentage": self.percentage,
            "current_speaker": self.current_speaker,
            "is_thinking": self.is_thinking,
            "streaming_text": self.streaming_text,
            "streaming_side": self.streaming_side,
            "scoring": self.scoring.to_dict() if self.scoring else None,
        }
