"""Debate Core - orchestration of AI debates and their judging panel"""

from .types import (
    DebateConfig,
    DebateMessage,
    DebateState,
    FinalScores,
    JudgeConfig,
    JudgeResult,
    LiveProgress,
    ParticipantConfig,
    ScoringProgress,
)
from .events import DebateEvent, EventBus, EventKind
from .exceptions import (
    DebateAlreadyRunningError,
    DebateError,
    DebateNotFoundError,
    DebateValidationError,
    InvalidStateError,
    SnapshotValidationError,
    StoreError,
)
from .manager import DebateManager
from .storage import FileStorageBackend, MemoryStorageBackend, StorageBackend
from .store import DebateStore

__all__ = [
    "DebateConfig",
    "DebateMessage",
    "DebateState",
    "FinalScores",
    "JudgeConfig",
    "JudgeResult",
    "LiveProgress",
    "ParticipantConfig",
    "ScoringProgress",
    "DebateEvent",
    "EventBus",
    "EventKind",
    "DebateError",
    "DebateValidationError",
    "DebateNotFoundError",
    "DebateAlreadyRunningError",
    "InvalidStateError",
    "SnapshotValidationError",
    "StoreError",
    "DebateManager",
    "StorageBackend",
    "FileStorageBackend",
    "MemoryStorageBackend",
    "DebateStore",
]
