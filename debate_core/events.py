"""Progress events published by the debate manager

Subscribers are plain callables invoked synchronously, in subscription order.
They must return quickly; anything slow (disk writes, network) should be
handed off to a task by the subscriber itself.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .types import DebateState, LiveProgress

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    PHASE_CHANGED = "phase_changed"
    TURN_STARTED = "turn_started"
    TURN_STREAMED = "turn_streamed"
    TURN_COMPLETED = "turn_completed"
    JUDGE_PROGRESS = "judge_progress"
    JUDGING_COMPLETED = "judging_completed"
    ERROR = "error"
    RESTORED = "restored"


@dataclass(frozen=True)
class DebateEvent:
    """A snapshot of a debate at the moment something happened

    `state` is only set when durable state changed; observers that persist
    can ignore events without it.
    """
    kind: EventKind
    debate_id: str
    progress: LiveProgress
    state: Optional[DebateState] = None

    @property
    def state_changed(self) -> bool:
        return self.state is not None


Subscriber = Callable[[DebateEvent], None]


class EventBus:
    """Fan-out of debate events to any number of subscribers"""

    def __init__(self):
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a subscriber; returns a function that removes it"""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, event: DebateEvent) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                # A broken observer must not stop the debate
                logger.exception(f"Subscriber failed on {event.kind.value} for {event.debate_id}")

    def __len__(self) -> int:
        return len(self._subscribers)
