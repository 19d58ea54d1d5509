"""Shared types for text generation backends"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Protocol


# Receives the text accumulated so far in the current attempt
PartialCallback = Callable[[str], None]


@dataclass(frozen=True)
class GenerationResult:
    """Final text of a generation plus its continuation token"""
    text: str
    conversation_id: str = ""


class TextGenerator(Protocol):
    """Anything that can turn a prompt into text for a given role"""

    def generate(
        self,
        prompt: str,
        role: str,
        conversation_id: Optional[str] = None,
        on_partial: Optional[PartialCallback] = None,
    ) -> Awaitable[GenerationResult]:
        ...


ClientFactory = Callable[[str], TextGenerator]
