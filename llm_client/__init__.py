"""LLM Client - Abstraction layer for LLM APIs"""

from .base import ClientFactory, GenerationResult, PartialCallback, TextGenerator
from .exceptions import (
    APIKeyError,
    EmptyResponseError,
    LLMError,
    LLMTimeoutError,
    ModelError,
    RateLimitError,
    TransportError,
)
from .groq_client import GroqClient, create_client
from .retry import RetryingClient, RetryPolicy, is_retryable

__all__ = [
    "ClientFactory",
    "GenerationResult",
    "PartialCallback",
    "TextGenerator",
    "LLMError",
    "RateLimitError",
    "APIKeyError",
    "ModelError",
    "TransportError",
    "LLMTimeoutError",
    "EmptyResponseError",
    "GroqClient",
    "create_client",
    "RetryingClient",
    "RetryPolicy",
    "is_retryable",
]
