"""Exceptions for LLM client"""

from typing import Optional


# HTTP statuses worth another attempt
RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504, 520, 521, 522, 524})


class LLMError(Exception):
    """Base exception for LLM errors"""

    retryable = False


class RateLimitError(LLMError):
    """Raised when API rate limit is exceeded"""

    retryable = True

    def __init__(self, message: str = "API rate limit exceeded", retry_after: int = 60):
        super().__init__(message)
        self.retry_after = retry_after


class APIKeyError(LLMError):
    """Raised when API key is missing or invalid"""

    def __init__(self, message: str = "API key is missing or invalid"):
        super().__init__(message)


class ModelError(LLMError):
    """Raised when there's an issue with the model"""

    def __init__(self, message: str = "Model error"):
        super().__init__(message)


class TransportError(LLMError):
    """Raised for HTTP or connection failures

    A missing status code means the connection itself failed (reset,
    refused, DNS), which is always worth retrying.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = status_code is None or status_code in RETRYABLE_STATUS_CODES


class LLMTimeoutError(LLMError):
    """Raised when a single attempt exceeds its wall-clock timeout"""

    retryable = True

    def __init__(self, message: str = "LLM request timed out"):
        super().__init__(message)


class EmptyResponseError(LLMError):
    """Raised when a response stream ends without any content"""

    retryable = True

    def __init__(self, message: str = "No data received from stream"):
        super().__init__(message)
