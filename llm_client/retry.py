"""Retry policy for text generation calls

Every call goes through RetryingClient, which layers four things on top of a
single-attempt backend:

1. A minimum spacing between requests made by the same client instance
2. A bounded number of attempts
3. Exponential backoff with random jitter between attempts
4. A hard wall-clock timeout per attempt

Only failures in the retryable set are retried. Anything else is raised to
the caller straight away.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Optional, Protocol

from .base import GenerationResult, PartialCallback
from .exceptions import LLMError, LLMTimeoutError, RateLimitError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff and rate limit settings"""
    max_attempts: int = 5
    base_delay: float = 3.0
    max_jitter: float = 2.0
    max_delay: float = 30.0
    attempt_timeout: float = 60.0
    min_interval: float = 1.5

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")

    def backoff(self, attempt: int) -> float:
        """Delay before the given (zero-based) attempt"""
        if attempt <= 0:
            return 0.0
        delay = self.base_delay * (2 ** attempt) + random.uniform(0, self.max_jitter)
        return min(delay, self.max_delay)


class Backend(Protocol):
    def complete(
        self,
        prompt: str,
        role: str,
        conversation_id: Optional[str] = None,
        on_partial: Optional[PartialCallback] = None,
    ) -> Awaitable[GenerationResult]:
        ...


def is_retryable(error: BaseException) -> bool:
    """Classify a failure as transient or fatal"""
    if isinstance(error, LLMError):
        return error.retryable
    return isinstance(error, (asyncio.TimeoutError, TimeoutError, ConnectionError))


class RetryingClient:
    """Wraps a single-attempt backend with the retry policy"""

    def __init__(self, backend: Backend, policy: Optional[RetryPolicy] = None):
        self.backend = backend
        self.policy = policy or RetryPolicy()
        self._last_request_time: Optional[float] = None

    async def _wait_for_rate_limit(self) -> None:
        loop = asyncio.get_running_loop()
        if self._last_request_time is not None:
            elapsed = loop.time() - self._last_request_time
            if elapsed < self.policy.min_interval:
                await asyncio.sleep(self.policy.min_interval - elapsed)
        self._last_request_time = loop.time()

    async def generate(
        self,
        prompt: str,
        role: str,
        conversation_id: Optional[str] = None,
        on_partial: Optional[PartialCallback] = None,
    ) -> GenerationResult:
        """Generate text, retrying transient failures

        Raises:
            LLMError: The first fatal error, or the last retryable error once
                all attempts are used up
        """
        last_error: Optional[BaseException] = None

        for attempt in range(self.policy.max_attempts):
            delay = self.policy.backoff(attempt)
            if isinstance(last_error, RateLimitError):
                # The server said how long to back off
                delay = max(delay, min(last_error.retry_after, self.policy.max_delay))
            if delay > 0:
                logger.info(
                    f"Retry attempt {attempt + 1}/{self.policy.max_attempts} for {role} "
                    f"in {delay:.1f}s"
                )
                await asyncio.sleep(delay)

            await self._wait_for_rate_limit()

            try:
                return await asyncio.wait_for(
                    self.backend.complete(prompt, role, conversation_id, on_partial),
                    timeout=self.policy.attempt_timeout,
                )
            except asyncio.TimeoutError:
                last_error = LLMTimeoutError(
                    f"LLM request for {role} timed out after {self.policy.attempt_timeout}s"
                )
                logger.warning(f"Attempt {attempt + 1} for {role} timed out")
            except Exception as e:
                if not is_retryable(e):
                    logger.error(f"Fatal error for {role}: {e}")
                    raise
                last_error = e
                logger.warning(f"Attempt {attempt + 1} for {role} failed: {e}")

        logger.error(f"Giving up on {role} after {self.policy.max_attempts} attempts")
        raise last_error
