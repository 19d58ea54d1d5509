"""Groq API client"""

import os
from typing import Optional

from .base import GenerationResult, PartialCallback
from .exceptions import (
    APIKeyError,
    EmptyResponseError,
    LLMError,
    LLMTimeoutError,
    ModelError,
    RateLimitError,
    TransportError,
)
from .retry import RetryingClient, RetryPolicy


class GroqClient:
    """Single-attempt streaming client for Groq API

    Retries are not done here; wrap it in RetryingClient (see create_client).
    """

    DEFAULT_MODEL = "llama-3.3-70b-versatile"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: int = 1024,
    ):
        """Initialize the Groq client

        Args:
            api_key: Groq API key. If not provided, reads from GROQ_API_KEY env var.
            model: Model to use (defaults to LLM_MODEL env var or DEFAULT_MODEL)
            max_tokens: Maximum tokens in each response

        Raises:
            APIKeyError: If no API key is provided or found in environment
        """
        self.api_key = api_key or os.getenv("GROQ_API_KEY")
        if not self.api_key:
            raise APIKeyError(
                "GROQ_API_KEY not found. Set it as an environment variable or pass it to the constructor."
            )
        self.model = model or os.getenv("LLM_MODEL", self.DEFAULT_MODEL)
        self.max_tokens = max_tokens
        self._client = None

    def _get_client(self):
        """Lazy initialization of Groq client"""
        if self._client is None:
            from groq import AsyncGroq
            # Retrying is RetryingClient's job
            self._client = AsyncGroq(api_key=self.api_key, max_retries=0)
        return self._client

    async def complete(
        self,
        prompt: str,
        role: str,
        conversation_id: Optional[str] = None,
        on_partial: Optional[PartialCallback] = None,
    ) -> GenerationResult:
        """Stream one chat completion

        Groq has no server-side conversations, so the id of the completion is
        handed back as the continuation token and the prompt always carries
        the full context.

        Raises:
            EmptyResponseError: If the stream ended without any content
            LLMError: Translated SDK errors (see _translate_error)
        """
        import groq

        client = self._get_client()
        answer = ""
        completion_id = conversation_id or ""

        try:
            stream = await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.max_tokens,
                stream=True,
                user=role,
            )
            async for chunk in stream:
                completion_id = chunk.id or completion_id
                if not chunk.choices:
                    continue
                text = chunk.choices[0].delta.content
                if text:
                    answer += text
                    if on_partial is not None:
                        on_partial(answer)
        except groq.APIError as e:
            raise _translate_error(e) from e

        if not answer:
            raise EmptyResponseError(f"No data received from stream for {role}")

        return GenerationResult(text=answer, conversation_id=completion_id)


def _translate_error(error: Exception) -> LLMError:
    """Map groq SDK exceptions onto our exception types"""
    import groq

    if isinstance(error, groq.APITimeoutError):
        return LLMTimeoutError(f"Groq API timeout: {error}")
    if isinstance(error, groq.APIConnectionError):
        return TransportError(f"Groq connection error: {error}")
    if isinstance(error, (groq.AuthenticationError, groq.PermissionDeniedError)):
        return APIKeyError("Invalid API key")
    if isinstance(error, groq.RateLimitError):
        retry_after = error.response.headers.get("retry-after", "60")
        try:
            seconds = int(float(retry_after))
        except ValueError:
            seconds = 60
        return RateLimitError("Groq API rate limit exceeded", retry_after=seconds)
    if isinstance(error, groq.NotFoundError):
        return ModelError(f"Groq model error: {error}")
    if isinstance(error, groq.APIStatusError):
        return TransportError(f"Groq API error: {error.status_code} {error}", status_code=error.status_code)
    return LLMError(f"Groq API error: {error}")


def create_client(
    api_key: str,
    policy: Optional[RetryPolicy] = None,
    model: Optional[str] = None,
    max_tokens: int = 1024,
) -> RetryingClient:
    """Build the retry-wrapped client for one participant"""
    return RetryingClient(GroqClient(api_key=api_key, model=model, max_tokens=max_tokens), policy)
