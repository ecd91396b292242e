"""Resilient Anthropic Client — AsyncAnthropic with retry, backoff and error mapping.

Invariants:
    - 429: retried with backoff, Retry-After (seconds) wins over the computed delay
    - 5xx, 529 overloaded and connection drops: retried up to max_retries
    - Timeouts and other 4xx: fail on the first attempt
    - Callers only ever see AssistantAPIError, never SDK exceptions

Design Decisions:
    - The SDK's own retries are disabled (max_retries=0) so one policy applies
    - ±25% jitter on backoff
"""

import asyncio
import logging
import random
from dataclasses import dataclass

import anthropic

from taskhub.core.errors import AssistantAPIError, ErrorContext

logger = logging.getLogger(__name__)

_OVERLOADED_STATUS = 529


@dataclass(frozen=True)
class _Failure:
    kind: str
    retryable: bool
    retry_after_ms: int | None = None


def _retry_after_ms(error: Exception) -> int | None:
    response = getattr(error, "response", None)
    if response is None:
        return None
    value = response.headers.get("retry-after")
    if value and value.isdigit():
        return int(value) * 1000
    return None


def classify_failure(error: Exception) -> _Failure:
    """Map an SDK exception to (kind, retryable)."""
    # APITimeoutError subclasses APIConnectionError, so it goes first
    if isinstance(error, anthropic.APITimeoutError):
        return _Failure("timeout", retryable=False)
    if isinstance(error, anthropic.RateLimitError):
        return _Failure("rate_limit", retryable=True, retry_after_ms=_retry_after_ms(error))
    if isinstance(error, (anthropic.APIConnectionError, anthropic.InternalServerError)):
        return _Failure("connection_error", retryable=True)
    if isinstance(error, anthropic.APIStatusError) and error.status_code == _OVERLOADED_STATUS:
        return _Failure("connection_error", retryable=True)
    if isinstance(error, anthropic.APIError):
        return _Failure("client_error", retryable=False)
    return _Failure("unknown", retryable=False)


class ResilientAnthropicClient:
    """One retry policy around messages.create."""

    def __init__(
        self,
        api_key: str,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 30_000,
        timeout_seconds: int = 60,
    ):
        self.client = anthropic.AsyncAnthropic(
            api_key=api_key, timeout=timeout_seconds, max_retries=0,
        )
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    async def create_message(
        self,
        *,
        model: str,
        max_tokens: int,
        system: str,
        messages: list,
        context: ErrorContext | None = None,
    ):
        attempt = 0
        while True:
            try:
                response = await self.client.messages.create(
                    model=model, max_tokens=max_tokens, system=system, messages=messages,
                )
            except Exception as e:
                failure = classify_failure(e)
                if failure.kind == "unknown":
                    logger.error(f"Unexpected Anthropic error: {e}", exc_info=True)
                if not failure.retryable or attempt >= self.max_retries:
                    raise self._to_error(e, failure, attempt, context) from e
                delay = failure.retry_after_ms or self._backoff(attempt)
                logger.warning(
                    f"Anthropic {failure.kind}, retry in {delay}ms",
                    extra={"attempt": attempt + 1},
                )
                await asyncio.sleep(delay / 1000)
                attempt += 1
                continue

            usage = response.usage
            logger.info(
                "Anthropic API success",
                extra={
                    "attempt": attempt + 1,
                    "input_tokens": usage.input_tokens,
                    "output_tokens": usage.output_tokens,
                },
            )
            return response

    async def ask_text(
        self,
        *,
        model: str,
        max_tokens: int,
        system: str,
        question: str,
        context: ErrorContext | None = None,
    ) -> str:
        """Single-turn question; returns the concatenated text blocks."""
        response = await self.create_message(
            model=model,
            max_tokens=max_tokens,
            system=system,
            messages=[{"role": "user", "content": question}],
            context=context,
        )
        return "\n".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        ).strip()

    def _to_error(
        self, e: Exception, failure: _Failure, attempt: int, context: ErrorContext | None,
    ) -> AssistantAPIError:
        if failure.kind == "timeout":
            message = "API timeout"
        elif failure.kind == "rate_limit":
            message = "Rate limit exceeded after retries"
        elif failure.retryable:
            message = f"Transient failure after {attempt} retries: {e}"
        else:
            message = str(e)
        return AssistantAPIError(
            message, failure.kind, retry_after_ms=failure.retry_after_ms, context=context,
        )

    def _backoff(self, attempt: int) -> int:
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311
