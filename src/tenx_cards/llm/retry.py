"""
Retry policy with exponential backoff and jitter.

Attempts are strictly sequential: attempt n+1 starts only after attempt n has
been classified. Only errors flagged ``retryable`` are retried.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenx_cards.llm.config import RetryConfig
from tenx_cards.llm.errors import LLMServiceError, RateLimitError

MAX_JITTER_SECONDS = 1.0

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


class RetryPolicy:
    """
    Drives repeated attempts of one operation.

    The sleep function, RNG and logger are injectable so the loop can be
    tested without real delays.

    Example:
        >>> policy = RetryPolicy(RetryConfig(max_retries=2, retry_delay=0.5))
        >>> policy.compute_delay(2, jitter=False)
        2.0
        >>> policy.compute_delay(2, rate_limited=True, jitter=False)
        4.0
    """

    def __init__(
        self,
        config: RetryConfig,
        *,
        sleep: Sleep | None = None,
        rng: random.Random | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self._sleep = sleep or asyncio.sleep
        self._rng = rng or random.Random()
        self._logger = logger or logging.getLogger(__name__)

    @property
    def max_attempts(self) -> int:
        return self.config.max_retries + 1

    def compute_delay(
        self,
        attempt: int,
        *,
        rate_limited: bool = False,
        jitter: bool = True,
    ) -> float:
        """
        Backoff before retrying after ``attempt`` (0-based) failed.

        ``retry_delay * 2**attempt``, with the base doubled for rate limits,
        plus uniform jitter in ``[0, 1s)``.
        """
        base = self.config.retry_delay * (2 if rate_limited else 1)
        delay = base * (2**attempt)
        if jitter:
            delay += self._rng.random() * MAX_JITTER_SECONDS
        return delay

    async def execute(
        self,
        attempt_fn: Callable[[int], Awaitable[T]],
        *,
        operation: str = "request",
    ) -> T:
        """
        Run ``attempt_fn(attempt)`` until it succeeds or the budget is spent.

        Args:
            attempt_fn: Coroutine function performing one attempt; it must
                raise an LLMServiceError on failure
            operation: Label used in log records

        Returns:
            The first successful result

        Raises:
            LLMServiceError: The first non-retryable error, or the last
                retryable one once ``max_retries`` retries have been used
        """
        attempt = 0
        while True:
            try:
                return await attempt_fn(attempt)
            except LLMServiceError as exc:
                extra = {
                    "endpoint": operation,
                    "attempt": attempt + 1,
                    "status_code": exc.status_code,
                    "error_code": str(exc.code),
                }
                if not exc.retryable:
                    self._logger.error(
                        "LLM %s failed with non-retryable %s: %s",
                        operation,
                        exc.code,
                        exc.message,
                        extra=extra,
                    )
                    raise
                if attempt >= self.config.max_retries:
                    self._logger.error(
                        "LLM %s failed after %d attempts: %s",
                        operation,
                        attempt + 1,
                        exc.message,
                        extra=extra,
                    )
                    raise

                delay = self.compute_delay(attempt, rate_limited=isinstance(exc, RateLimitError))
                self._logger.warning(
                    "LLM %s failed (attempt %d/%d): %s. Retrying in %.2fs...",
                    operation,
                    attempt + 1,
                    self.max_attempts,
                    exc.message,
                    delay,
                    extra={**extra, "delay": round(delay, 3)},
                )
                await self._sleep(delay)
                attempt += 1
