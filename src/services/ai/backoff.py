"""Retry with exponential backoff for calls into the generation backend.

The executor knows nothing about the operation it wraps; it is shared by
summary generation, comparison generation, skill suggestion and resume
parsing. Rate-limit shaped failures (HTTP 429, RESOURCE_EXHAUSTED, quota
messages) wait on a longer base delay before the same exponential multiplier
is applied.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
)

from core.config import Settings, get_settings
from services.ai.exceptions import SummaryServiceError, TransientBackendError


logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]

_RATE_LIMIT_MARKERS = ("429", "RESOURCE_EXHAUSTED", "QUOTA")


def is_rate_limit_error(err: BaseException | None) -> bool:
    """Return True if the error looks like upstream rate limiting."""
    if err is None:
        return False
    if getattr(err, "error_code", None) == "rate_limited":
        return True
    for attr in ("status", "status_code"):
        if getattr(err, attr, None) == 429:
            return True
    message = str(getattr(err, "message", None) or err).upper()
    if any(marker in message for marker in _RATE_LIMIT_MARKERS):
        return True
    code = str(getattr(err, "code", "") or "").upper()
    return "RESOURCE_EXHAUSTED" in code


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Attempt budget and base delays (seconds) for the backoff executor."""

    max_attempts: int = 3
    base_delay: float = 1.0
    rate_limit_delay: float = 5.0

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> RetryPolicy:
        s = settings or get_settings()
        return cls(
            max_attempts=s.AI_MAX_ATTEMPTS,
            base_delay=s.AI_BACKOFF_BASE_SECONDS,
            rate_limit_delay=s.AI_RATE_LIMIT_BACKOFF_SECONDS,
        )

    def delay_for(self, attempt_index: int, err: BaseException | None) -> float:
        """Delay to wait after the zero-based attempt `attempt_index` failed."""
        base = self.rate_limit_delay if is_rate_limit_error(err) else self.base_delay
        return base * (2**attempt_index)


def is_retryable(err: BaseException) -> bool:
    # Configuration and input errors never get better on retry.
    if isinstance(err, SummaryServiceError):
        return err.error_code in {"rate_limited", "backend_error"}
    return isinstance(err, Exception)


class BackoffExecutor:
    """Run a fallible async operation with exponential backoff.

    Each `run` call is independent; the executor holds no mutable state, so
    one instance may be shared across concurrent requests.
    """

    def __init__(
        self, policy: RetryPolicy | None = None, sleep: SleepFn | None = None
    ) -> None:
        self.policy = policy or RetryPolicy.from_settings()
        self._sleep: SleepFn = sleep or asyncio.sleep

    def _wait(self, retry_state: RetryCallState) -> float:
        err = retry_state.outcome.exception() if retry_state.outcome else None
        return self.policy.delay_for(retry_state.attempt_number - 1, err)

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        err = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            "Generation attempt %d failed (%s); retrying in %.1fs%s",
            retry_state.attempt_number,
            type(err).__name__ if err else "unknown",
            delay,
            " (rate limited)" if is_rate_limit_error(err) else "",
        )

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        fallback_message: str = "Operation failed. Please try again.",
        should_retry: Callable[[BaseException], bool] | None = None,
    ) -> T:
        """Await `operation()` until it succeeds or the attempt budget is spent.

        On exhaustion the last exception is re-raised when it carries a usable
        message; otherwise a TransientBackendError with `fallback_message`.
        `should_retry` narrows which failures are retried; a failure it
        rejects propagates immediately.
        """

        def _retry_if(err: BaseException) -> bool:
            if not is_retryable(err):
                return False
            return should_retry is None or should_retry(err)

        retrying = AsyncRetrying(
            sleep=self._sleep,
            stop=stop_after_attempt(self.policy.max_attempts),
            wait=self._wait,
            retry=retry_if_exception(_retry_if),
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await operation()
        except Exception as exc:
            if str(exc).strip():
                raise
            raise TransientBackendError(fallback_message) from exc
        # AsyncRetrying either returns from inside the loop or raises.
        raise TransientBackendError(fallback_message)  # pragma: no cover
