"""Retry behaviour of the backoff executor."""

import pytest

from services.ai.backoff import BackoffExecutor, RetryPolicy, is_rate_limit_error
from services.ai.exceptions import (
    ListingNotFound,
    NotConfigured,
    RateLimited,
    TransientBackendError,
)
from tests.fixtures.summary_fixtures import RateLimitError, SleepRecorder


class _Flaky:
    """Fails with the queued errors, then returns `value`."""

    def __init__(self, errors, value="ok"):
        self.errors = list(errors)
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.value


def _executor(max_attempts=3):
    sleep = SleepRecorder()
    policy = RetryPolicy(
        max_attempts=max_attempts, base_delay=1.0, rate_limit_delay=5.0
    )
    return BackoffExecutor(policy, sleep=sleep), sleep


@pytest.mark.asyncio
async def test_success_on_first_attempt_never_sleeps():
    executor, sleep = _executor()
    op = _Flaky([])

    assert await executor.run(op) == "ok"
    assert op.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_generic_failure_retries_with_exponential_base_delay():
    executor, sleep = _executor()
    op = _Flaky([RuntimeError("boom"), RuntimeError("boom")])

    assert await executor.run(op) == "ok"
    assert op.calls == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_rate_limit_failures_use_longer_delay():
    executor, sleep = _executor()
    op = _Flaky([RateLimitError("too many"), RateLimitError("too many")])

    assert await executor.run(op) == "ok"
    assert sleep.delays == [5.0, 10.0]


@pytest.mark.asyncio
async def test_exhaustion_reraises_last_error_with_message():
    executor, sleep = _executor()
    op = _Flaky([RuntimeError("first"), RuntimeError("second"), RuntimeError("third")])

    with pytest.raises(RuntimeError, match="third"):
        await executor.run(op)
    assert op.calls == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_exhaustion_with_blank_message_uses_fallback():
    executor, _ = _executor(max_attempts=2)
    op = _Flaky([RuntimeError(""), RuntimeError("  ")])

    with pytest.raises(TransientBackendError) as exc_info:
        await executor.run(op, fallback_message="Summary generation failed.")
    assert exc_info.value.message == "Summary generation failed."


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [NotConfigured(), ListingNotFound()])
async def test_non_retryable_domain_errors_propagate_immediately(error):
    executor, sleep = _executor()
    op = _Flaky([error])

    with pytest.raises(type(error)):
        await executor.run(op)
    assert op.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_rate_limited_domain_error_is_retried():
    executor, sleep = _executor()
    op = _Flaky([RateLimited()])

    assert await executor.run(op) == "ok"
    assert sleep.delays == [5.0]


@pytest.mark.asyncio
async def test_should_retry_can_veto_retries():
    executor, sleep = _executor()
    op = _Flaky([RuntimeError("after partials")])

    with pytest.raises(RuntimeError):
        await executor.run(op, should_retry=lambda _exc: False)
    assert op.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_single_attempt_policy_does_not_retry():
    executor, sleep = _executor(max_attempts=1)
    op = _Flaky([RuntimeError("once")])

    with pytest.raises(RuntimeError):
        await executor.run(op)
    assert sleep.delays == []


class _StatusError(Exception):
    def __init__(self, message, status=None, code=None):
        super().__init__(message)
        self.status = status
        self.code = code


@pytest.mark.parametrize(
    "err,expected",
    [
        (RateLimitError("slow down"), True),
        (_StatusError("throttled", status=429), True),
        (RuntimeError("HTTP 429 Too Many Requests"), True),
        (RuntimeError("RESOURCE_EXHAUSTED: try later"), True),
        (RuntimeError("Quota exceeded for project"), True),
        (_StatusError("upstream", code="RESOURCE_EXHAUSTED"), True),
        (RateLimited(), True),
        (RuntimeError("connection reset"), False),
        (TransientBackendError(), False),
        (None, False),
    ],
)
def test_is_rate_limit_error(err, expected):
    assert is_rate_limit_error(err) is expected


def test_retry_policy_from_settings():
    from core.config import Settings

    settings = Settings(
        SECRET_KEY="x",
        AI_MAX_ATTEMPTS=5,
        AI_BACKOFF_BASE_SECONDS=0.5,
        AI_RATE_LIMIT_BACKOFF_SECONDS=2.0,
    )
    policy = RetryPolicy.from_settings(settings)
    assert policy == RetryPolicy(max_attempts=5, base_delay=0.5, rate_limit_delay=2.0)
    assert policy.delay_for(2, None) == 2.0
    assert policy.delay_for(1, RateLimitError("x")) == 4.0
