"""Tests for the retry controller."""

import pytest

from game_qa.engine.retry import is_retryable_error, retry_with_backoff


class Flaky:
    """Fails with the queued errors, then returns ``value``."""

    def __init__(self, errors, value="ok"):
        self.errors = list(errors)
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.value


@pytest.mark.asyncio
async def test_success_on_first_attempt_runs_once(clock):
    op = Flaky([])

    result = await retry_with_backoff(op, max_attempts=3, sleep=clock.sleep)

    assert result == "ok"
    assert op.calls == 1
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_retryable_error_is_retried_with_backoff(clock):
    op = Flaky([TimeoutError("Timeout 100ms exceeded"), ConnectionError("network unreachable")])

    result = await retry_with_backoff(op, max_attempts=3, base_delay=0.5, sleep=clock.sleep)

    assert result == "ok"
    assert op.calls == 3
    assert clock.sleeps == [0.5, 1.0]


@pytest.mark.asyncio
async def test_exhausted_attempts_raise_last_error(clock):
    errors = [RuntimeError(f"timeout #{i}") for i in range(5)]
    op = Flaky(errors)

    with pytest.raises(RuntimeError, match="timeout #2"):
        await retry_with_backoff(op, max_attempts=3, sleep=clock.sleep)

    assert op.calls == 3
    assert len(clock.sleeps) == 2


@pytest.mark.asyncio
async def test_non_retryable_error_surfaces_unchanged_after_one_call(clock):
    original = ValueError("bad input")
    op = Flaky([original])

    with pytest.raises(ValueError) as excinfo:
        await retry_with_backoff(op, max_attempts=5, sleep=clock.sleep)

    assert excinfo.value is original
    assert op.calls == 1
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_delay_is_capped_at_max_delay(clock):
    op = Flaky([RuntimeError("socket hang up")] * 4)

    await retry_with_backoff(op, max_attempts=5, base_delay=1.0, max_delay=3.0, sleep=clock.sleep)

    assert clock.sleeps == [1.0, 2.0, 3.0, 3.0]


@pytest.mark.asyncio
async def test_lambda_returning_coroutine_is_awaited_and_retried(clock):
    op = Flaky([TimeoutError("Timeout 100ms exceeded")], value={"success": True})

    result = await retry_with_backoff(lambda: op(), max_attempts=3, sleep=clock.sleep)

    assert result == {"success": True}
    assert op.calls == 2
    assert clock.sleeps == [0.5]


@pytest.mark.asyncio
async def test_custom_predicate_controls_retry(clock):
    op = Flaky([KeyError("anything")])

    result = await retry_with_backoff(
        op, max_attempts=2, should_retry=lambda e: isinstance(e, KeyError), sleep=clock.sleep
    )

    assert result == "ok"
    assert op.calls == 2


@pytest.mark.parametrize(
    "message,expected",
    [
        ("Timeout 30000ms exceeded", True),
        ("Navigation timed out", True),
        ("net::ERR_CONNECTION_REFUSED", True),
        ("connect ECONNREFUSED 127.0.0.1:80", True),
        ("CDP session closed", True),
        ("Transport closed", True),
        ("socket hang up", True),
        ("Network error", True),
        ("Element not found: start", False),
        ("", False),
    ],
)
def test_is_retryable_error(message, expected):
    assert is_retryable_error(RuntimeError(message)) is expected
