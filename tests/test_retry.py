"""Tests for retry with exponential backoff."""

import pytest

from taskcraft.batch.retry import backoff_delay_ms, execute_with_retry


def test_backoff_growth():
    assert backoff_delay_ms(1, 1000, jitter=1.0) == 1000
    assert backoff_delay_ms(2, 1000, jitter=1.0) == 1500
    assert backoff_delay_ms(3, 1000, jitter=1.0) == 2250


def test_backoff_jitter_bounds():
    for _ in range(200):
        delay = backoff_delay_ms(2, 1000)
        assert 1500 * 0.85 <= delay <= 1500 * 1.15


@pytest.mark.asyncio
async def test_retry_succeeds_after_failures(no_sleep):
    calls = []

    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise RuntimeError("transient")
        return "ok"

    result = await execute_with_retry(flaky, 3, 100, sleep=no_sleep)

    assert result == "ok"
    assert len(calls) == 3
    assert len(no_sleep.delays) == 2
    assert 0.085 <= no_sleep.delays[0] <= 0.115
    assert 0.1275 <= no_sleep.delays[1] <= 0.1725


@pytest.mark.asyncio
async def test_retry_raises_last_error(no_sleep):
    calls = []

    async def always_fails():
        calls.append(1)
        raise ValueError(f"failure {len(calls)}")

    with pytest.raises(ValueError, match="failure 4"):
        await execute_with_retry(always_fails, 4, 10, sleep=no_sleep)

    assert len(calls) == 4
    # no sleep after the final attempt
    assert len(no_sleep.delays) == 3


@pytest.mark.asyncio
async def test_single_attempt_never_sleeps(no_sleep):
    async def fails():
        raise RuntimeError("once")

    with pytest.raises(RuntimeError):
        await execute_with_retry(fails, 1, 1000, sleep=no_sleep)
    assert no_sleep.delays == []
