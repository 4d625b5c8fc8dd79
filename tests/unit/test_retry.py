"""
Unit tests for the external call retry policy
"""

import pytest

from prizewheel.core.errors import EmailDeliveryError, RetryExhaustedError
from prizewheel.services.retry import RetryPolicy, call_with_retry


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def flaky(failures, result="ok", error=EmailDeliveryError("down")):
    state = {"calls": 0}

    async def func():
        state["calls"] += 1
        if state["calls"] <= failures:
            raise error
        return result

    return func, state


@pytest.mark.asyncio
async def test_first_attempt_success_does_not_sleep():
    func, state = flaky(0)
    sleep = RecordingSleep()

    result, attempts = await call_with_retry(func, RetryPolicy(max_attempts=3, delay_seconds=5), sleep=sleep)

    assert (result, attempts) == ("ok", 1)
    assert sleep.delays == []
    assert state["calls"] == 1


@pytest.mark.asyncio
async def test_retries_until_success_with_fixed_delay():
    func, state = flaky(2)
    sleep = RecordingSleep()

    result, attempts = await call_with_retry(func, RetryPolicy(max_attempts=3, delay_seconds=5), sleep=sleep)

    assert attempts == 3
    assert sleep.delays == [5, 5]


@pytest.mark.asyncio
async def test_backoff_multiplier_grows_delays():
    func, _ = flaky(3)
    sleep = RecordingSleep()
    policy = RetryPolicy(max_attempts=4, delay_seconds=1, backoff_multiplier=2)

    await call_with_retry(func, policy, sleep=sleep)

    assert sleep.delays == [1, 2, 4]


@pytest.mark.asyncio
async def test_exhaustion_reports_attempts_and_last_error():
    error = EmailDeliveryError("still down")
    func, state = flaky(10, error=error)

    with pytest.raises(RetryExhaustedError) as exc_info:
        await call_with_retry(func, RetryPolicy(max_attempts=3, delay_seconds=0), sleep=RecordingSleep())

    assert exc_info.value.attempts == 3
    assert exc_info.value.last_error is error
    assert state["calls"] == 3


@pytest.mark.asyncio
async def test_unlisted_exceptions_are_not_retried():
    func, state = flaky(1, error=KeyError("bug"))

    with pytest.raises(KeyError):
        await call_with_retry(func, RetryPolicy(max_attempts=3, delay_seconds=0),
                              sleep=RecordingSleep(), retry_on=(EmailDeliveryError,))

    assert state["calls"] == 1


def test_policy_rejects_bad_values():
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)
    with pytest.raises(ValueError):
        RetryPolicy(delay_seconds=-1)


def test_policy_defaults_from_settings():
    policy = RetryPolicy.from_settings()
    assert policy.max_attempts == 3
    assert policy.delay_seconds == 5.0
