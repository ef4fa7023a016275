import asyncio

import httpx
import pytest
from google.genai import errors as genai_errors

from services.errors import CAPACITY_MESSAGE, CAPACITY_SUB_MESSAGE, GenerativeCapacityError
from services.retry_service import backoff_delay, is_transient_error, retry_with_backoff


class FlakyOperation:
    """Fails with the given errors in order, then returns ``result``"""

    def __init__(self, errors, result="ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


class AlwaysFails:
    def __init__(self, error):
        self.error = error
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        raise self.error


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def test_returns_immediately_on_success():
    operation = FlakyOperation([])
    sleep = RecordingSleep()

    assert asyncio.run(retry_with_backoff(operation, sleep=sleep)) == "ok"
    assert operation.calls == 1
    assert sleep.delays == []


def test_recovers_after_transient_failures():
    operation = FlakyOperation([RuntimeError("boom"), RuntimeError("boom")], result="image")
    sleep = RecordingSleep()

    assert asyncio.run(retry_with_backoff(operation, sleep=sleep)) == "image"
    assert operation.calls == 3
    assert len(sleep.delays) == 2


@pytest.mark.parametrize("max_retries", [0, 1, 5])
def test_gives_up_after_max_retries_plus_one_attempts(max_retries):
    operation = AlwaysFails(RuntimeError("connection reset"))

    with pytest.raises(RuntimeError, match="connection reset"):
        asyncio.run(retry_with_backoff(operation, max_retries=max_retries, sleep=RecordingSleep()))
    assert operation.calls == max_retries + 1


def test_delays_double_with_jitter_below_base_delay():
    sleep = RecordingSleep()

    with pytest.raises(RuntimeError):
        asyncio.run(retry_with_backoff(AlwaysFails(RuntimeError("x")), max_retries=4, initial_delay=1.0, sleep=sleep))

    assert len(sleep.delays) == 4
    for attempt, delay in enumerate(sleep.delays):
        base = 1.0 * 2 ** attempt
        assert base <= delay < 2 * base


def test_backoff_delay_doubles():
    assert [backoff_delay(n, 0.5) for n in range(5)] == [0.5, 1.0, 2.0, 4.0, 8.0]


def test_non_retryable_error_is_raised_without_retrying():
    operation = AlwaysFails(ValueError("bad request"))
    sleep = RecordingSleep()

    with pytest.raises(ValueError):
        asyncio.run(retry_with_backoff(operation, should_retry=lambda e: False, sleep=sleep))
    assert operation.calls == 1
    assert sleep.delays == []


def test_exhausted_503_becomes_capacity_error():
    raw = RuntimeError("503 Service Unavailable: the model is overloaded")

    with pytest.raises(GenerativeCapacityError) as exc_info:
        asyncio.run(retry_with_backoff(AlwaysFails(raw), max_retries=2, sleep=RecordingSleep()))

    assert str(exc_info.value) == CAPACITY_MESSAGE
    assert str(exc_info.value) != str(raw)
    assert exc_info.value.user_sub_message == CAPACITY_SUB_MESSAGE
    assert exc_info.value.__cause__ is raw


def test_other_exhausted_errors_propagate_unchanged():
    raw = RuntimeError("500 INTERNAL")

    with pytest.raises(RuntimeError) as exc_info:
        asyncio.run(retry_with_backoff(AlwaysFails(raw), max_retries=1, sleep=RecordingSleep()))
    assert exc_info.value is raw


def test_is_transient_error_classification():
    overloaded = genai_errors.ServerError(503, {"error": {"code": 503, "message": "overloaded", "status": "UNAVAILABLE"}})
    rate_limited = genai_errors.ClientError(429, {"error": {"code": 429, "message": "quota", "status": "RESOURCE_EXHAUSTED"}})
    bad_request = genai_errors.ClientError(400, {"error": {"code": 400, "message": "invalid image", "status": "INVALID_ARGUMENT"}})

    assert is_transient_error(overloaded)
    assert is_transient_error(rate_limited)
    assert not is_transient_error(bad_request)
    assert is_transient_error(httpx.ConnectError("connection refused"))
    assert is_transient_error(asyncio.TimeoutError())
    assert is_transient_error(RuntimeError("503 Service Unavailable"))
    assert not is_transient_error(ValueError("could not decode image"))
