import httpx
import pytest

from typesense_service.clients.base_client import (
    compute_retry_delay,
    is_retryable_error,
    with_retry,
)
from typesense_service.exceptions import TypesenseClientError, TypesenseServerError


class FlakyOperation:
    def __init__(self, error: Exception, failures: int = 10**6, result="ok"):
        self.error = error
        self.failures = failures
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return self.result


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.mark.asyncio
async def test_retryable_error_is_attempted_max_attempts_times():
    operation = FlakyOperation(httpx.ConnectError("connection refused"))
    sleep = RecordingSleep()

    with pytest.raises(httpx.ConnectError):
        await with_retry(operation, max_attempts=3, base_delay_ms=0, sleep=sleep)

    assert operation.calls == 3
    assert len(sleep.delays) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    ValueError("malformed filter"),
    TypesenseClientError(401, "Forbidden - a valid `x-typesense-api-key` header must be sent."),
])
async def test_fatal_error_is_not_retried(error):
    operation = FlakyOperation(error)
    sleep = RecordingSleep()

    with pytest.raises(type(error)):
        await with_retry(operation, max_attempts=3, base_delay_ms=0, sleep=sleep)

    assert operation.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_recovers_after_server_errors():
    operation = FlakyOperation(TypesenseServerError(503, "products"), failures=2, result=["hit"])

    result = await with_retry(operation, max_attempts=3, base_delay_ms=0, sleep=RecordingSleep())

    assert result == ["hit"]
    assert operation.calls == 3


@pytest.mark.asyncio
async def test_backoff_delays_double_within_jitter_bounds():
    operation = FlakyOperation(httpx.ReadTimeout("timed out"))
    sleep = RecordingSleep()

    with pytest.raises(httpx.ReadTimeout):
        await with_retry(operation, max_attempts=4, base_delay_ms=500, sleep=sleep)

    assert len(sleep.delays) == 3
    for attempt, delay in enumerate(sleep.delays, start=1):
        nominal = 0.5 * 2 ** (attempt - 1)
        assert nominal * 0.9 <= delay <= nominal * 1.1


def test_compute_retry_delay_upper_bound():
    assert compute_retry_delay(1, 500, uniform=lambda a, b: b) == pytest.approx(0.55)
    assert compute_retry_delay(3, 500, uniform=lambda a, b: b) == pytest.approx(2.2)
    assert compute_retry_delay(2, 500, uniform=lambda a, b: a) == pytest.approx(0.9)


@pytest.mark.parametrize("error, expected", [
    (httpx.ConnectError("boom"), True),
    (httpx.ReadTimeout("boom"), True),
    (TypesenseServerError(500), True),
    (TypesenseClientError(404), False),
    (RuntimeError("fetch failed"), True),
    (RuntimeError("ECONNREFUSED 127.0.0.1:8108"), True),
    (RuntimeError("request timeout"), True),
    (KeyError("hits"), False),
])
def test_is_retryable_error(error, expected):
    assert is_retryable_error(error) is expected


def test_http_status_error_retryable_only_for_5xx():
    request = httpx.Request("GET", "https://search.test/")
    server = httpx.HTTPStatusError("server", request=request, response=httpx.Response(502, request=request))
    client = httpx.HTTPStatusError("client", request=request, response=httpx.Response(400, request=request))

    assert is_retryable_error(server) is True
    assert is_retryable_error(client) is False
