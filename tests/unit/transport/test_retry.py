"""Tests for the retry transport."""

import asyncio
import time
from datetime import UTC, datetime, timedelta

import httpx
import pytest

from gitlab_client_core.transport.retry import GitLabRetry

API_URL = "https://gitlab.example.com/api/v4/projects"


@pytest.fixture
def sleeps(monkeypatch):
    """Record retry delays instead of waiting them out."""
    delays: list[float] = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return delays


def _sequence(*responses: httpx.Response):
    """Handler replaying ``responses`` in order, counting attempts."""
    attempts = []

    async def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        return responses[min(len(attempts), len(responses)) - 1]

    return handler, attempts


class TestIdempotentRetry:
    """5xx and connection failures are retried only for idempotent methods."""

    @pytest.mark.unit
    async def test_retries_get_once_after_502(self, sleeps):
        """A 502 followed by a 200 costs exactly two attempts."""
        handler, attempts = _sequence(httpx.Response(502), httpx.Response(200, json=[]))
        retry_transport = GitLabRetry(wrapped_transport=httpx.MockTransport(handler), jitter=0)

        async with httpx.AsyncClient(transport=retry_transport) as client:
            response = await client.get(API_URL)

        assert response.status_code == 200
        assert len(attempts) == 2
        assert sleeps == [0.25]

    @pytest.mark.unit
    @pytest.mark.parametrize("method", ["GET", "HEAD", "PUT", "DELETE", "OPTIONS"])
    @pytest.mark.parametrize("status_code", [500, 502, 503, 504])
    async def test_retries_idempotent_methods_on_5xx(self, sleeps, method, status_code):
        handler, attempts = _sequence(httpx.Response(status_code), httpx.Response(200))
        retry_transport = GitLabRetry(wrapped_transport=httpx.MockTransport(handler))

        async with httpx.AsyncClient(transport=retry_transport) as client:
            response = await client.request(method, API_URL)

        assert response.status_code == 200
        assert len(attempts) == 2

    @pytest.mark.unit
    async def test_does_not_retry_post_on_503(self, sleeps):
        """POST request should NOT be retried on 5xx (not idempotent)."""
        handler, attempts = _sequence(httpx.Response(503))
        retry_transport = GitLabRetry(wrapped_transport=httpx.MockTransport(handler), max_retries=5)

        async with httpx.AsyncClient(transport=retry_transport) as client:
            response = await client.post(API_URL, json={"name": "demo"})

        assert response.status_code == 503
        assert len(attempts) == 1
        assert sleeps == []

    @pytest.mark.unit
    @pytest.mark.parametrize("status_code", [400, 401, 403, 404, 409, 422])
    async def test_does_not_retry_client_errors(self, sleeps, status_code):
        handler, attempts = _sequence(httpx.Response(status_code))
        retry_transport = GitLabRetry(wrapped_transport=httpx.MockTransport(handler))

        async with httpx.AsyncClient(transport=retry_transport) as client:
            response = await client.get(API_URL)

        assert response.status_code == status_code
        assert len(attempts) == 1

    @pytest.mark.unit
    async def test_budget_exhausted_returns_last_response(self, sleeps):
        handler, attempts = _sequence(httpx.Response(503, json={"message": "down"}))
        retry_transport = GitLabRetry(wrapped_transport=httpx.MockTransport(handler), max_retries=3, jitter=0)

        async with httpx.AsyncClient(transport=retry_transport) as client:
            response = await client.get(API_URL)

        assert response.status_code == 503
        assert response.json() == {"message": "down"}
        assert len(attempts) == 4
        assert sleeps == [0.25, 0.5, 1.0]

    @pytest.mark.unit
    async def test_zero_retries_disables_retrying(self, sleeps):
        handler, attempts = _sequence(httpx.Response(503))
        retry_transport = GitLabRetry(wrapped_transport=httpx.MockTransport(handler), max_retries=0)

        async with httpx.AsyncClient(transport=retry_transport) as client:
            response = await client.get(API_URL)

        assert response.status_code == 503
        assert len(attempts) == 1

    @pytest.mark.unit
    async def test_network_error_retry_for_idempotent_methods(self, sleeps):
        attempts = 0

        async def handler(request: httpx.Request) -> httpx.Response:
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise httpx.ConnectError("Connection refused", request=request)
            return httpx.Response(200)

        retry_transport = GitLabRetry(wrapped_transport=httpx.MockTransport(handler))

        async with httpx.AsyncClient(transport=retry_transport) as client:
            response = await client.get(API_URL)

        assert response.status_code == 200
        assert attempts == 2

    @pytest.mark.unit
    async def test_network_error_no_retry_for_post(self, sleeps):
        attempts = 0

        async def handler(request: httpx.Request) -> httpx.Response:
            nonlocal attempts
            attempts += 1
            raise httpx.ReadError("Connection reset", request=request)

        retry_transport = GitLabRetry(wrapped_transport=httpx.MockTransport(handler))

        async with httpx.AsyncClient(transport=retry_transport) as client:
            with pytest.raises(httpx.ReadError):
                await client.post(API_URL, json={})

        assert attempts == 1

    @pytest.mark.unit
    async def test_network_error_reraised_when_budget_spent(self, sleeps):
        async def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        retry_transport = GitLabRetry(wrapped_transport=httpx.MockTransport(handler), max_retries=2)

        async with httpx.AsyncClient(transport=retry_transport) as client:
            with pytest.raises(httpx.ConnectTimeout):
                await client.get(API_URL)

        assert len(sleeps) == 2


class TestRateLimitRetry:
    """429 is retried for every method, honouring the server's delay."""

    @pytest.mark.unit
    @pytest.mark.parametrize("method", ["GET", "POST", "PUT", "DELETE"])
    async def test_retries_all_methods_on_429(self, sleeps, method):
        handler, attempts = _sequence(httpx.Response(429), httpx.Response(200))
        retry_transport = GitLabRetry(wrapped_transport=httpx.MockTransport(handler))

        async with httpx.AsyncClient(transport=retry_transport) as client:
            response = await client.request(method, API_URL)

        assert response.status_code == 200
        assert len(attempts) == 2

    @pytest.mark.unit
    async def test_respects_retry_after_seconds(self, sleeps):
        handler, _ = _sequence(httpx.Response(429, headers={"Retry-After": "2"}), httpx.Response(200))
        retry_transport = GitLabRetry(wrapped_transport=httpx.MockTransport(handler))

        async with httpx.AsyncClient(transport=retry_transport) as client:
            await client.get(API_URL)

        assert sleeps == [2.0]

    @pytest.mark.unit
    async def test_respects_retry_after_http_date_on_503(self, sleeps):
        retry_time = datetime.now(UTC) + timedelta(seconds=3)
        retry_after = retry_time.strftime("%a, %d %b %Y %H:%M:%S GMT")
        handler, _ = _sequence(httpx.Response(503, headers={"Retry-After": retry_after}), httpx.Response(200))
        retry_transport = GitLabRetry(wrapped_transport=httpx.MockTransport(handler))

        async with httpx.AsyncClient(transport=retry_transport) as client:
            await client.get(API_URL)

        assert len(sleeps) == 1
        assert 1.5 < sleeps[0] <= 3.0

    @pytest.mark.unit
    async def test_retry_after_ignored_on_502(self, sleeps):
        handler, _ = _sequence(httpx.Response(502, headers={"Retry-After": "30"}), httpx.Response(200))
        retry_transport = GitLabRetry(wrapped_transport=httpx.MockTransport(handler), jitter=0)

        async with httpx.AsyncClient(transport=retry_transport) as client:
            await client.get(API_URL)

        assert sleeps == [0.25]

    @pytest.mark.unit
    async def test_ratelimit_reset_used_without_retry_after(self, sleeps):
        reset = str(int(time.time()) + 5)
        handler, _ = _sequence(httpx.Response(429, headers={"RateLimit-Reset": reset}), httpx.Response(200))
        retry_transport = GitLabRetry(wrapped_transport=httpx.MockTransport(handler))

        async with httpx.AsyncClient(transport=retry_transport) as client:
            await client.get(API_URL)

        assert len(sleeps) == 1
        assert 3.0 < sleeps[0] <= 5.0

    @pytest.mark.unit
    async def test_negative_retry_after_falls_back_to_backoff(self, sleeps):
        handler, _ = _sequence(httpx.Response(429, headers={"Retry-After": "-1"}), httpx.Response(200))
        retry_transport = GitLabRetry(wrapped_transport=httpx.MockTransport(handler), jitter=0)

        async with httpx.AsyncClient(transport=retry_transport) as client:
            await client.get(API_URL)

        assert sleeps == [0.25]

    @pytest.mark.unit
    async def test_max_retries_respected_on_429(self, sleeps):
        handler, attempts = _sequence(httpx.Response(429))
        retry_transport = GitLabRetry(wrapped_transport=httpx.MockTransport(handler), max_retries=2)

        async with httpx.AsyncClient(transport=retry_transport) as client:
            response = await client.post(API_URL, json={})

        assert response.status_code == 429
        assert len(attempts) == 3


class TestBackoff:
    @pytest.mark.unit
    def test_exponential_without_jitter(self):
        retry = GitLabRetry(wrapped_transport=httpx.MockTransport(lambda r: httpx.Response(200)), jitter=0)

        assert [retry._calculate_backoff_delay(n) for n in (1, 2, 3, 4)] == [0.25, 0.5, 1.0, 2.0]

    @pytest.mark.unit
    def test_jitter_stays_within_bounds(self):
        retry = GitLabRetry(wrapped_transport=httpx.MockTransport(lambda r: httpx.Response(200)), jitter=0.25)

        for _ in range(50):
            assert 0.375 <= retry._calculate_backoff_delay(2) <= 0.625

    @pytest.mark.unit
    def test_max_backoff_cap_respected(self):
        retry = GitLabRetry(
            wrapped_transport=httpx.MockTransport(lambda r: httpx.Response(200)),
            backoff_factor=10.0,
            jitter=0,
            max_backoff=15.0,
        )

        assert retry._calculate_backoff_delay(5) == 15.0
