"""
Tests for retry (config, policy, transport, RetryConfiguration)
Logic testing: Decision/Branch on method and status, backoff bounds, first-writer-wins
"""
import threading

import httpx
import pytest

from notifications_sdk.retry import (
    DEFAULT_RETRY_CONFIG,
    AsyncRetryPolicy,
    BackoffStrategy,
    RetryConfig,
    RetryConfiguration,
    RetryPolicy,
    RetryTransport,
    SyncRetryTransport,
    calculate_delay,
    is_retryable_error,
    is_retryable_status,
    parse_retry_after,
)

URL = "https://example.lusid.com/notifications/api/subscriptions"


class Counter:
    """MockTransport handler returning queued responses or raising queued errors."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    def __call__(self, request):
        self.calls += 1
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome)


class TestRetryDecisions:
    """is_retryable_status / is_retryable_error."""

    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
    def test_idempotent_retryable_status(self, status):
        assert is_retryable_status(status, "GET", RetryConfig()) is True

    @pytest.mark.parametrize("status", [200, 400, 401, 404, 501])
    def test_non_retryable_status(self, status):
        assert is_retryable_status(status, "GET", RetryConfig()) is False

    # Decision: POST only retried on 429
    def test_post_only_on_429(self):
        config = RetryConfig()
        assert is_retryable_status(429, "POST", config) is True
        assert is_retryable_status(503, "POST", config) is False

    def test_post_retried_on_connect_error(self):
        assert is_retryable_error(httpx.ConnectError("refused"), "POST", RetryConfig()) is True

    def test_post_not_retried_on_read_timeout(self):
        assert is_retryable_error(httpx.ReadTimeout("slow"), "POST", RetryConfig()) is False

    def test_get_retried_on_read_timeout(self):
        assert is_retryable_error(httpx.ReadTimeout("slow"), "GET", RetryConfig()) is True

    def test_unknown_error_not_retried(self):
        assert is_retryable_error(httpx.DecodingError("bad"), "GET", RetryConfig()) is False


class TestCalculateDelay:
    def test_exponential_without_jitter(self):
        config = RetryConfig(jitter_factor=0.0)
        assert [calculate_delay(n, config) for n in range(4)] == [1.0, 2.0, 4.0, 8.0]

    def test_capped_at_max(self):
        config = RetryConfig(jitter_factor=0.0, max_delay_seconds=5.0)
        assert calculate_delay(10, config) == 5.0

    def test_jitter_bounds(self):
        config = RetryConfig(jitter_factor=0.5)
        for _ in range(50):
            assert 1.5 <= calculate_delay(1, config) <= 2.5

    def test_linear(self):
        config = RetryConfig(
            jitter_factor=0.0, backoff_strategy=BackoffStrategy.LINEAR, linear_increment_seconds=2.0
        )
        assert calculate_delay(2, config) == 5.0

    def test_constant(self):
        config = RetryConfig(jitter_factor=0.0, backoff_strategy=BackoffStrategy.CONSTANT)
        assert calculate_delay(5, config) == 1.0


class TestParseRetryAfter:
    def test_seconds(self):
        assert parse_retry_after("3") == 3.0

    @pytest.mark.parametrize("value", [None, "", "soon"])
    def test_unparseable(self, value):
        assert parse_retry_after(value) == 0

    def test_http_date_in_past(self):
        assert parse_retry_after("Wed, 21 Oct 2015 07:28:00 GMT") == 0


class TestRetryPolicy:
    """Sync policy through SyncRetryTransport."""

    def make_client(self, handler, policy):
        return httpx.Client(transport=SyncRetryTransport(httpx.MockTransport(handler), policy))

    def test_default_config(self):
        assert RetryPolicy().config is DEFAULT_RETRY_CONFIG
        assert AsyncRetryPolicy().config.max_retries == RetryConfig().max_retries

    # Path: transient 503 then success
    def test_retries_then_succeeds(self, fast_retry_policy):
        handler = Counter(503, 503, 200)
        with self.make_client(handler, fast_retry_policy) as client:
            response = client.get(URL)

        assert response.status_code == 200
        assert handler.calls == 3

    # Path: retries exhausted returns the last response
    def test_exhausted_returns_last_response(self, fast_retry_policy):
        handler = Counter(503)
        with self.make_client(handler, fast_retry_policy) as client:
            response = client.get(URL)

        assert response.status_code == 503
        assert handler.calls == 3

    def test_post_not_retried_on_500(self, fast_retry_policy):
        handler = Counter(500)
        with self.make_client(handler, fast_retry_policy) as client:
            response = client.post(URL, json={})

        assert response.status_code == 500
        assert handler.calls == 1

    def test_post_retried_on_429(self, fast_retry_policy):
        handler = Counter(429, 201)
        with self.make_client(handler, fast_retry_policy) as client:
            response = client.post(URL, json={})

        assert response.status_code == 201
        assert handler.calls == 2

    def test_connect_error_retried_then_raised(self, fast_retry_policy):
        handler = Counter(httpx.ConnectError("refused"))
        with self.make_client(handler, fast_retry_policy) as client:
            with pytest.raises(httpx.ConnectError):
                client.get(URL)

        assert handler.calls == 3

    def test_non_retryable_error_raised_immediately(self, fast_retry_policy):
        handler = Counter(httpx.ReadTimeout("slow"))
        with self.make_client(handler, fast_retry_policy) as client:
            with pytest.raises(httpx.ReadTimeout):
                client.post(URL, json={})

        assert handler.calls == 1

    def test_on_retry_listener(self, no_delay_retry_config):
        seen = []
        policy = RetryPolicy(no_delay_retry_config, on_retry=lambda e, a, d: seen.append(a))
        with self.make_client(Counter(502, 502, 200), policy) as client:
            client.get(URL)

        assert seen == [1, 2]

    def test_retry_after_honoured_on_429(self):
        policy = RetryPolicy(RetryConfig(max_delay_seconds=10.0))
        response = httpx.Response(429, headers={"Retry-After": "7"})
        assert policy.get_delay(0, response) == 7.0

    def test_retry_after_capped(self):
        policy = RetryPolicy(RetryConfig(max_delay_seconds=5.0))
        response = httpx.Response(429, headers={"Retry-After": "60"})
        assert policy.get_delay(0, response) == 5.0


class TestAsyncRetryPolicy:
    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, fast_async_retry_policy):
        handler = Counter(504, 200)
        transport = RetryTransport(httpx.MockTransport(handler), fast_async_retry_policy)
        async with httpx.AsyncClient(transport=transport) as client:
            response = await client.get(URL)

        assert response.status_code == 200
        assert handler.calls == 2

    @pytest.mark.asyncio
    async def test_post_connect_error_retried(self, fast_async_retry_policy):
        handler = Counter(httpx.ConnectError("refused"), 201)
        transport = RetryTransport(httpx.MockTransport(handler), fast_async_retry_policy)
        async with httpx.AsyncClient(transport=transport) as client:
            response = await client.post(URL, json={})

        assert response.status_code == 201
        assert handler.calls == 2


class TestRetryConfiguration:
    """Process-wide policy holder."""

    def test_install_defaults_fills_empty_slots(self):
        assert RetryConfiguration.install_defaults() is True
        assert isinstance(RetryConfiguration.retry_policy, RetryPolicy)
        assert isinstance(RetryConfiguration.async_retry_policy, AsyncRetryPolicy)

    # State: first writer wins
    def test_install_defaults_keeps_existing(self, fast_retry_policy, fast_async_retry_policy):
        RetryConfiguration.set_retry_policy(fast_retry_policy)
        RetryConfiguration.set_async_retry_policy(fast_async_retry_policy)

        assert RetryConfiguration.install_defaults() is False
        assert RetryConfiguration.retry_policy is fast_retry_policy
        assert RetryConfiguration.async_retry_policy is fast_async_retry_policy

    def test_install_defaults_only_once(self):
        RetryConfiguration.install_defaults()
        first = RetryConfiguration.retry_policy

        assert RetryConfiguration.install_defaults() is False
        assert RetryConfiguration.retry_policy is first

    def test_concurrent_install_defaults(self):
        results = []
        threads = [
            threading.Thread(target=lambda: results.append(RetryConfiguration.install_defaults()))
            for _ in range(16)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1

    def test_get_policy_falls_back_to_default(self):
        assert RetryConfiguration.retry_policy is None
        assert isinstance(RetryConfiguration.get_retry_policy(), RetryPolicy)
        assert isinstance(RetryConfiguration.get_async_retry_policy(), AsyncRetryPolicy)

    # Decision: transport without explicit policy reads the holder per request
    def test_transport_uses_policy_installed_later(self, fast_retry_policy):
        handler = Counter(503, 200)
        transport = SyncRetryTransport(httpx.MockTransport(handler))
        RetryConfiguration.set_retry_policy(fast_retry_policy)

        assert transport.policy is fast_retry_policy
        with httpx.Client(transport=transport) as client:
            assert client.get(URL).status_code == 200
        assert handler.calls == 2
