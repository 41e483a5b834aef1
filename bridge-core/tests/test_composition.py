"""
Tests for layer composition, provider guards and the wiring context.
"""

import pytest

from bridge_core import (
    CircuitBreaker,
    CircuitBreakerOpen,
    CircuitState,
    HealthVerdict,
    ProviderGuard,
    ProviderHealthMonitor,
    ResilienceConfig,
    ResilienceContext,
    RetryPolicy,
    SearchDepthAwareRetryExecutor,
    SearchDepthTooRestrictive,
    rate_limit_policy,
    with_circuit_breaker,
    with_health_recording,
    with_search_depth_retry,
)


class RateLimited(Exception):
    status_code = 429


class TestComposition:
    """Each helper wraps an operation and returns an operation."""

    @pytest.mark.asyncio
    async def test_health_recording_times_each_call(self, clock):
        monitor = ProviderHealthMonitor()
        outcomes = iter([ValueError("boom"), "ok"])

        async def fetch():
            clock.advance(0.25)
            outcome = next(outcomes)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        recorded = with_health_recording(monitor, "BSC", fetch, clock=clock)

        with pytest.raises(ValueError):
            await recorded()
        assert await recorded() == "ok"

        stats = monitor.get_provider_stats("BSC")
        assert stats.total_requests == 2
        assert stats.failed_requests == 1
        assert stats.average_duration_ms == pytest.approx(250)
        assert recorded.__name__ == "fetch"

    @pytest.mark.asyncio
    async def test_circuit_breaker_layer_short_circuits(self):
        breaker = CircuitBreaker(1, 60000)
        call_count = 0

        async def fetch():
            nonlocal call_count
            call_count += 1
            raise ConnectionError("down")

        guarded = with_circuit_breaker(breaker, fetch)

        with pytest.raises(ConnectionError):
            await guarded()
        with pytest.raises(CircuitBreakerOpen):
            await guarded()

        assert call_count == 1

    @pytest.mark.asyncio
    async def test_retry_layer_outermost(self, sleep):
        executor = SearchDepthAwareRetryExecutor(lambda: 24.0, lambda: 24.0, sleep=sleep)
        monitor = ProviderHealthMonitor()
        call_count = 0

        async def fetch():
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise RateLimited("slow down")
            return 42

        op = with_health_recording(monitor, "ETHEREUM", fetch)
        op = with_search_depth_retry(executor, op, RetryPolicy(max_attempts=5, base_delay_ms=10))

        assert await op() == 42
        assert call_count == 3
        assert monitor.get_provider_stats("ETHEREUM").rate_limit_errors == 2
        assert monitor.get_provider_health("ETHEREUM") == HealthVerdict.RATE_LIMITED


class TestProviderGuard:

    @pytest.mark.asyncio
    async def test_records_rejections(self):
        monitor = ProviderHealthMonitor()
        guard = ProviderGuard("BSC", CircuitBreaker(1, 60000), monitor)

        async def get_balance(address):
            raise ConnectionError(f"cannot reach node for {address}")

        with pytest.raises(ConnectionError):
            await guard.call(get_balance, "0xabc")
        with pytest.raises(CircuitBreakerOpen):
            await guard.call(get_balance, "0xabc")

        assert monitor.get_provider_stats("BSC").failed_requests == 2
        assert guard.health == HealthVerdict.DEGRADED

    @pytest.mark.asyncio
    async def test_passes_arguments(self):
        provider = object()
        monitor = ProviderHealthMonitor()
        guard = ProviderGuard("BSC", CircuitBreaker(), monitor, provider)

        async def get_balance(address, token=None):
            return f"{address}/{token}"

        assert await guard.call(get_balance, "0xabc", token="USDT") == "0xabc/USDT"
        assert monitor.last_provider("BSC") is provider


    @pytest.mark.asyncio
    async def test_trips_breaker_on_repeated_rate_limits(self):
        """More than rate_limit_trip rate-limited calls force the circuit open."""
        breaker = CircuitBreaker(100, 60000)
        guard = ProviderGuard("BSC", breaker, ProviderHealthMonitor(), rate_limit_trip=3)

        async def get_logs():
            raise RateLimited("slow down")

        for _ in range(3):
            with pytest.raises(RateLimited):
                await guard.call(get_logs)
        assert breaker.state == CircuitState.CLOSED

        with pytest.raises(RateLimited):
            await guard.call(get_logs)
        assert breaker.state == CircuitState.OPEN

        with pytest.raises(CircuitBreakerOpen):
            await guard.call(get_logs)

    @pytest.mark.asyncio
    async def test_plain_failures_do_not_trip(self):
        breaker = CircuitBreaker(100, 60000)
        guard = ProviderGuard("BSC", breaker, ProviderHealthMonitor(), rate_limit_trip=0)

        async def get_logs():
            raise ConnectionError("reset by peer")

        for _ in range(5):
            with pytest.raises(ConnectionError):
                await guard.call(get_logs)

        assert breaker.state == CircuitState.CLOSED


class TestRateLimitPolicy:
    """Retry only HTTP 429 failures."""

    @pytest.mark.asyncio
    async def test_retries_rate_limited_errors(self, sleep):
        executor = SearchDepthAwareRetryExecutor(lambda: 24.0, lambda: 24.0, sleep=sleep)
        call_count = 0

        async def fetch():
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise RateLimited("slow down")
            return "ok"

        assert await executor.retry(fetch, rate_limit_policy(base_delay_ms=10)) == "ok"
        assert call_count == 3
        assert sleep.calls == [0.01, 0.02]

    @pytest.mark.asyncio
    async def test_other_errors_raise_immediately(self, sleep):
        executor = SearchDepthAwareRetryExecutor(lambda: 24.0, lambda: 24.0, sleep=sleep)
        call_count = 0

        async def fetch():
            nonlocal call_count
            call_count += 1
            raise LookupError("execution reverted")

        with pytest.raises(LookupError):
            await executor.retry(fetch, rate_limit_policy())

        assert call_count == 1
        assert sleep.calls == []

    def test_defaults(self):
        policy = rate_limit_policy()

        assert policy.max_attempts == 3
        assert policy.should_retry(RateLimited("slow down")) is True
        assert policy.should_retry(ValueError("boom")) is False


class TestResilienceContext:
    """Application wiring."""

    @pytest.mark.asyncio
    async def test_breaker_opens_inside_retry_session(self, sleep):
        """Once the breaker opens, remaining attempts are rejected unattempted."""
        context = ResilienceContext.build(
            lambda: 24.0,
            lambda: 24.0,
            ResilienceConfig(max_attempts=5, base_delay_ms=10, breaker_failure_threshold=2),
            sleep=sleep,
        )
        call_count = 0

        async def fetch_block():
            nonlocal call_count
            call_count += 1
            raise ConnectionError("node down")

        with pytest.raises(CircuitBreakerOpen):
            await context.call("ETHEREUM", fetch_block)

        assert call_count == 2
        assert len(sleep.calls) == 4
        assert context.monitor.get_provider_stats("ETHEREUM").total_requests == 5
        assert context.provider_health("ETHEREUM") == HealthVerdict.DEGRADED

    @pytest.mark.asyncio
    async def test_recovers_from_transient_failure(self, sleep):
        context = ResilienceContext.build(lambda: 24.0, lambda: 24.0, sleep=sleep)
        call_count = 0

        async def fetch_block():
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                raise ConnectionError("reset by peer")
            return 19_000_000

        assert await context.call("BSC", fetch_block, RetryPolicy(base_delay_ms=5)) == 19_000_000
        assert context.breakers.get("BSC").failure_count == 0
        assert context.provider_health("BSC") == HealthVerdict.DEGRADED

    @pytest.mark.asyncio
    async def test_search_depth_abort(self, sleep):
        context = ResilienceContext.build(lambda: 24.0, lambda: 0.1, sleep=sleep)

        async def fetch_claims():
            raise LookupError("no claims")

        with pytest.raises(SearchDepthTooRestrictive):
            await context.call("ETHEREUM", fetch_claims, RetryPolicy(search_depth_type="claim"))

        assert sleep.calls == []

    def test_guard_reuses_provider_breaker(self):
        context = ResilienceContext.build(lambda: 24.0, lambda: 24.0)

        assert context.guard("BSC").breaker is context.guard("BSC").breaker
        assert context.guard("BSC").monitor is context.monitor

    @pytest.mark.asyncio
    async def test_rate_limit_trip_from_config(self, sleep):
        context = ResilienceContext.build(
            lambda: 24.0,
            lambda: 24.0,
            ResilienceConfig(breaker_failure_threshold=100, breaker_rate_limit_trip=3),
            sleep=sleep,
        )
        call_count = 0

        async def fetch_logs():
            nonlocal call_count
            call_count += 1
            raise RateLimited("slow down")

        with pytest.raises(CircuitBreakerOpen):
            await context.call("BSC", fetch_logs, rate_limit_policy(max_attempts=6, base_delay_ms=1))

        assert call_count == 4
        assert context.breakers.get("BSC").state == CircuitState.OPEN
