"""
Resilience Composition
======================
Higher-order helpers that layer retry, circuit breaking and health
recording around an operation. Each helper takes a zero-argument coroutine
function and returns another, so layers can be stacked in any order:

    op = with_circuit_breaker(breaker, fetch_balance)
    op = with_health_recording(monitor, "BSC", op, provider)
    balance = await with_search_depth_retry(executor, op, policy)()
"""

import time
from functools import partial, wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .circuit_breaker import CircuitBreaker
from .health import HealthVerdict, ProviderHealthMonitor, is_rate_limit_error
from .retry import RetryPolicy, SearchDepthAwareRetryExecutor

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]


def with_circuit_breaker(breaker: CircuitBreaker, operation: Operation[T]) -> Operation[T]:
    """Route every call of ``operation`` through ``breaker``."""
    @wraps(operation)
    async def guarded() -> T:
        return await breaker.execute(operation)
    return guarded


def with_health_recording(
    monitor: ProviderHealthMonitor,
    provider_key: str,
    operation: Operation[T],
    provider: Any = None,
    clock: Callable[[], float] = time.perf_counter,
) -> Operation[T]:
    """Record one health sample, with timing, per call of ``operation``."""
    @wraps(operation)
    async def recorded() -> T:
        start = clock()
        try:
            result = await operation()
        except Exception as e:
            monitor.record_request(provider_key, provider, False, (clock() - start) * 1000.0, e)
            raise
        monitor.record_request(provider_key, provider, True, (clock() - start) * 1000.0)
        return result
    return recorded


def with_search_depth_retry(
    executor: SearchDepthAwareRetryExecutor,
    operation: Operation[T],
    policy: Optional[RetryPolicy] = None,
) -> Operation[T]:
    """Run each call of ``operation`` as its own retry session."""
    @wraps(operation)
    async def retried() -> T:
        return await executor.retry(operation, policy)
    return retried


class ProviderGuard:
    """
    Breaker plus health recording for one provider.

    Every call, including ones rejected by an open circuit, leaves one
    sample in the health monitor.

    With ``rate_limit_trip=N`` the breaker is forced open as soon as the
    monitor holds more than N rate-limited samples for this provider.
    """

    def __init__(
        self,
        provider_key: str,
        breaker: CircuitBreaker,
        monitor: ProviderHealthMonitor,
        provider: Any = None,
        rate_limit_trip: Optional[int] = None,
    ):
        self.provider_key = provider_key
        self.breaker = breaker
        self.monitor = monitor
        self.provider = provider
        self.rate_limit_trip = rate_limit_trip

    def wrap(self, operation: Operation[T]) -> Operation[T]:
        recorded = with_health_recording(
            self.monitor,
            self.provider_key,
            with_circuit_breaker(self.breaker, operation),
            self.provider,
        )
        if self.rate_limit_trip is None:
            return recorded

        @wraps(operation)
        async def tripping() -> T:
            try:
                return await recorded()
            except Exception as e:
                if is_rate_limit_error(e):
                    await self._trip_on_rate_limits()
                raise
        return tripping

    async def _trip_on_rate_limits(self) -> None:
        rate_limit_errors = self.monitor.rate_limit_errors(self.provider_key)
        if rate_limit_errors > self.rate_limit_trip:
            await self.breaker.trip(reason=f"{rate_limit_errors} rate-limited calls")

    async def call(self, operation: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        if args or kwargs:
            operation = partial(operation, *args, **kwargs)
        return await self.wrap(operation)()

    @property
    def health(self) -> HealthVerdict:
        return self.monitor.get_provider_health(self.provider_key)


def rate_limit_policy(**overrides: Any) -> RetryPolicy:
    """
    Policy that retries only rate-limited (HTTP 429) failures.

    Any other error is raised after its first attempt. Defaults to three
    attempts; keyword arguments override any ``RetryPolicy`` field.
    """
    options = {"max_attempts": 3, "retry_condition": is_rate_limit_error}
    options.update(overrides)
    return RetryPolicy(**options)
