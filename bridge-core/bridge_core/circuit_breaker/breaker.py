"""
Circuit Breaker Core
====================
Fail-fast guard in front of one RPC provider.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import structlog

from ..exceptions import CircuitBreakerOpen
from ..metrics import record_circuit_state
from .models import CircuitBreakerState, CircuitState

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class CircuitBreaker:
    """
    Async circuit breaker protecting a single resource.

    After ``failure_threshold`` consecutive failures the circuit opens and
    every call is rejected with ``CircuitBreakerOpen`` until
    ``reset_timeout_ms`` has passed. The first call after that closes the
    circuit again and goes through as a trial; the failure count is kept, so
    a failed trial reopens the circuit immediately.

    Create one breaker per provider and reuse it: a fresh instance has no
    memory of earlier failures.

    Example:
        breaker = CircuitBreaker(5, 60000, name="ETHEREUM")

        try:
            block = await breaker.execute(provider.get_block_number)
        except CircuitBreakerOpen:
            ...
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_timeout_ms: float = 60000.0,
        name: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        if reset_timeout_ms < 0:
            raise ValueError("reset_timeout_ms must be >= 0")
        self.failure_threshold = failure_threshold
        self.reset_timeout_ms = reset_timeout_ms
        self.name = name or "default"
        self._clock = clock
        self._state = CircuitBreakerState()
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CircuitState:
        """Current circuit state."""
        return self._state.state

    @property
    def failure_count(self) -> int:
        return self._state.failure_count

    @property
    def opened_at(self) -> Optional[float]:
        return self._state.opened_at

    @property
    def metrics(self) -> Dict[str, Any]:
        """Get circuit breaker metrics."""
        return {
            "name": self.name,
            "state": self._state.state.value,
            "failure_count": self._state.failure_count,
            "total_calls": self._state.total_calls,
            "total_failures": self._state.total_failures,
            "total_successes": self._state.total_successes,
            "total_rejections": self._state.total_rejections,
            "opened_at": self._state.opened_at,
        }

    def reset(self) -> None:
        """Reset to a closed circuit with no failure history."""
        self._state = CircuitBreakerState()
        record_circuit_state(self.name, CircuitState.CLOSED.value)
        logger.info("circuit_reset", provider=self.name)

    async def trip(self, reason: Optional[str] = None) -> None:
        """Force the circuit open; the reset timeout restarts from now."""
        async with self._lock:
            self._state.state = CircuitState.OPEN
            self._state.opened_at = self._clock()
            record_circuit_state(self.name, CircuitState.OPEN.value)
            logger.warning("circuit_tripped", provider=self.name, reason=reason)

    async def _admit(self) -> None:
        """Let the call through or raise CircuitBreakerOpen."""
        async with self._lock:
            self._state.total_calls += 1

            if self._state.state == CircuitState.OPEN:
                elapsed_ms = (self._clock() - self._state.opened_at) * 1000.0
                if elapsed_ms < self.reset_timeout_ms:
                    self._state.total_rejections += 1
                    retry_after = (self.reset_timeout_ms - elapsed_ms) / 1000.0
                    raise CircuitBreakerOpen(self.name, retry_after)

                self._state.state = CircuitState.CLOSED
                record_circuit_state(self.name, CircuitState.CLOSED.value)
                logger.info(
                    "circuit_trial",
                    provider=self.name,
                    failures=self._state.failure_count,
                )

    async def _record_success(self) -> None:
        async with self._lock:
            self._state.total_successes += 1
            self._state.failure_count = 0
            if self._state.state != CircuitState.CLOSED:
                self._state.state = CircuitState.CLOSED
                record_circuit_state(self.name, CircuitState.CLOSED.value)
                logger.info("circuit_closed", provider=self.name)

    async def _record_failure(self, exc: Exception) -> None:
        async with self._lock:
            self._state.total_failures += 1
            self._state.failure_count += 1

            if (
                self._state.state == CircuitState.CLOSED
                and self._state.failure_count >= self.failure_threshold
            ):
                self._state.state = CircuitState.OPEN
                self._state.opened_at = self._clock()
                record_circuit_state(self.name, CircuitState.OPEN.value)
                logger.warning(
                    "circuit_opened",
                    provider=self.name,
                    failures=self._state.failure_count,
                    error=str(exc),
                )

    async def execute(
        self,
        operation: Callable[..., Awaitable[T]],
        *args,
        **kwargs,
    ) -> T:
        """
        Execute an async callable through the circuit breaker.

        Args:
            operation: Async function to execute
            *args: Positional arguments
            **kwargs: Keyword arguments

        Returns:
            Result of operation

        Raises:
            CircuitBreakerOpen: If the circuit is open
        """
        await self._admit()

        try:
            result = await operation(*args, **kwargs)
        except Exception as e:
            await self._record_failure(e)
            raise

        await self._record_success()
        return result
