"""
Resilience Context
==================
Application wiring: one retry executor, one health monitor and one breaker
per provider, constructed together and injected where RPC calls are made.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .circuit_breaker import BreakerRegistry
from .composition import ProviderGuard
from .config import ResilienceConfig
from .health import HealthVerdict, ProviderHealthMonitor
from .retry import RetryPolicy, SearchDepthAwareRetryExecutor
from .retry.depth import DepthGetter

T = TypeVar("T")


@dataclass
class ResilienceContext:
    """
    Shared resilience state for the application.

    Usage:
        resilience = ResilienceContext.build(
            settings.get_history_search_depth,
            settings.get_claim_search_depth,
            ResilienceConfig.from_env(),
        )
        balance = await resilience.call("ETHEREUM", fetch_balance, provider=provider)
    """
    config: ResilienceConfig
    executor: SearchDepthAwareRetryExecutor
    breakers: BreakerRegistry
    monitor: ProviderHealthMonitor

    @classmethod
    def build(
        cls,
        get_history_search_depth: DepthGetter,
        get_claim_search_depth: DepthGetter,
        config: Optional[ResilienceConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> "ResilienceContext":
        config = config or ResilienceConfig()
        return cls(
            config=config,
            executor=SearchDepthAwareRetryExecutor(
                get_history_search_depth,
                get_claim_search_depth,
                config=config,
                sleep=sleep,
            ),
            breakers=BreakerRegistry(config),
            monitor=ProviderHealthMonitor.from_config(config),
        )

    def guard(self, provider_key: str, provider: Any = None) -> ProviderGuard:
        return ProviderGuard(
            provider_key,
            self.breakers.get(provider_key),
            self.monitor,
            provider,
            rate_limit_trip=self.config.breaker_rate_limit_trip,
        )

    async def call(
        self,
        provider_key: str,
        operation: Callable[[], Awaitable[T]],
        policy: Optional[RetryPolicy] = None,
        provider: Any = None,
    ) -> T:
        """Retry session around breaker-guarded, health-recorded attempts."""
        attempt = self.guard(provider_key, provider).wrap(operation)
        return await self.executor.retry(attempt, policy)

    def provider_health(self, provider_key: str) -> HealthVerdict:
        return self.monitor.get_provider_health(provider_key)
