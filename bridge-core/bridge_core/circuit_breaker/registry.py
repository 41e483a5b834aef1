"""
Circuit Breaker Registry
========================
Owned map of provider key to circuit breaker.
"""

from typing import Any, Dict, Iterator, Optional

import structlog

from ..config import ResilienceConfig
from .breaker import CircuitBreaker

logger = structlog.get_logger(__name__)


class BreakerRegistry:
    """
    One circuit breaker per provider key, created on first use.

    Construct one registry at application wiring time and pass it to the
    code paths that talk to providers.
    """

    def __init__(self, config: Optional[ResilienceConfig] = None):
        self.config = config or ResilienceConfig()
        self._breakers: Dict[str, CircuitBreaker] = {}

    def get(
        self,
        provider_key: str,
        failure_threshold: Optional[int] = None,
        reset_timeout_ms: Optional[float] = None,
    ) -> CircuitBreaker:
        """
        Get or create the breaker for a provider.

        Thresholds only apply when the breaker is created.
        """
        breaker = self._breakers.get(provider_key)
        if breaker is None:
            breaker = CircuitBreaker(
                failure_threshold=failure_threshold or self.config.breaker_failure_threshold,
                reset_timeout_ms=(
                    reset_timeout_ms
                    if reset_timeout_ms is not None
                    else self.config.breaker_reset_timeout_ms
                ),
                name=provider_key,
            )
            self._breakers[provider_key] = breaker
            logger.debug("circuit_registered", provider=provider_key)
        return breaker

    def reset(self, provider_key: str) -> None:
        if provider_key in self._breakers:
            self._breakers[provider_key].reset()

    def reset_all(self) -> None:
        for breaker in self._breakers.values():
            breaker.reset()

    def metrics(self) -> Dict[str, Dict[str, Any]]:
        """Get metrics for all registered circuit breakers."""
        return {
            key: breaker.metrics
            for key, breaker in self._breakers.items()
        }

    def __contains__(self, provider_key: str) -> bool:
        return provider_key in self._breakers

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._breakers))

    def __len__(self) -> int:
        return len(self._breakers)
