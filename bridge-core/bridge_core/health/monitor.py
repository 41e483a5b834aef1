"""
Provider Health Monitor
=======================
Passive per-provider record of call outcomes, summarized as a verdict on
demand.
"""

import threading
from collections import deque
from typing import Any, Deque, Dict, Iterable, List, Optional

import structlog

from ..config import ResilienceConfig
from ..metrics import record_provider_request
from .models import HealthVerdict, ProviderHealthSample, ProviderHealthStats
from .signatures import is_rate_limit_error

logger = structlog.get_logger(__name__)


class ProviderHealthMonitor:
    """
    Rolling call-outcome samples per provider key.

    Retention: with ``max_samples=None`` (the default) every sample is kept
    for the life of the monitor; with ``max_samples=N`` only the newest N
    samples per key are kept and the verdict reflects just those.
    """

    def __init__(
        self,
        max_samples: Optional[int] = None,
        rate_limit_ratio: float = 0.30,
        rate_limit_warning: int = 5,
    ):
        if max_samples is not None and max_samples < 1:
            raise ValueError("max_samples must be >= 1 or None")
        self.max_samples = max_samples
        self.rate_limit_ratio = rate_limit_ratio
        self.rate_limit_warning = rate_limit_warning
        self._samples: Dict[str, Deque[ProviderHealthSample]] = {}
        self._rate_limited: Dict[str, int] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: ResilienceConfig) -> "ProviderHealthMonitor":
        return cls(
            max_samples=config.health_max_samples,
            rate_limit_ratio=config.health_rate_limit_ratio,
            rate_limit_warning=config.health_rate_limit_warning,
        )

    def record_request(
        self,
        provider_key: str,
        provider: Any,
        success: bool,
        duration_ms: float,
        error: Any = None,
    ) -> None:
        """Record the outcome of one call against ``provider_key``."""
        rate_limited = not success and is_rate_limit_error(error)
        sample = ProviderHealthSample(
            provider_key=provider_key,
            provider=provider,
            success=bool(success),
            duration_ms=max(float(duration_ms), 0.0),
            error=error,
            rate_limited=rate_limited,
        )

        with self._lock:
            samples = self._samples.get(provider_key)
            if samples is None:
                samples = deque(maxlen=self.max_samples)
                self._samples[provider_key] = samples
            if samples.maxlen is not None and len(samples) == samples.maxlen:
                if samples[0].rate_limited:
                    self._rate_limited[provider_key] -= 1
            samples.append(sample)
            if rate_limited:
                self._rate_limited[provider_key] = self._rate_limited.get(provider_key, 0) + 1
            rate_limit_errors = self._rate_limited.get(provider_key, 0)

        record_provider_request(provider_key, sample.success, sample.duration_ms, rate_limited)

        if rate_limited and rate_limit_errors > self.rate_limit_warning:
            logger.warning(
                "provider_rate_limiting",
                provider=provider_key,
                rate_limit_errors=rate_limit_errors,
            )

    def rate_limit_errors(self, provider_key: str) -> int:
        """Rate-limited samples currently retained for a provider."""
        with self._lock:
            return self._rate_limited.get(provider_key, 0)

    def _snapshot(self, provider_key: str) -> List[ProviderHealthSample]:
        with self._lock:
            return list(self._samples.get(provider_key, ()))

    def _verdict(self, samples: List[ProviderHealthSample]) -> HealthVerdict:
        total = len(samples)
        if total == 0:
            return HealthVerdict.HEALTHY

        rate_limited = sum(1 for s in samples if s.rate_limited)
        if rate_limited / total > self.rate_limit_ratio:
            return HealthVerdict.RATE_LIMITED

        successes = sum(1 for s in samples if s.success)
        if successes / total < 1.0:
            return HealthVerdict.DEGRADED

        return HealthVerdict.HEALTHY

    def get_provider_health(self, provider_key: str) -> HealthVerdict:
        """Health verdict for a provider; healthy when nothing was recorded."""
        return self._verdict(self._snapshot(provider_key))

    def get_provider_stats(self, provider_key: str) -> ProviderHealthStats:
        samples = self._snapshot(provider_key)
        successes = sum(1 for s in samples if s.success)
        failures = [s for s in samples if not s.success]

        return ProviderHealthStats(
            provider_key=provider_key,
            verdict=self._verdict(samples),
            total_requests=len(samples),
            successful_requests=successes,
            failed_requests=len(failures),
            rate_limit_errors=sum(1 for s in failures if s.rate_limited),
            average_duration_ms=(
                sum(s.duration_ms for s in samples) / len(samples) if samples else None
            ),
            last_error=str(failures[-1].error) if failures and failures[-1].error is not None else None,
        )

    def last_provider(self, provider_key: str) -> Any:
        """Provider instance attached to the most recent sample, if any."""
        samples = self._snapshot(provider_key)
        return samples[-1].provider if samples else None

    def provider_keys(self) -> Iterable[str]:
        with self._lock:
            return list(self._samples)

    def reset(self, provider_key: Optional[str] = None) -> None:
        """Forget samples for one provider, or for all when no key is given."""
        with self._lock:
            if provider_key is None:
                self._samples.clear()
                self._rate_limited.clear()
            else:
                self._samples.pop(provider_key, None)
                self._rate_limited.pop(provider_key, None)
