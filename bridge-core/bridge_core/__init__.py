"""
Bridge Core Library
===================
Resilient remote-call layer for the bridge dashboard: search-depth-aware
retries, per-provider circuit breakers and provider health monitoring.
"""

__version__ = "0.1.0"

# Config
from bridge_core.config import ResilienceConfig

# Exceptions
from bridge_core.exceptions import (
    ResilienceError,
    SearchDepthTooRestrictive,
    CircuitBreakerOpen,
)

# Retry
from bridge_core.retry import (
    SearchDepthType,
    RetryPolicy,
    RetryStatus,
    SearchDepthLimits,
    SearchDepthAwareRetryExecutor,
    create_search_depth_aware_retry,
    SearchDepthManager,
    search_depth_retry,
)

# Circuit Breaker
from bridge_core.circuit_breaker import (
    CircuitState,
    CircuitBreaker,
    BreakerRegistry,
)

# Health
from bridge_core.health import (
    HealthVerdict,
    ProviderHealthSample,
    ProviderHealthStats,
    ProviderHealthMonitor,
    is_rate_limit_error,
)

# Composition
from bridge_core.composition import (
    with_circuit_breaker,
    with_health_recording,
    with_search_depth_retry,
    rate_limit_policy,
    ProviderGuard,
)
from bridge_core.context import ResilienceContext

# Metrics
from bridge_core.metrics import get_metrics_text

__all__ = [
    # Config
    "ResilienceConfig",
    # Exceptions
    "ResilienceError",
    "SearchDepthTooRestrictive",
    "CircuitBreakerOpen",
    # Retry
    "SearchDepthType",
    "RetryPolicy",
    "RetryStatus",
    "SearchDepthLimits",
    "SearchDepthAwareRetryExecutor",
    "create_search_depth_aware_retry",
    "SearchDepthManager",
    "search_depth_retry",
    # Circuit Breaker
    "CircuitState",
    "CircuitBreaker",
    "BreakerRegistry",
    # Health
    "HealthVerdict",
    "ProviderHealthSample",
    "ProviderHealthStats",
    "ProviderHealthMonitor",
    "is_rate_limit_error",
    # Composition
    "with_circuit_breaker",
    "with_health_recording",
    "with_search_depth_retry",
    "rate_limit_policy",
    "ProviderGuard",
    "ResilienceContext",
    # Metrics
    "get_metrics_text",
]
