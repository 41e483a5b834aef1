"""
Bridge Core - Circuit Breaker
=============================
Async circuit breaker for RPC provider resilience.

States:

1. CLOSED: Normal operation, calls flow through
2. OPEN: Provider is failing, calls are immediately rejected

Usage:
    from bridge_core.circuit_breaker import BreakerRegistry, CircuitBreakerOpen

    breakers = BreakerRegistry()
    balance = await breakers.get("BSC").execute(fetch_balance, address)
"""

from ..exceptions import CircuitBreakerOpen
from .models import CircuitState, CircuitBreakerState
from .breaker import CircuitBreaker
from .registry import BreakerRegistry

__all__ = [
    # Models
    "CircuitState",
    "CircuitBreakerState",
    "CircuitBreakerOpen",
    # Breaker
    "CircuitBreaker",
    # Registry
    "BreakerRegistry",
]
