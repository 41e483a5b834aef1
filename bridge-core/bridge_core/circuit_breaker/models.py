"""
Circuit Breaker Models
======================
State enum and runtime state for the circuit breaker.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CircuitState(str, Enum):
    """Circuit breaker states."""
    CLOSED = "closed"    # Calls pass through
    OPEN = "open"        # Calls are rejected unattempted


@dataclass
class CircuitBreakerState:
    """Runtime state of a circuit breaker."""
    state: CircuitState = CircuitState.CLOSED
    failure_count: int = 0                 # consecutive failures
    opened_at: Optional[float] = None      # monotonic seconds

    # Metrics
    total_calls: int = 0
    total_failures: int = 0
    total_successes: int = 0
    total_rejections: int = 0
