"""
Provider Health Models
======================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
import time

from pydantic import BaseModel


class HealthVerdict(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    RATE_LIMITED = "rate_limited"


@dataclass(frozen=True)
class ProviderHealthSample:
    """One recorded call outcome."""
    provider_key: str
    provider: Any                  # identity only, never inspected
    success: bool
    duration_ms: float
    error: Any = None
    rate_limited: bool = False
    recorded_at: float = field(default_factory=time.time)


class ProviderHealthStats(BaseModel):
    provider_key: str
    verdict: HealthVerdict
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    rate_limit_errors: int = 0
    average_duration_ms: Optional[float] = None
    last_error: Optional[str] = None
