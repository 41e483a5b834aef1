"""
Retry Policy
============
Immutable configuration for one search-depth-aware retry session.
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field


class SearchDepthType(str, Enum):
    """Which configured search depth governs a retry session."""
    HISTORY = "history"    # transfer/event history lookups
    CLAIM = "claim"        # claim fetching


@dataclass(frozen=True)
class RetryStatus:
    """Progress report handed to ``on_retry_status`` before each sleep."""
    attempt: int
    max_attempts: int
    delay_ms: float
    search_depth_limit: Optional[float]
    search_depth_type: SearchDepthType
    error: str


class RetryPolicy(BaseModel):
    """
    Retry configuration, validated on construction and frozen afterwards.

    Delays are in milliseconds. The delay after attempt ``n`` is
    ``base_delay_ms * backoff_multiplier ** (n - 1)``, capped at
    ``max_delay_ms`` and, with ``jitter``, stretched by up to 10%.
    """
    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=5, ge=1)
    base_delay_ms: float = Field(default=1000.0, ge=0)
    max_delay_ms: Optional[float] = Field(default=30000.0, ge=0)
    backoff_multiplier: float = Field(default=2.0, ge=1.0)
    jitter: bool = False
    search_depth_type: SearchDepthType = SearchDepthType.HISTORY
    retry_condition: Optional[Callable[[Exception], bool]] = None
    on_retry_status: Optional[Callable[[RetryStatus], None]] = None

    def delay_for(self, attempt: int) -> float:
        """Delay in milliseconds to wait after the given (1-based) attempt fails."""
        delay = self.base_delay_ms * (self.backoff_multiplier ** (attempt - 1))
        if self.max_delay_ms is not None:
            delay = min(delay, self.max_delay_ms)
        if self.jitter:
            delay += random.random() * delay * 0.1
        return delay

    def should_retry(self, error: Exception) -> bool:
        if self.retry_condition is None:
            return True
        return bool(self.retry_condition(error))
