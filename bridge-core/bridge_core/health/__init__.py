"""
Provider Health
===============
Per-provider call outcome tracking and health verdicts.
"""

from .models import HealthVerdict, ProviderHealthSample, ProviderHealthStats
from .signatures import RATE_LIMIT_STATUS, is_rate_limit_error
from .monitor import ProviderHealthMonitor

__all__ = [
    "HealthVerdict",
    "ProviderHealthSample",
    "ProviderHealthStats",
    "RATE_LIMIT_STATUS",
    "is_rate_limit_error",
    "ProviderHealthMonitor",
]
