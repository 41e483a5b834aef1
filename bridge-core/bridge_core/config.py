"""
Resilience Configuration
========================
Defaults for retry, circuit breaker and health monitoring, overridable
through environment variables.
"""

import os
from dataclasses import dataclass, fields
from typing import Any, Callable, Optional, TypeVar

T = TypeVar("T")


def _env(name: str, default: T, parse: Callable[[str], T]) -> T:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return parse(raw.strip())
    except ValueError as e:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from e


def _optional_int(raw: str) -> Optional[int]:
    if raw.lower() in ("none", "unbounded", "off"):
        return None
    return int(raw)


def _at_least(minimum: float) -> Callable[[Any], Optional[str]]:
    def check(value: Any) -> Optional[str]:
        if value < minimum:
            return f"must be >= {minimum}"
        return None
    return check


def _optional_at_least(minimum: float) -> Callable[[Any], Optional[str]]:
    required = _at_least(minimum)

    def check(value: Any) -> Optional[str]:
        if value is None:
            return None
        problem = required(value)
        return f"{problem} or None" if problem else None
    return check


def _ratio(value: Any) -> Optional[str]:
    if not 0.0 <= value <= 1.0:
        return "must be between 0 and 1"
    return None


# field name -> (environment variable, parser, validator)
_FIELDS = {
    "max_attempts": ("BRIDGE_RETRY_MAX_ATTEMPTS", int, _at_least(1)),
    "base_delay_ms": ("BRIDGE_RETRY_BASE_DELAY_MS", float, _at_least(0)),
    "max_delay_ms": ("BRIDGE_RETRY_MAX_DELAY_MS", float, _at_least(0)),
    "min_search_depth_hours": ("BRIDGE_MIN_SEARCH_DEPTH_HOURS", float, _at_least(0)),
    "breaker_failure_threshold": ("BRIDGE_BREAKER_FAILURE_THRESHOLD", int, _at_least(1)),
    "breaker_reset_timeout_ms": ("BRIDGE_BREAKER_RESET_TIMEOUT_MS", float, _at_least(0)),
    "breaker_rate_limit_trip": (
        "BRIDGE_BREAKER_RATE_LIMIT_TRIP", _optional_int, _optional_at_least(0)
    ),
    "health_max_samples": ("BRIDGE_HEALTH_MAX_SAMPLES", _optional_int, _optional_at_least(1)),
    "health_rate_limit_ratio": ("BRIDGE_HEALTH_RATE_LIMIT_RATIO", float, _ratio),
    "health_rate_limit_warning": ("BRIDGE_HEALTH_RATE_LIMIT_WARNING", int, _at_least(0)),
}


@dataclass(frozen=True)
class ResilienceConfig:
    """Configuration for the resilient remote-call layer."""
    # Retry
    max_attempts: int = 5
    base_delay_ms: float = 1000.0
    max_delay_ms: float = 30000.0
    min_search_depth_hours: float = 0.25   # 15 minutes

    # Circuit breaker
    breaker_failure_threshold: int = 5
    breaker_reset_timeout_ms: float = 60000.0
    breaker_rate_limit_trip: Optional[int] = 3   # None disables rate-limit tripping

    # Health monitor
    health_max_samples: Optional[int] = None   # None keeps every sample
    health_rate_limit_ratio: float = 0.30
    health_rate_limit_warning: int = 5

    def __post_init__(self):
        for field in fields(self):
            _, _, validate = _FIELDS[field.name]
            problem = validate(getattr(self, field.name))
            if problem:
                raise ValueError(f"{field.name} {problem}")

    @classmethod
    def from_env(cls) -> "ResilienceConfig":
        """
        Build a config from BRIDGE_* environment variables.

        Any unparsable or out-of-range value raises ValueError naming the
        offending variable.
        """
        values = {}
        for name, (env_name, parse, validate) in _FIELDS.items():
            value = _env(env_name, getattr(cls, name), parse)
            problem = validate(value)
            if problem:
                raise ValueError(f"Invalid value for {env_name}: {value!r} ({name} {problem})")
            values[name] = value
        return cls(**values)
