"""
Resilience Exceptions
=====================
Distinguished errors raised by the remote-call layer itself.

Failures of the wrapped operation are never wrapped in these; they propagate
unchanged so upstream classifiers can still match on transport causes.
"""

from typing import Optional


class ResilienceError(Exception):
    """Base class for errors raised by the resilience layer itself."""
    pass


class SearchDepthTooRestrictive(ResilienceError):
    """Raised when the configured search depth makes retrying futile."""
    
    def __init__(
        self,
        search_depth: float,
        search_depth_type: str,
        min_search_depth: float,
    ):
        self.search_depth = search_depth
        self.search_depth_type = search_depth_type
        self.min_search_depth = min_search_depth
        super().__init__(
            f"Search depth limit too restrictive: {search_depth}h. "
            f"Please increase {search_depth_type} search depth in settings "
            f"(minimum {min_search_depth}h)."
        )


class CircuitBreakerOpen(ResilienceError):
    """Raised when the circuit is open and the call is rejected unattempted."""
    
    def __init__(self, name: Optional[str] = None, retry_after: float = 0.0):
        self.name = name
        self.retry_after = retry_after
        super().__init__("Circuit breaker is OPEN")
