"""
Search-Depth-Aware Retry
========================
Bounded exponential backoff for on-chain reads, aware of the configured
history/claim search depth.
"""

from ..exceptions import SearchDepthTooRestrictive
from .policy import SearchDepthType, RetryPolicy, RetryStatus
from .depth import SearchDepthLimits, DEFAULT_MIN_SEARCH_DEPTH_HOURS
from .executor import SearchDepthAwareRetryExecutor, create_search_depth_aware_retry
from .depth_manager import SearchDepthManager
from .decorators import search_depth_retry

__all__ = [
    # Exceptions
    "SearchDepthTooRestrictive",
    # Policy
    "SearchDepthType",
    "RetryPolicy",
    "RetryStatus",
    # Depth
    "SearchDepthLimits",
    "DEFAULT_MIN_SEARCH_DEPTH_HOURS",
    # Executor
    "SearchDepthAwareRetryExecutor",
    "create_search_depth_aware_retry",
    "SearchDepthManager",
    # Decorator
    "search_depth_retry",
]
