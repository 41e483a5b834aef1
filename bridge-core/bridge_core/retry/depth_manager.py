"""
Search Depth Manager
====================
Tracks failures across a multi-call search (e.g. scanning several block
ranges for claims) and decides when the search as a whole should stop.
"""

from typing import Mapping, Optional, Union

import structlog

from .depth import DepthGetter, SearchDepthLimits
from .policy import RetryPolicy, SearchDepthType

logger = structlog.get_logger(__name__)

MAX_ATTEMPTS_PER_POLICY = 5
MAX_FAILURES = 5


class SearchDepthManager:
    """
    Stateful retry budget for one search.

    Unlike the retry executor this object is meant to live for the duration
    of a whole search; create a new one per search.
    """

    def __init__(
        self,
        get_history_search_depth: DepthGetter,
        get_claim_search_depth: DepthGetter,
        max_retries_per_depth: int = 3,
        min_search_depth: Union[float, Mapping[SearchDepthType, float], None] = None,
        base_delay_ms: float = 1000.0,
        max_delay_ms: float = 30000.0,
    ):
        self.limits = SearchDepthLimits(
            get_history_search_depth,
            get_claim_search_depth,
            min_search_depth,
        )
        self.max_retries_per_depth = max_retries_per_depth
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.failure_count = 0
        self.retry_count = 0

    def current_depth(self, depth_type: SearchDepthType = SearchDepthType.HISTORY) -> Optional[float]:
        return self.limits.current(depth_type)

    def can_retry(self, depth_type: SearchDepthType = SearchDepthType.HISTORY) -> bool:
        """Whether another retry is still meaningful for this search."""
        depth = self.limits.current(depth_type)
        if self.limits.is_below_floor(depth_type, depth):
            logger.info(
                "search_depth_too_restrictive",
                search_depth=depth,
                search_depth_type=SearchDepthType(depth_type).value,
            )
            return False

        if self.retry_count >= self.max_retries_per_depth:
            logger.info("search_retries_exhausted", retries=self.retry_count)
            return False

        return True

    def on_success(self) -> None:
        self.failure_count = 0
        self.retry_count = 0

    def on_failure(self) -> None:
        self.failure_count += 1
        self.retry_count += 1

    def should_stop_searching(self, depth_type: SearchDepthType = SearchDepthType.HISTORY) -> bool:
        return not self.can_retry(depth_type) or self.failure_count >= MAX_FAILURES

    def get_retry_policy(self, depth_type: SearchDepthType = SearchDepthType.HISTORY) -> RetryPolicy:
        """Policy sized to the retries this search has left (at least one attempt)."""
        remaining = self.max_retries_per_depth - self.retry_count
        return RetryPolicy(
            max_attempts=max(1, min(MAX_ATTEMPTS_PER_POLICY, remaining)),
            base_delay_ms=self.base_delay_ms,
            max_delay_ms=self.max_delay_ms,
            search_depth_type=depth_type,
        )
