"""
Search-Depth-Aware Retry
========================
Exponential backoff retry that gives up early when the configured search
depth is too narrow for any retry to find the data being sought.
"""

import asyncio
from typing import Awaitable, Callable, Mapping, Optional, TypeVar, Union

import structlog

from ..config import ResilienceConfig
from ..exceptions import SearchDepthTooRestrictive
from ..metrics import record_retry_event
from .depth import DepthGetter, SearchDepthLimits
from .policy import RetryPolicy, RetryStatus, SearchDepthType

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]


class SearchDepthAwareRetryExecutor:
    """
    Retries an async operation with exponential backoff.

    After each failure the current depth for the policy's
    ``search_depth_type`` is read. Below the usable floor the session stops
    at once with ``SearchDepthTooRestrictive``; otherwise the session ends
    when ``max_attempts`` is reached, re-raising the last error unchanged.

    The executor keeps no state between ``retry`` calls, so one instance can
    serve any number of concurrent sessions.

    Example:
        executor = SearchDepthAwareRetryExecutor(
            settings.get_history_search_depth,
            settings.get_claim_search_depth,
        )
        claims = await executor.retry(
            fetch_claims,
            RetryPolicy(max_attempts=3, search_depth_type="claim"),
        )
    """

    def __init__(
        self,
        get_history_search_depth: DepthGetter,
        get_claim_search_depth: DepthGetter,
        min_search_depth: Union[float, Mapping[SearchDepthType, float], None] = None,
        config: Optional[ResilienceConfig] = None,
        default_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config or ResilienceConfig()
        if min_search_depth is None:
            min_search_depth = self.config.min_search_depth_hours
        self.limits = SearchDepthLimits(
            get_history_search_depth,
            get_claim_search_depth,
            min_search_depth,
        )
        self.default_policy = default_policy or RetryPolicy(
            max_attempts=self.config.max_attempts,
            base_delay_ms=self.config.base_delay_ms,
            max_delay_ms=self.config.max_delay_ms,
        )
        self._sleep = sleep

    async def retry(
        self,
        operation: Operation[T],
        policy: Optional[RetryPolicy] = None,
    ) -> T:
        """
        Run ``operation`` until it succeeds or the session is over.

        Args:
            operation: Zero-argument coroutine function performing the call
            policy: Retry policy; the executor's default policy if omitted

        Returns:
            The operation's result

        Raises:
            SearchDepthTooRestrictive: If the depth is below the usable floor
            Exception: The operation's own last error, unwrapped
        """
        policy = policy or self.default_policy
        depth_type = SearchDepthType(policy.search_depth_type)
        name = getattr(operation, "__name__", repr(operation))
        attempt = 0

        while True:
            attempt += 1
            try:
                result = await operation()
            except Exception as e:
                depth = self.limits.current(depth_type)

                if self.limits.is_below_floor(depth_type, depth):
                    floor = self.limits.floor(depth_type)
                    logger.warning(
                        "search_depth_abort",
                        func=name,
                        attempt=attempt,
                        search_depth=depth,
                        search_depth_type=depth_type.value,
                        min_search_depth=floor,
                        error=str(e),
                    )
                    record_retry_event(depth_type.value, "depth_abort")
                    raise SearchDepthTooRestrictive(depth, depth_type.value, floor) from e

                if attempt >= policy.max_attempts:
                    logger.error(
                        "retry_exhausted",
                        func=name,
                        attempts=attempt,
                        search_depth_type=depth_type.value,
                        error=str(e),
                    )
                    record_retry_event(depth_type.value, "exhausted")
                    raise

                if not policy.should_retry(e):
                    logger.warning(
                        "retry_rejected",
                        func=name,
                        attempt=attempt,
                        error=str(e),
                    )
                    record_retry_event(depth_type.value, "rejected")
                    raise

                delay_ms = policy.delay_for(attempt)
                logger.warning(
                    "retry_scheduled",
                    func=name,
                    attempt=attempt,
                    max_attempts=policy.max_attempts,
                    delay_ms=round(delay_ms, 1),
                    search_depth=depth,
                    search_depth_type=depth_type.value,
                    error=str(e),
                )
                record_retry_event(depth_type.value, "retried")

                if policy.on_retry_status is not None:
                    policy.on_retry_status(
                        RetryStatus(
                            attempt=attempt,
                            max_attempts=policy.max_attempts,
                            delay_ms=delay_ms,
                            search_depth_limit=depth,
                            search_depth_type=depth_type,
                            error=str(e),
                        )
                    )

                await self._sleep(delay_ms / 1000.0)
            else:
                if attempt > 1:
                    logger.info("retry_succeeded", func=name, attempts=attempt)
                return result

    __call__ = retry


def create_search_depth_aware_retry(
    get_history_search_depth: DepthGetter,
    get_claim_search_depth: DepthGetter,
    **kwargs,
) -> Callable[..., Awaitable]:
    """
    Build a retry callable bound to the given depth getters.

    Usage:
        retry = create_search_depth_aware_retry(get_history, get_claim)
        transfers = await retry(fetch_transfers, RetryPolicy(base_delay_ms=300))
    """
    executor = SearchDepthAwareRetryExecutor(
        get_history_search_depth,
        get_claim_search_depth,
        **kwargs,
    )
    return executor.retry
