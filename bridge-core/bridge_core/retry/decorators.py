"""
Retry Decorator
===============
Decorator form of the search-depth-aware retry executor.
"""

from functools import wraps
from typing import Awaitable, Callable, Optional, TypeVar

from .executor import SearchDepthAwareRetryExecutor
from .policy import RetryPolicy

T = TypeVar("T")


def search_depth_retry(
    executor: SearchDepthAwareRetryExecutor,
    policy: Optional[RetryPolicy] = None,
):
    """
    Decorator to run an async function through a retry executor.

    Usage:
        @search_depth_retry(executor, RetryPolicy(search_depth_type="claim"))
        async def fetch_claims(bridge_address: str):
            ...
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            @wraps(func)
            async def attempt() -> T:
                return await func(*args, **kwargs)

            return await executor.retry(attempt, policy)
        return wrapper
    return decorator
