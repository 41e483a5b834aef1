"""
Search Depth Limits
===================
Read-only view over the externally configured history/claim search depths.
"""

import collections.abc
from typing import Callable, Dict, Mapping, Optional, Union

from .policy import SearchDepthType

DEFAULT_MIN_SEARCH_DEPTH_HOURS = 0.25

DepthGetter = Callable[[], Optional[float]]


class SearchDepthLimits:
    """
    Pairs the two depth getters with the minimum usable depth per type.

    ``min_search_depth`` may be a single floor applied to both types, or a
    mapping of type to floor; a type missing from the mapping has no floor
    and is never judged too restrictive.
    """

    def __init__(
        self,
        get_history_search_depth: DepthGetter,
        get_claim_search_depth: DepthGetter,
        min_search_depth: Union[float, Mapping[SearchDepthType, float], None] = None,
    ):
        self._getters: Dict[SearchDepthType, DepthGetter] = {
            SearchDepthType.HISTORY: get_history_search_depth,
            SearchDepthType.CLAIM: get_claim_search_depth,
        }
        if min_search_depth is None:
            min_search_depth = DEFAULT_MIN_SEARCH_DEPTH_HOURS
        if isinstance(min_search_depth, collections.abc.Mapping):
            self._floors = {
                SearchDepthType(key): float(value)
                for key, value in min_search_depth.items()
            }
        else:
            self._floors = {depth_type: float(min_search_depth) for depth_type in self._getters}

    def current(self, depth_type: SearchDepthType) -> Optional[float]:
        """Current configured depth in hours; None or 0 means unlimited."""
        return self._getters[SearchDepthType(depth_type)]()

    def floor(self, depth_type: SearchDepthType) -> Optional[float]:
        return self._floors.get(SearchDepthType(depth_type))

    def is_below_floor(self, depth_type: SearchDepthType, depth: Optional[float]) -> bool:
        """Whether ``depth`` is too shallow to retry. None or 0 means no limit."""
        floor = self.floor(depth_type)
        if floor is None or not depth:
            return False
        return depth < floor
