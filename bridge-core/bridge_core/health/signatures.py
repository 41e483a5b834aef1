"""
Rate Limit Signatures
=====================
Detect HTTP-429-style rate limiting on opaque error values without
depending on any particular transport library.
"""

import re
from collections.abc import Mapping
from typing import Any

RATE_LIMIT_STATUS = 429

_STATUS_ATTRIBUTES = ("code", "status", "status_code")
_RATE_LIMIT_TEXT = re.compile(r"\b429\b|too many requests|rate limit", re.IGNORECASE)


def _carries_status(candidate: Any) -> bool:
    if candidate is None:
        return False
    for attr in _STATUS_ATTRIBUTES:
        if isinstance(candidate, Mapping):
            value = candidate.get(attr)
        else:
            value = getattr(candidate, attr, None)
        if value == RATE_LIMIT_STATUS or value == str(RATE_LIMIT_STATUS):
            return True
    return False


def is_rate_limit_error(error: Any) -> bool:
    """
    Whether an error looks like the provider rate limited the request.

    Checks ``code``/``status``/``status_code`` on the error and on its
    ``response`` (covers httpx, requests, aiohttp and JSON-RPC error
    payloads), then falls back to the error text.
    """
    if error is None:
        return False

    if _carries_status(error):
        return True

    if isinstance(error, Mapping):
        response = error.get("response")
    else:
        response = getattr(error, "response", None)
    if _carries_status(response):
        return True

    return bool(_RATE_LIMIT_TEXT.search(str(error)))
