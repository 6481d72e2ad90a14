"""Bearer-token checks and the write-path rate limiter."""

from __future__ import annotations

import hmac
import math
import time
from typing import Optional

from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

from app.core.errors import RateLimited, Unauthorized


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


def tokens_match(candidate: Optional[str], expected: Optional[str]) -> bool:
    if not candidate or not expected:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


def require_token(expected: Optional[str], authorization: Optional[str], query_token: Optional[str] = None) -> None:
    """Raise ``Unauthorized`` unless the header (or query) token equals ``expected``.

    An unset ``expected`` rejects every caller.
    """
    if tokens_match(extract_bearer(authorization), expected):
        return
    if query_token is not None and tokens_match(query_token, expected):
        return
    raise Unauthorized()


class RateLimiter:
    """Fixed-window counters keyed by caller and route.

    One instance lives on ``app.state``. Counters are kept in a ``limits``
    in-memory storage, which locks around updates and expires windows on its own.
    """

    def __init__(self, storage: Optional[MemoryStorage] = None):
        self._storage = storage or MemoryStorage()
        self._strategy = FixedWindowRateLimiter(self._storage)

    def hit(self, key: str, limit: int, window_seconds: int) -> None:
        """Count one request for ``key``; raise ``RateLimited`` when over ``limit``."""
        item = RateLimitItemPerSecond(limit, window_seconds)
        if self._strategy.hit(item, key):
            return
        stats = self._strategy.get_window_stats(item, key)
        raise RateLimited(max(1, math.ceil(stats.reset_time - time.time())))

    def reset(self) -> None:
        self._storage.reset()
