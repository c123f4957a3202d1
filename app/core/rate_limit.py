"""
Fixed-window rate limiting on top of the `limits` package.

Counters live in whatever storage RATE_LIMIT_STORAGE_URI names: "memory://" keeps them
per process (reset on restart), "redis://..." shares them across workers. Endpoints get the
limiter through the `get_rate_limit_store` dependency so tests and deployments can swap it.
"""

from dataclasses import dataclass
from typing import Optional

from limits import RateLimitItem, RateLimitItemPerSecond
from limits.storage import MemoryStorage, Storage, storage_from_string
from limits.strategies import FixedWindowRateLimiter

from app.core.config import settings


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float


class RateLimitStore:
    """A fixed-window limiter bound to one counter storage."""

    def __init__(self, storage: Optional[Storage] = None) -> None:
        self.storage = storage if storage is not None else MemoryStorage()
        self._strategy = FixedWindowRateLimiter(self.storage)

    @staticmethod
    def _item(limit: int, window_seconds: int) -> RateLimitItem:
        return RateLimitItemPerSecond(limit, window_seconds)

    def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        item = self._item(limit, window_seconds)
        allowed = self._strategy.hit(item, key)
        reset_at, remaining = self._strategy.get_window_stats(item, key)
        return RateLimitResult(allowed=allowed, remaining=max(0, remaining), reset_at=float(reset_at))

    def reset(self, key: str, limit: int, window_seconds: int) -> None:
        self._strategy.clear(self._item(limit, window_seconds), key)


def rate_limit(store: RateLimitStore, key: str, limit: int, window_seconds: int) -> RateLimitResult:
    return store.hit(key, limit, window_seconds)


def store_from_uri(uri: str) -> RateLimitStore:
    return RateLimitStore(storage_from_string(uri))


_default_store = store_from_uri(settings.rate_limit_storage_uri)


def get_rate_limit_store() -> RateLimitStore:
    """FastAPI dependency; override in app.dependency_overrides to use another store."""
    return _default_store
