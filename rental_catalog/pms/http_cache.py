"""Short-lived response cache for PMS GET requests."""

import time
from collections.abc import Callable, Mapping
from typing import Any

CacheKey = tuple[str, tuple[tuple[str, str], ...]]


def make_cache_key(url: str, params: Mapping[str, Any] | None = None) -> CacheKey:
    """Build a key from the URL and its query parameters, independent of parameter order."""
    items = tuple(sorted((str(k), str(v)) for k, v in (params or {}).items()))
    return url, items


class ResponseCache:
    """In-memory TTL cache of decoded JSON bodies keyed by URL + params.

    Only successful responses are stored. Expired entries are dropped on
    lookup and swept on every store; past ``max_entries`` the oldest entry
    is evicted.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        # Insertion order is expiry order since the TTL is fixed.
        self._entries: dict[CacheKey, tuple[float, Any]] = {}

    def get(self, key: CacheKey) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, payload = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return payload

    def set(self, key: CacheKey, payload: Any) -> None:
        if self.ttl_seconds <= 0 or self.max_entries <= 0:
            return
        now = self._clock()
        self._sweep(now)
        self._entries.pop(key, None)
        while len(self._entries) >= self.max_entries:
            del self._entries[next(iter(self._entries))]
        self._entries[key] = (now + self.ttl_seconds, payload)

    def _sweep(self, now: float) -> None:
        while self._entries:
            oldest = next(iter(self._entries))
            if self._entries[oldest][0] > now:
                break
            del self._entries[oldest]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
