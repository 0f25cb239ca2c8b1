"""Object cache used to avoid re-issuing identical content service calls.

Entries are treated as immutable snapshots: callers must not mutate a value
after storing it or after reading it back.
"""

import hashlib
import json
import time
from dataclasses import dataclass
from typing import Any, Protocol

import structlog

logger = structlog.get_logger()


class ObjectCache(Protocol):
    """Opaque key -> value store with per-entry TTL."""

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when missing or expired."""
        ...

    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store a value for ``ttl`` seconds."""
        ...


@dataclass
class _CacheEntry:
    value: Any
    expires_at: float


class InMemoryCache:
    """Process-local TTL cache.

    Expired entries are evicted lazily on access and whenever the cache
    grows past ``max_entries``.
    """

    def __init__(self, max_entries: int = 512) -> None:
        self._entries: dict[str, _CacheEntry] = {}
        self._max_entries = max_entries

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= time.monotonic():
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl: float) -> None:
        if ttl <= 0:
            return
        if len(self._entries) >= self._max_entries:
            self._evict(time.monotonic())
        self._entries[key] = _CacheEntry(value=value, expires_at=time.monotonic() + ttl)

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _evict(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if e.expires_at <= now]
        for key in expired:
            del self._entries[key]

        # Still full: drop the entries closest to expiry
        overflow = len(self._entries) - self._max_entries + 1
        if overflow > 0:
            oldest = sorted(self._entries, key=lambda k: self._entries[k].expires_at)
            for key in oldest[:overflow]:
                del self._entries[key]

        logger.debug("Cache evicted", expired=len(expired), remaining=len(self._entries))


def make_cache_key(prefix: str, *parts: object) -> str:
    """Build a deterministic cache key from request parameters.

    Parts are serialised as JSON and hashed, so separators inside a slug or
    term cannot make two different requests share a key. Sets are sorted;
    lists keep their order; an empty sequence is the same as None.
    """
    normalised: list[Any] = []
    for part in parts:
        if isinstance(part, (set, frozenset)):
            part = sorted(str(p) for p in part) or None
        elif isinstance(part, (list, tuple)):
            part = list(part) or None
        normalised.append(part)
    payload = json.dumps(normalised, sort_keys=True, default=str)
    return f"{prefix}:{hashlib.sha256(payload.encode()).hexdigest()}"


# Global cache instance
_object_cache: InMemoryCache | None = None


def get_object_cache() -> InMemoryCache:
    """Get the object cache singleton.

    Returns:
        InMemoryCache instance.
    """
    global _object_cache
    if _object_cache is None:
        _object_cache = InMemoryCache()
    return _object_cache
