"""Bounded, time-expiring in-memory cache for lookup results."""

import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from cachetools import Cache

from iplookup.utils.cache_keys import sanitize_key


@dataclass
class CacheEntry:
    """A cached value and its expiry bookkeeping."""

    value: Any
    inserted_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class BaseCache(ABC):
    """Interface for caches used to store lookup data between requests."""

    @abstractmethod
    def has(self, key: str) -> bool:
        """Test whether an unexpired entry exists for `key`."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store `value` under `key`."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under `key`, or `default` if absent."""


class DefaultCache(BaseCache):
    """In-memory cache with a global per-entry TTL and a maximum entry count."""

    def __init__(
        self,
        maxsize: int,
        ttl: float,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            maxsize: Maximum number of entries in the cache.
            ttl: Time-to-live in seconds for cache entries.
            timer: Clock used for expiry, in seconds.
        """
        if maxsize <= 0:
            msg = f"Cache maxsize must be positive, got {maxsize}"
            raise ValueError(msg)
        if ttl < 0:
            msg = f"Cache ttl must not be negative, got {ttl}"
            raise ValueError(msg)

        self.maxsize = maxsize
        self.ttl = ttl
        self.timer = timer
        # Plain Cache evicts via Mapping.popitem, i.e. oldest insertion first, and an
        # overwrite keeps its slot. FIFOCache would move overwritten keys to the end.
        self._entries: Cache = Cache(maxsize=maxsize)
        self._lock = threading.Lock()

    def has(self, key: str) -> bool:
        """Check if an unexpired entry exists for `key`.

        Args:
            key: Raw lookup key; normalized before use.

        Returns:
            True if cached and not expired.
        """
        with self._lock:
            return self._live_entry(sanitize_key(key)) is not None

    def set(self, key: str, value: Any) -> None:
        """Cache a lookup result.

        A repeated set refreshes the entry's expiry but keeps its eviction
        position. When the cache is full the oldest-inserted entry goes,
        whether or not it has expired yet.

        Args:
            key: Raw lookup key; normalized before use.
            value: The data to cache.
        """
        name = sanitize_key(key)
        with self._lock:
            now = self.timer()
            self._entries[name] = CacheEntry(value=value, inserted_at=now, expires_at=now + self.ttl)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a cached value.

        Args:
            key: Raw lookup key; normalized before use.
            default: Returned when the key is unknown or expired.

        Returns:
            The cached value, or `default`.
        """
        with self._lock:
            entry = self._live_entry(sanitize_key(key))
        if entry is None:
            return default
        return entry.value

    def delete(self, key: str) -> None:
        """Remove the entry for `key`, if any."""
        with self._lock:
            self._entries.pop(sanitize_key(key), None)

    def clear(self) -> None:
        """Clear all cached entries."""
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        """Get the current number of stored entries, expired ones included."""
        with self._lock:
            return len(self._entries)

    def keys(self) -> list[str]:
        """Stored (normalized) keys, oldest insertion first."""
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def _live_entry(self, name: str) -> CacheEntry | None:
        # Caller holds the lock.
        entry = self._entries.get(name)
        if entry is None:
            return None
        if entry.is_expired(self.timer()):
            del self._entries[name]
            return None
        return entry

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(maxsize={self.maxsize}, ttl={self.ttl})"
