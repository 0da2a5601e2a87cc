"""
In-memory TTL cache for expensive derived results.

Each result type gets its own ``TTLCache``. Entries carry an absolute
expiry timestamp and are checked lazily at read time; nothing sweeps the
map in the background, so a stale entry lives until the next read for its
key replaces it (or until ``purge_expired`` is called explicitly).

Concurrent requests may race on the same missing key. Each one recomputes
and overwrites the entry; there is no in-flight deduplication. The
internal lock only guards dict access and is never held while a value is
being computed.
"""
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Generic, Optional, TypeVar

from paddock.config import cfg
from paddock.utils.logger import logger
from paddock.utils.time_utils import utc_now

T = TypeVar("T")

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached value and the moment it stops being fresh."""

    value: T
    expires_at: datetime

    @classmethod
    def new(cls, value: T, ttl_seconds: int, now: Optional[datetime] = None) -> "CacheEntry[T]":
        now = now or utc_now()
        return cls(value=value, expires_at=now + timedelta(seconds=ttl_seconds))

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utc_now()) > self.expires_at


class TTLCache(Generic[T]):
    """
    Thread-safe key -> CacheEntry map with lazy expiry.

    Args:
        name: Label used in log lines.
        default_ttl: TTL applied by ``get_or_compute`` when none is given.
        clock: Source of "now"; injectable for tests.
    """

    def __init__(
        self,
        name: str,
        default_ttl: int | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.name = name
        self.default_ttl = default_ttl if default_ttl is not None else cfg.cache.ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry[T]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry[T]]:
        """Return the entry for ``key`` (fresh or stale) without touching it."""
        with self._lock:
            return self._entries.get(key)

    def insert(self, key: str, value: T, ttl_seconds: int) -> CacheEntry[T]:
        """Store ``value`` under ``key``, replacing any existing entry."""
        entry = CacheEntry.new(value, ttl_seconds, now=self._clock())
        with self._lock:
            self._entries[key] = entry
        return entry

    def remove(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def _discard(self, key: str, stale: CacheEntry[T]) -> None:
        # Another thread may have stored a fresh entry since the read
        with self._lock:
            if self._entries.get(key) is stale:
                del self._entries[key]

    def is_expired(self, entry: CacheEntry[T]) -> bool:
        return entry.is_expired(self._clock())

    def get_or_compute(
        self,
        key: str,
        compute: Callable[[], T],
        ttl_seconds: int | None = None,
    ) -> T:
        """
        Return the fresh cached value for ``key`` or compute and store a new one.

        If ``compute`` raises, the exception propagates and nothing is
        written, so the next call simply tries again.
        """
        entry = self.get(key)
        if entry is not None:
            if not self.is_expired(entry):
                logger.debug(f"Cache hit: {self.name}[{key}]")
                return entry.value
            logger.debug(f"Cache entry expired: {self.name}[{key}]")
            self._discard(key, entry)
        else:
            logger.debug(f"Cache miss: {self.name}[{key}]")

        value = compute()
        self.insert(key, value, ttl_seconds if ttl_seconds is not None else self.default_ttl)
        return value

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        now = self._clock()
        with self._lock:
            stale = [k for k, e in self._entries.items() if e.is_expired(now)]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug(f"Purged {len(stale)} expired entries from {self.name}")
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
