"""
Result cache for audit deduplication.

Maps a fingerprint of (code, file name) to a previously computed
AuditResult. The cache is a performance optimization only: callers behave
the same whether or not an entry survives.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .models import AuditResult

logger = logging.getLogger(__name__)

_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_MASK64 = 0xFFFFFFFFFFFFFFFF


def fingerprint_of(code: str, file_name: str) -> str:
    """
    Deterministic, non-cryptographic fingerprint of a request.

    64-bit FNV-1a over the UTF-8 bytes of the code and the file name,
    separated by a NUL byte so that moving characters between the two
    arguments changes the result.

    Examples:
        >>> fingerprint_of("print(1)", "a.py") == fingerprint_of("print(1)", "a.py")
        True
        >>> fingerprint_of("print(1)", "a.py") == fingerprint_of("print(1)", "b.py")
        False
    """
    value = _FNV64_OFFSET
    for byte in code.encode("utf-8") + b"\x00" + file_name.encode("utf-8"):
        value ^= byte
        value = (value * _FNV64_PRIME) & _MASK64
    return f"{value:016x}"


@dataclass(frozen=True)
class CacheEntry:
    """A cached audit result and the instant it was stored."""

    key: str
    value: AuditResult
    stored_at: float

    def age(self, now: float) -> float:
        return now - self.stored_at


class ResultCache:
    """
    In-memory TTL cache of audit results.

    Entries are replaced, never mutated. Stale entries are evicted lazily on
    lookup, swept on every put, or in bulk by purge_expired().

    Attributes:
        ttl_seconds: Maximum age at which an entry is still served
    """

    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[AuditResult]:
        """
        Return the cached result for key, or None if absent or stale.

        A stale entry is removed, so it cannot be returned again.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.age(self._clock()) < self.ttl_seconds:
                return entry.value
            del self._entries[key]
        logger.debug(f"Evicted expired cache entry {key}")
        return None

    def put(self, key: str, result: AuditResult) -> None:
        """Store result under key with a fresh timestamp, sweeping stale entries."""
        with self._lock:
            now = self._clock()
            expired = self._drop_expired(now)
            self._entries[key] = CacheEntry(key=key, value=result, stored_at=now)
            size = len(self._entries)
        logger.debug(
            f"Cached result {result.id} under {key} "
            f"(cache size: {size}, {expired} expired removed)"
        )

    def purge_expired(self) -> int:
        """
        Remove every stale entry.

        Returns:
            Number of entries removed
        """
        with self._lock:
            expired = self._drop_expired(self._clock())
        if expired:
            logger.debug(f"Purged {expired} expired cache entries")
        return expired

    def size(self) -> int:
        """Number of entries that get() would still serve."""
        with self._lock:
            now = self._clock()
            return sum(1 for e in self._entries.values() if e.age(now) < self.ttl_seconds)

    def _drop_expired(self, now: float) -> int:
        # Caller holds the lock
        expired = [k for k, e in self._entries.items() if e.age(now) >= self.ttl_seconds]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._entries.clear()
        logger.info("Result cache cleared")
