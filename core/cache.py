"""
Core Module - TTL Cache.

============================================================
RESPONSIBILITY
============================================================
Short-lived cache for SourceScore / FusionResult values.

- Injected into scorers and analyzers by the caller
- Read concurrently by many tasks
- Writes are idempotent key-based upserts

The caller owns the cache and decides its lifetime. No
component creates a process-wide cache on its own.

============================================================
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

from .clock import ClockProtocol, SystemClock


logger = logging.getLogger(__name__)


# ============================================================
# CACHE PROTOCOL
# ============================================================

class CacheProtocol(ABC):
    """Minimal cache interface consumed by the engine."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the cached value or None when absent/expired."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store value under key for ttl seconds (None = cache default)."""
        pass


# ============================================================
# IN-MEMORY IMPLEMENTATION
# ============================================================

class InMemoryTTLCache(CacheProtocol):
    """
    Dictionary-backed cache with per-entry expiry.

    Expired entries are dropped lazily on read and in bulk
    by cleanup().
    """

    DEFAULT_TTL = 300  # 5 minutes

    def __init__(
        self,
        default_ttl: Optional[float] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self.default_ttl = default_ttl if default_ttl is not None else self.DEFAULT_TTL
        self._clock = clock or SystemClock()
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._stats = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "expired": 0,
        }

    def get(self, key: str) -> Optional[Any]:
        now = self._clock.timestamp()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats["misses"] += 1
                return None

            value, expires_at = entry
            if now >= expires_at:
                del self._entries[key]
                self._stats["expired"] += 1
                self._stats["misses"] += 1
                return None

            self._stats["hits"] += 1

        logger.debug(f"Cache hit: {key}")
        return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        if ttl <= 0:
            return
        expires_at = self._clock.timestamp() + ttl
        with self._lock:
            self._entries[key] = (value, expires_at)
            self._stats["sets"] += 1

    def invalidate(self, key: str) -> bool:
        """Remove a single entry. Returns True if it existed."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def cleanup(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        now = self._clock.timestamp()
        with self._lock:
            expired = [k for k, (_, exp) in self._entries.items() if now >= exp]
            for k in expired:
                del self._entries[k]
            self._stats["expired"] += len(expired)
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            stats = dict(self._stats)
            size = len(self._entries)
        lookups = stats["hits"] + stats["misses"]
        return {
            **stats,
            "size": size,
            "hit_rate_pct": round(stats["hits"] / lookups * 100, 2) if lookups > 0 else 0,
        }


class NullCache(CacheProtocol):
    """Cache that never stores anything."""

    def get(self, key: str) -> Optional[Any]:
        return None

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        return None


__all__ = [
    "CacheProtocol",
    "InMemoryTTLCache",
    "NullCache",
]
