"""
In-process response cache with TTL and bounded size.

Two caches use this class:
- Integration layer:  llm:{hash(prompt, provider, model, temperature, max_tokens)}
- Orchestrator:       advisor:{advisor_id}:{hash(question)}

Semantics:
- Lazy expiry: an entry older than the TTL is treated as absent at read
  time and removed in the same locked step.
- Size bound: after each insert, entries are evicted oldest-insertion
  first until the cache holds at most `max_entries`.
- Clear drops every entry at once.

The cache is shared by concurrently running pipelines; every operation
holds one lock so "check TTL, maybe delete, else return" is atomic.
"""
import hashlib
import time
from collections import OrderedDict
from threading import Lock
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar

from advisorboard.core.logging import get_logger
from advisorboard.core.metrics import (
    record_cache_eviction,
    record_cache_hit,
    record_cache_miss,
)

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 10 * 60  # 10 minutes
DEFAULT_MAX_ENTRIES = 100

V = TypeVar("V")


def hash_text(text: str) -> str:
    """Generate a stable hash for cache keys."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def make_cache_key(prefix: str, *parts: Any) -> str:
    """
    Build a namespaced cache key from arbitrary parts.

    None parts are kept as empty strings so that (x, None) and (x, "")
    collide, while part boundaries stay unambiguous.
    """
    joined = "\x1f".join("" if part is None else str(part) for part in parts)
    return f"{prefix}:{hash_text(joined)}"


def advisor_cache_key(advisor_id: str, question: str) -> str:
    return f"advisor:{advisor_id}:{hash_text(question)}"


class ResponseCache(Generic[V]):
    """Bounded TTL cache keyed by string."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        cache_type: str = "llm",
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.cache_type = cache_type
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, V]]" = OrderedDict()
        self._lock = Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: str) -> Optional[V]:
        """
        Get a live value.

        Returns:
            Cached value, or None on a miss or an expired entry
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                inserted_at, value = entry
                if self._clock() - inserted_at <= self.ttl_seconds:
                    self._hits += 1
                    record_cache_hit(self.cache_type)
                    return value
                del self._entries[key]
                self._evictions += 1
                record_cache_eviction(self.cache_type, "expired")
            self._misses += 1
            record_cache_miss(self.cache_type)
            return None

    def set(self, key: str, value: V) -> None:
        with self._lock:
            self._entries[key] = (self._clock(), value)
            self._entries.move_to_end(key)
            evicted = 0
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
                evicted += 1
            if evicted:
                self._evictions += evicted
                record_cache_eviction(self.cache_type, "size", evicted)
                logger.debug(
                    "cache_evicted",
                    cache_type=self.cache_type,
                    evicted=evicted,
                    size=len(self._entries),
                )

    def clear(self) -> int:
        """Drop every entry. Returns the number of entries removed."""
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
        logger.info("cache_cleared", cache_type=self.cache_type, removed=removed)
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and self._clock() - entry[0] <= self.ttl_seconds

    def keys(self) -> list:
        """Keys in insertion order, oldest first (expired entries included)."""
        with self._lock:
            return list(self._entries.keys())

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            lookups = self._hits + self._misses
            return {
                "cache_type": self.cache_type,
                "size": len(self._entries),
                "max_entries": self.max_entries,
                "ttl_seconds": self.ttl_seconds,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "hit_rate": self._hits / lookups if lookups else 0.0,
            }
