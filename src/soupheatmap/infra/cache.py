"""
In-Memory Caching Module for Density Results

Provides:
- Content-addressable keys (hash of the point array plus estimation parameters)
- Bounded LRU storage of computed density fields
- Hit/miss statistics

Density estimation is the expensive step of the pipeline. Recoloring, opacity
changes and re-renders with unchanged filters must hit this cache; any change
to the point set or bandwidth produces a new key.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import numpy as np

logger = logging.getLogger(__name__)

# Default number of density results kept
DEFAULT_MAX_ENTRIES = 32


@dataclass
class CacheStats:
    """Cache statistics."""

    total_entries: int
    max_entries: int
    hit_count: int = 0
    miss_count: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hit_count + self.miss_count
        return (self.hit_count / total * 100) if total > 0 else 0.0

    def to_dict(self) -> dict:
        return {
            "total_entries": self.total_entries,
            "max_entries": self.max_entries,
            "hit_count": self.hit_count,
            "miss_count": self.miss_count,
            "hit_rate_pct": round(self.hit_rate, 1),
        }


def compute_points_hash(points: np.ndarray, *params: Any) -> str:
    """
    Compute SHA256 hash of a point array and the parameters applied to it.

    Args:
        points: (n, 2) array of viewport coordinates
        *params: Estimation parameters (bandwidth, cell size, ...)

    Returns:
        Hex digest identifying the density input
    """
    array = np.ascontiguousarray(points, dtype=np.float64)
    hasher = hashlib.sha256()
    hasher.update(str(array.shape).encode())
    hasher.update(array.tobytes())
    for param in params:
        hasher.update(b"|")
        hasher.update(repr(param).encode())
    return hasher.hexdigest()


class DensityCache:
    """
    Bounded LRU cache for density estimation results.

    Features:
    - Least recently used entry evicted when full
    - Thread-safe operations
    - Hit/miss accounting for tests and diagnostics
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES):
        """
        Initialize the cache.

        Args:
            max_entries: Maximum number of cached results (at least 1)
        """
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")

        self.max_entries = max_entries
        self._entries: OrderedDict[str, Any] = OrderedDict()
        self._lock = threading.Lock()

        self._hit_count = 0
        self._miss_count = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    @property
    def hits(self) -> int:
        return self._hit_count

    @property
    def misses(self) -> int:
        return self._miss_count

    def get(self, key: str) -> Any | None:
        """Get a cached result, or None on a miss."""
        with self._lock:
            if key not in self._entries:
                self._miss_count += 1
                return None
            self._entries.move_to_end(key)
            self._hit_count += 1
            return self._entries[key]

    def put(self, key: str, value: Any) -> None:
        """Store a result, evicting the least recently used entry if full."""
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted density result {evicted[:12]}")

    def get_or_compute(self, key: str, compute: Callable[[], Any]) -> Any:
        """
        Return the cached result for key, computing and storing it on a miss.

        The computation runs outside the lock; two concurrent misses for the
        same key both compute and the later one wins.
        """
        cached = self.get(key)
        if cached is not None:
            logger.debug(f"Density cache hit for {key[:12]}")
            return cached

        value = compute()
        self.put(key, value)
        return value

    def clear(self) -> None:
        """Clear all cached results and statistics."""
        with self._lock:
            self._entries.clear()
            self._hit_count = 0
            self._miss_count = 0
        logger.debug("Density cache cleared")

    def get_stats(self) -> CacheStats:
        """Get cache statistics."""
        with self._lock:
            return CacheStats(
                total_entries=len(self._entries),
                max_entries=self.max_entries,
                hit_count=self._hit_count,
                miss_count=self._miss_count,
            )
