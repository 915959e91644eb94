"""
SoupHeatMap Infrastructure - Caching and scheduling helpers.

This module contains:
- cache: In-memory LRU cache for density results
- debounce: Trailing-edge debouncer for recolor requests
"""

from soupheatmap.infra.cache import CacheStats, DensityCache, compute_points_hash
from soupheatmap.infra.debounce import Debouncer

__all__ = [
    "CacheStats",
    "DensityCache",
    "Debouncer",
    "compute_points_hash",
]
