"""
Kernel Density Estimation for Kill/Death Heatmaps

Turns a set of viewport-space points into a continuous intensity surface and
extracts nested contour bands from it:

1. Bin the points into a fixed grid covering the whole viewport
2. Smooth with a Gaussian kernel (scipy.ndimage.gaussian_filter)
3. Convert counts to points per square pixel
4. Trace iso-lines at increasing thresholds with marching squares
   (skimage.measure.find_contours) and group the rings into polygons with
   holes

Empty input is never an error: it produces EMPTY_DENSITY.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, ClassVar

import numpy as np
from matplotlib.path import Path as MplPath
from scipy.ndimage import gaussian_filter
from skimage import measure

from soupheatmap.core.config import DensityConfig
from soupheatmap.core.utils import PerformanceMonitor
from soupheatmap.infra.cache import DensityCache, compute_points_hash

logger = logging.getLogger(__name__)

Ring = tuple[tuple[float, float], ...]


# ============================================================================
# Result types
# ============================================================================


@dataclass(frozen=True)
class Polygon:
    """One filled region: an exterior ring with zero or more holes."""

    exterior: Ring
    holes: tuple[Ring, ...] = ()

    def to_coordinates(self) -> list[list[list[float]]]:
        return [[list(p) for p in ring] for ring in (self.exterior, *self.holes)]


@dataclass(frozen=True)
class ContourBand:
    """Region where the density is at least `value`."""

    value: float
    polygons: tuple[Polygon, ...]

    def to_geojson(self) -> dict:
        return {
            "type": "MultiPolygon",
            "value": self.value,
            "coordinates": [polygon.to_coordinates() for polygon in self.polygons],
        }


@dataclass(frozen=True)
class DensityField:
    """A computed density surface and its contour bands."""

    bandwidth: float
    cell_size: int
    viewport_size: int
    shape: tuple[int, int]  # (rows, cols) of the grid
    max_density: float
    bands: tuple[ContourBand, ...]
    point_count: int
    grid: np.ndarray = field(repr=False, compare=False)

    is_empty: ClassVar[bool] = False

    @property
    def domain(self) -> tuple[float, float]:
        """Color domain: zero to the maximum observed density."""
        return (0.0, self.max_density)

    @property
    def thresholds(self) -> list[float]:
        return [band.value for band in self.bands]

    def to_geojson(self) -> list[dict]:
        return [band.to_geojson() for band in self.bands]

    def to_dict(self) -> dict:
        return {
            "bandwidth": self.bandwidth,
            "cell_size": self.cell_size,
            "viewport_size": self.viewport_size,
            "shape": list(self.shape),
            "max_density": self.max_density,
            "point_count": self.point_count,
            "bands": self.to_geojson(),
        }


@dataclass(frozen=True)
class EmptyDensity:
    """Explicit "nothing to draw" result."""

    is_empty: ClassVar[bool] = True
    bands: ClassVar[tuple] = ()
    max_density: ClassVar[float] = 0.0

    def to_geojson(self) -> list[dict]:
        return []

    def to_dict(self) -> dict:
        return {"empty": True}


EMPTY_DENSITY = EmptyDensity()


@dataclass(frozen=True)
class DualDensity:
    """Kills and deaths estimated independently; either side may be empty."""

    kills: DensityField | EmptyDensity
    deaths: DensityField | EmptyDensity

    is_empty: ClassVar[bool] = False

    def to_dict(self) -> dict:
        return {"kills": self.kills.to_dict(), "deaths": self.deaths.to_dict()}


DensityResult = DensityField | EmptyDensity | DualDensity


# ============================================================================
# Estimation
# ============================================================================


def as_point_array(points: Any) -> np.ndarray:
    """Coerce a point sequence or array to an (n, 2) float array."""
    array = np.asarray(points, dtype=np.float64)
    if array.size == 0:
        return np.empty((0, 2), dtype=np.float64)
    return array.reshape(-1, 2)


def default_bandwidth(
    points: np.ndarray,
    min_bandwidth: float = 15.0,
    spread_factor: float = 0.03,
) -> float:
    """
    Bandwidth that scales with how spread out the points are.

    max(min_bandwidth, spread_factor * mean(x spread, y spread))
    """
    if len(points) == 0:
        return min_bandwidth
    spreads = points.max(axis=0) - points.min(axis=0)
    return max(min_bandwidth, spread_factor * float(spreads.mean()))


def _to_viewport(contour: np.ndarray, cell_size: int) -> Ring:
    # Contours are traced on a grid padded by one cell; sample k sits at the
    # center of cell k - 1
    rows = (contour[:, 0] - 0.5) * cell_size
    cols = (contour[:, 1] - 0.5) * cell_size
    return tuple(zip(cols.tolist(), rows.tolist(), strict=True))


def _group_rings(rings: list[Ring]) -> tuple[Polygon, ...]:
    """
    Group closed, non-crossing rings into polygons by containment depth.

    Even depth rings are exteriors; odd depth rings are holes of the
    enclosing ring one level up.
    """
    if not rings:
        return ()

    paths = [MplPath(np.asarray(ring)) for ring in rings]
    # Rings at one level never cross, so a single vertex decides containment
    contained_in: list[list[int]] = [
        [j for j, path in enumerate(paths) if j != i and path.contains_point(rings[i][0])]
        for i in range(len(rings))
    ]
    depth = [len(parents) for parents in contained_in]

    holes: dict[int, list[Ring]] = {i: [] for i, d in enumerate(depth) if d % 2 == 0}
    for i, parents in enumerate(contained_in):
        if depth[i] % 2 == 1:
            parent = next(j for j in parents if depth[j] == depth[i] - 1)
            holes[parent].append(rings[i])

    return tuple(
        Polygon(exterior=rings[i], holes=tuple(ring_holes)) for i, ring_holes in holes.items()
    )


def _compute_field(points: np.ndarray, bandwidth: float, config: DensityConfig) -> DensityField:
    cell = config.cell_size
    n_cells = math.ceil(config.viewport_size / cell)
    extent = n_cells * cell

    counts, _, _ = np.histogram2d(
        points[:, 1],
        points[:, 0],
        bins=n_cells,
        range=[[0, extent], [0, extent]],
    )
    grid = gaussian_filter(counts, sigma=bandwidth / cell, mode="constant") / (cell * cell)
    max_density = float(grid.max())

    padded = np.pad(grid, 1)
    bands = []
    for k in range(1, config.levels + 1):
        threshold = max_density * k / (config.levels + 1)
        rings = [
            _to_viewport(contour, cell)
            for contour in measure.find_contours(padded, threshold)
            if len(contour) >= 4
        ]
        bands.append(ContourBand(value=threshold, polygons=_group_rings(rings)))

    return DensityField(
        bandwidth=bandwidth,
        cell_size=cell,
        viewport_size=config.viewport_size,
        shape=grid.shape,
        max_density=max_density,
        bands=tuple(bands),
        point_count=len(points),
        grid=grid,
    )


def resolve_bandwidth(
    points: np.ndarray, bandwidth: float | None, config: DensityConfig
) -> float:
    """Caller bandwidth unchanged, or the spread-based default."""
    if bandwidth is None:
        return default_bandwidth(points, config.min_bandwidth, config.spread_factor)
    if bandwidth <= 0:
        raise ValueError(f"Bandwidth must be positive, got {bandwidth}")
    return float(bandwidth)


def estimate_density(
    points: Sequence[tuple[float, float]] | np.ndarray,
    bandwidth: float | None = None,
    config: DensityConfig | None = None,
) -> DensityField | EmptyDensity:
    """
    Estimate a density field from viewport-space points (uncached).

    Args:
        points: (x, y) pairs in viewport pixels
        bandwidth: Kernel bandwidth in pixels; None for the spread-based default
        config: Grid and bandwidth parameters

    Returns:
        DensityField, or EMPTY_DENSITY when there are no points

    Raises:
        ValueError: If points are present and bandwidth is given and not positive
    """
    config = config or DensityConfig()
    array = as_point_array(points)
    if len(array) == 0:
        return EMPTY_DENSITY

    resolved = resolve_bandwidth(array, bandwidth, config)

    with PerformanceMonitor(f"density estimation ({len(array)} points)"):
        return _compute_field(array, resolved, config)


class DensityEstimator:
    """
    Memoizing front end to estimate_density.

    Results are keyed on the point coordinates, the resolved bandwidth and the
    grid parameters, so repeated renders with unchanged inputs reuse them.
    """

    def __init__(self, config: DensityConfig | None = None, cache: DensityCache | None = None):
        self.config = config or DensityConfig()
        self.cache = cache or DensityCache(self.config.cache_entries)

    def cache_key(self, points: np.ndarray, bandwidth: float) -> str:
        return compute_points_hash(
            points,
            bandwidth,
            self.config.cell_size,
            self.config.viewport_size,
            self.config.levels,
        )

    def estimate(
        self,
        points: Sequence[tuple[float, float]] | np.ndarray,
        bandwidth: float | None = None,
    ) -> DensityField | EmptyDensity:
        """Cached estimate_density for one point set."""
        array = as_point_array(points)
        if len(array) == 0:
            return EMPTY_DENSITY

        resolved = resolve_bandwidth(array, bandwidth, self.config)

        key = self.cache_key(array, resolved)
        return self.cache.get_or_compute(
            key, lambda: estimate_density(array, resolved, self.config)
        )

    def estimate_categories(
        self,
        kill_points: Sequence[tuple[float, float]] | np.ndarray,
        death_points: Sequence[tuple[float, float]] | np.ndarray,
        bandwidth: float | None = None,
    ) -> DualDensity | EmptyDensity:
        """
        Estimate kills and deaths independently.

        Returns EMPTY_DENSITY only when both sets are empty; otherwise a
        DualDensity whose empty side (if any) is EMPTY_DENSITY.
        """
        kills = self.estimate(kill_points, bandwidth)
        deaths = self.estimate(death_points, bandwidth)

        if kills.is_empty and deaths.is_empty:
            return EMPTY_DENSITY
        return DualDensity(kills=kills, deaths=deaths)
