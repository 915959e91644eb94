"""Tests for kernel density estimation and contour extraction."""

import math

import numpy as np
import pytest

from soupheatmap.core.config import DensityConfig
from soupheatmap.infra.cache import DensityCache
from soupheatmap.visualization.density import (
    EMPTY_DENSITY,
    DensityEstimator,
    DensityField,
    DualDensity,
    default_bandwidth,
    estimate_density,
)

CENTER_CLUSTER = [(500.0, 500.0), (505.0, 503.0), (498.0, 507.0), (503.0, 496.0)]


def circle_points(cx=512.0, cy=512.0, radius=200.0, n=400):
    angles = np.linspace(0, 2 * np.pi, n, endpoint=False)
    return np.column_stack((cx + radius * np.cos(angles), cy + radius * np.sin(angles)))


class TestBandwidth:
    """Test bandwidth selection."""

    def test_minimum_for_tight_points(self):
        assert default_bandwidth(np.array(CENTER_CLUSTER)) == 15.0

    def test_scales_with_spread(self):
        points = np.array([[0.0, 0.0], [1000.0, 1000.0]])
        assert default_bandwidth(points) == pytest.approx(30.0)

    def test_mean_of_axis_spreads(self):
        points = np.array([[0.0, 0.0], [1000.0, 600.0]])
        assert default_bandwidth(points) == pytest.approx(0.03 * 800)

    def test_caller_bandwidth_used_unchanged(self):
        field = estimate_density(CENTER_CLUSTER, bandwidth=7.5)
        assert field.bandwidth == 7.5

    @pytest.mark.parametrize("bandwidth", [0, -1.0])
    def test_non_positive_bandwidth_raises(self, bandwidth):
        with pytest.raises(ValueError):
            estimate_density(CENTER_CLUSTER, bandwidth=bandwidth)


class TestEmptyInput:
    """No points never produce a field."""

    def test_empty_list(self):
        assert estimate_density([]) is EMPTY_DENSITY

    def test_empty_array(self):
        assert estimate_density(np.empty((0, 2))) is EMPTY_DENSITY

    def test_empty_with_bandwidth(self):
        assert estimate_density([], bandwidth=80.0) is EMPTY_DENSITY

    @pytest.mark.parametrize("bandwidth", [0, -5.0])
    def test_empty_ignores_bandwidth(self, bandwidth):
        assert estimate_density([], bandwidth=bandwidth) is EMPTY_DENSITY
        assert DensityEstimator().estimate([], bandwidth=bandwidth) is EMPTY_DENSITY

    def test_empty_marker(self):
        assert EMPTY_DENSITY.is_empty
        assert EMPTY_DENSITY.bands == ()
        assert EMPTY_DENSITY.to_geojson() == []


class TestDensityField:
    """Test the computed surface and its bands."""

    @pytest.fixture
    def field(self):
        return estimate_density(CENTER_CLUSTER)

    def test_field_shape(self, field):
        assert isinstance(field, DensityField)
        assert not field.is_empty
        assert field.shape == (256, 256)
        assert field.cell_size == 4
        assert field.point_count == 4

    def test_thresholds_inside_domain(self, field):
        values = field.thresholds
        assert len(values) == 20
        assert values == sorted(values)
        assert len(set(values)) == len(values)
        assert all(0 < v < field.max_density for v in values)
        assert field.domain == (0.0, field.max_density)

    def test_density_in_points_per_square_pixel(self, field):
        """The surface integrates to the number of points."""
        total = field.grid.sum() * field.cell_size**2
        assert total == pytest.approx(len(CENTER_CLUSTER), rel=1e-6)

    def test_rings_are_closed_and_in_viewport(self, field):
        for band in field.bands:
            for polygon in band.polygons:
                for ring in (polygon.exterior, *polygon.holes):
                    assert ring[0] == ring[-1]
                    assert len(ring) >= 4
                    for x, y in ring:
                        assert 0 <= x <= 1024
                        assert 0 <= y <= 1024

    def test_single_cluster_has_no_holes(self, field):
        for band in field.bands:
            assert len(band.polygons) == 1
            assert band.polygons[0].holes == ()

    def test_contours_surround_cluster(self, field):
        xs = [x for x, _ in field.bands[0].polygons[0].exterior]
        ys = [y for _, y in field.bands[0].polygons[0].exterior]
        assert min(xs) < 490 and max(xs) > 515
        assert min(ys) < 485 and max(ys) > 520

    def test_separate_clusters_give_separate_polygons(self):
        points = [(100.0, 100.0), (105.0, 102.0), (900.0, 900.0), (902.0, 905.0)]
        field = estimate_density(points, bandwidth=15.0)
        assert len(field.bands[0].polygons) == 2

    def test_ring_of_points_gives_hole(self):
        field = estimate_density(circle_points(), bandwidth=15.0)
        band = field.bands[5]
        assert len(band.polygons) == 1
        assert len(band.polygons[0].holes) == 1

    def test_geojson(self, field):
        features = field.to_geojson()
        assert len(features) == 20
        first = features[0]
        assert first["type"] == "MultiPolygon"
        assert first["value"] == field.bands[0].value
        exterior = first["coordinates"][0][0]
        assert exterior[0] == exterior[-1]

    def test_custom_grid(self):
        config = DensityConfig(viewport_size=512, cell_size=8, levels=5)
        field = estimate_density([(100.0, 100.0)], config=config)
        assert field.shape == (64, 64)
        assert len(field.bands) == 5

    def test_viewport_not_multiple_of_cell(self):
        config = DensityConfig(viewport_size=1000, cell_size=3)
        field = estimate_density([(999.0, 999.0), (1000.0, 1000.0)], config=config)
        assert field.shape == (math.ceil(1000 / 3),) * 2
        assert field.max_density > 0


class TestDensityEstimator:
    """Test memoization and dual-category estimation."""

    @pytest.fixture
    def estimator(self):
        return DensityEstimator(DensityConfig(), DensityCache(max_entries=8))

    def test_same_points_hit_cache(self, estimator):
        first = estimator.estimate(CENTER_CLUSTER)
        second = estimator.estimate(np.array(CENTER_CLUSTER))
        assert second is first
        assert estimator.cache.misses == 1
        assert estimator.cache.hits == 1

    def test_bandwidth_change_recomputes(self, estimator):
        estimator.estimate(CENTER_CLUSTER, bandwidth=20.0)
        field = estimator.estimate(CENTER_CLUSTER, bandwidth=40.0)
        assert field.bandwidth == 40.0
        assert estimator.cache.misses == 2

    def test_point_change_recomputes(self, estimator):
        estimator.estimate(CENTER_CLUSTER)
        estimator.estimate(CENTER_CLUSTER[:3])
        assert estimator.cache.misses == 2

    def test_empty_points_skip_cache(self, estimator):
        assert estimator.estimate([]) is EMPTY_DENSITY
        assert estimator.cache.misses == 0
        assert len(estimator.cache) == 0

    def test_categories_both_empty(self, estimator):
        assert estimator.estimate_categories([], []) is EMPTY_DENSITY

    def test_categories_one_empty(self, estimator):
        result = estimator.estimate_categories([], CENTER_CLUSTER)
        assert isinstance(result, DualDensity)
        assert not result.is_empty
        assert result.kills is EMPTY_DENSITY
        assert isinstance(result.deaths, DensityField)

    def test_categories_independent(self, estimator):
        kills = [(100.0, 100.0), (120.0, 110.0)]
        result = estimator.estimate_categories(kills, CENTER_CLUSTER)
        assert result.kills.point_count == 2
        assert result.deaths.point_count == 4
        assert result.kills.max_density != result.deaths.max_density
