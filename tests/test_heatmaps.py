"""Tests for heatmap, point and no-data view generation."""

import pytest

from soupheatmap.analysis.filters import build_player_directory
from soupheatmap.core.constants import NO_DATA_MESSAGE, DisplayMode, PointRole, StyleMode
from soupheatmap.visualization.colors import ColorSettings
from soupheatmap.visualization.density import (
    EMPTY_DENSITY,
    DensityEstimator,
    DensityField,
    DualDensity,
)
from soupheatmap.visualization.heatmaps import (
    HeatmapView,
    NoDataView,
    PointsView,
    build_point_markers,
    build_tooltip,
    build_view,
    collect_points,
    colorize_density,
    compute_density,
)
from soupheatmap.visualization.radar import get_map_image_url


@pytest.fixture
def estimator():
    return DensityEstimator()


@pytest.fixture
def settings():
    return ColorSettings(
        low="#000000",
        high="#ffffff",
        kills_low="#000000",
        kills_high="#ff0000",
        deaths_low="#000000",
        deaths_high="#0000ff",
        killer_dot="#ff4655",
        victim_dot="#4455ff",
    )


@pytest.fixture
def directory(players):
    return build_player_directory(players)


class TestCollectPoints:
    """Test transformation of event positions to viewport points."""

    def test_killer_points(self, events):
        points = collect_points(events, "Ascent", use_killer=True)
        assert points.shape == (6, 2)
        assert ((points >= 0) & (points <= 1024)).all()

    def test_sentinel_victim_skipped(self, events):
        """The last event's victim location is (0, 0)."""
        points = collect_points(events, "Ascent", use_killer=False)
        assert points.shape == (5, 2)

    def test_unknown_map_has_no_points(self, events):
        assert collect_points(events, "Nowhere", use_killer=True).shape == (0, 2)

    def test_viewport_scaling(self, make_event):
        points = collect_points([make_event(killer_xy=(2000, -5000))], "Ascent", True, 1024)
        assert points[0][0] == pytest.approx(0.463895 * 1024)
        assert points[0][1] == pytest.approx(0.433242 * 1024)


class TestComputeDensity:
    """Test density dispatch by display mode."""

    def test_kills(self, ascent_match, estimator):
        result = compute_density(ascent_match.kill_events, "Ascent", "kills", estimator)
        assert isinstance(result, DensityField)
        assert result.point_count == 3

    def test_both(self, ascent_match, estimator):
        result = compute_density(ascent_match.kill_events, "Ascent", DisplayMode.BOTH, estimator)
        assert isinstance(result, DualDensity)
        assert result.kills.point_count == 3
        assert result.deaths.point_count == 3

    def test_no_valid_positions(self, make_event, estimator):
        events = [make_event(killer_xy=(0, 0), victim_xy=(-999, -999))]
        assert compute_density(events, "Ascent", DisplayMode.BOTH, estimator) is EMPTY_DENSITY
        assert compute_density(events, "Ascent", DisplayMode.KILLS, estimator) is EMPTY_DENSITY

    def test_one_category_empty(self, make_event, estimator):
        events = [
            make_event(victim_xy=(0, 0)),
            make_event(killer_xy=(1000, -6000), victim_xy=(0, 0)),
        ]
        result = compute_density(events, "Ascent", DisplayMode.BOTH, estimator)
        assert isinstance(result, DualDensity)
        assert result.deaths is EMPTY_DENSITY
        assert result.kills.point_count == 2


class TestColorizeDensity:
    """Test band coloring."""

    def test_single_layer(self, ascent_match, estimator, settings):
        density = compute_density(ascent_match.kill_events, "Ascent", "kills", estimator)
        layers = colorize_density(density, settings, DisplayMode.KILLS, opacity=0.5)

        assert len(layers) == 1
        layer = layers[0]
        assert layer.category == "kills"
        assert layer.opacity == 0.5
        assert len(layer.fills) == len(layer.bands) == 20
        assert layer.domain == (0.0, density.max_density)
        assert layer.fills[0] != layer.fills[-1]

    def test_linked_colors(self, ascent_match, estimator, settings):
        density = compute_density(ascent_match.kill_events, "Ascent", "deaths", estimator)
        layer = colorize_density(density, settings, DisplayMode.DEATHS)[0]
        # Linked gradient is black to white: every fill is gray
        assert all(fill[1:3] == fill[3:5] == fill[5:7] for fill in layer.fills)

    def test_independent_colors(self, ascent_match, estimator, settings):
        settings = settings.update(independent_kills_deaths=True)
        density = compute_density(ascent_match.kill_events, "Ascent", "deaths", estimator)
        layer = colorize_density(density, settings, DisplayMode.DEATHS)[0]
        assert layer.category == "deaths"
        # Deaths gradient is black to blue: red and green stay zero
        assert all(fill.startswith("#0000") for fill in layer.fills)

    def test_dual_layers(self, ascent_match, estimator, settings):
        density = compute_density(ascent_match.kill_events, "Ascent", "both", estimator)
        layers = colorize_density(density, settings, DisplayMode.BOTH, opacity=0.7)

        assert [layer.category for layer in layers] == ["kills", "deaths"]
        assert layers[0].opacity == pytest.approx(0.7)
        assert layers[1].opacity == pytest.approx(0.49)
        assert layers[0].domain == (0.0, density.kills.max_density)
        assert layers[1].domain == (0.0, density.deaths.max_density)

    def test_empty(self, settings):
        assert colorize_density(EMPTY_DENSITY, settings, DisplayMode.KILLS) == []

    def test_recolor_does_not_estimate(self, ascent_match, estimator, settings):
        density = compute_density(ascent_match.kill_events, "Ascent", "kills", estimator)
        misses = estimator.cache.misses
        colorize_density(density, settings.update(high="#00ff00"), DisplayMode.KILLS)
        assert estimator.cache.misses == misses


class TestPointMarkers:
    """Test point mode markers, arrows and tooltips."""

    def test_kills_mode(self, ascent_match, directory, settings):
        markers, arrows = build_point_markers(
            ascent_match.kill_events, "Ascent", directory, settings, DisplayMode.KILLS
        )
        assert len(markers) == 3
        assert all(m.role == PointRole.KILLER for m in markers)
        assert all(m.color == "#ff4655" for m in markers)
        assert arrows == []

    def test_both_mode(self, ascent_match, directory, settings):
        markers, arrows = build_point_markers(
            ascent_match.kill_events, "Ascent", directory, settings, DisplayMode.BOTH
        )
        assert len(markers) == 6
        assert len(arrows) == 3
        assert all(a.visible for a in arrows)
        assert arrows[0].killer_color == "#ff4655"
        assert arrows[0].victim_color == "#4455ff"

    def test_context_adds_other_role_and_arrows(self, ascent_match, directory, settings):
        markers, arrows = build_point_markers(
            ascent_match.kill_events,
            "Ascent",
            directory,
            settings,
            DisplayMode.DEATHS,
            show_context=True,
        )
        assert {m.role for m in markers} == {PointRole.KILLER, PointRole.VICTIM}
        assert len(arrows) == 3

    def test_hidden_arrows(self, ascent_match, directory, settings):
        _, arrows = build_point_markers(
            ascent_match.kill_events,
            "Ascent",
            directory,
            settings,
            DisplayMode.BOTH,
            show_arrows=False,
        )
        assert len(arrows) == 3
        assert not any(a.visible for a in arrows)

    def test_event_missing_either_position_skipped(self, make_event, directory, settings):
        events = [
            make_event(victim_xy=(0, 0)),
            make_event(killer_xy=(1000, -6000)),
        ]
        markers, _ = build_point_markers(events, "Ascent", directory, settings, DisplayMode.KILLS)
        assert len(markers) == 1
        assert markers[0].event_index == 0

    def test_markers_share_event_index(self, ascent_match, directory, settings):
        markers, arrows = build_point_markers(
            ascent_match.kill_events, "Ascent", directory, settings, DisplayMode.BOTH
        )
        assert [m.event_index for m in markers] == [0, 0, 1, 1, 2, 2]
        assert [a.event_index for a in arrows] == [0, 1, 2]

    def test_tooltip(self, make_event, directory):
        event = make_event("p1", "p2", None, round_num=4, time_ms=61_999)
        tooltip = build_tooltip(event, directory)
        assert tooltip.killer.name == "P1#NA1"
        assert tooltip.victim.agent == "Sova"
        assert tooltip.weapon == "Unknown"
        assert tooltip.round == 5
        assert tooltip.seconds == 61
        assert "Round: 5" in tooltip.lines()

    def test_tooltip_unknown_player(self, make_event):
        tooltip = build_tooltip(make_event("zz", "yy"), {})
        assert tooltip.killer.name == "Unknown"
        assert tooltip.victim.team == "Unknown"


class TestBuildView:
    """Test view assembly for every display state."""

    @pytest.mark.parametrize("display_mode", list(DisplayMode))
    @pytest.mark.parametrize("style_mode", list(StyleMode))
    def test_every_state_yields_a_view(
        self, ascent_match, estimator, settings, directory, display_mode, style_mode
    ):
        view = build_view(
            list(ascent_match.kill_events),
            "Ascent",
            display_mode,
            style_mode,
            estimator,
            settings,
            directory,
        )
        expected = HeatmapView if style_mode == StyleMode.HEATMAP else PointsView
        assert isinstance(view, expected)
        assert view.map_image == get_map_image_url("Ascent")

    @pytest.mark.parametrize("style_mode", list(StyleMode))
    def test_no_events(self, estimator, settings, style_mode):
        view = build_view([], "Ascent", "kills", style_mode, estimator, settings)
        assert isinstance(view, NoDataView)
        assert view.message == NO_DATA_MESSAGE == "No position data available for this view"

    def test_points_without_positions(self, make_event, estimator, settings):
        events = [make_event(killer_xy=(0, 0))]
        view = build_view(events, "Ascent", "kills", "points", estimator, settings)
        assert isinstance(view, NoDataView)

    def test_heatmap_without_positions(self, make_event, estimator, settings):
        events = [make_event(killer_xy=(-999, -999))]
        view = build_view(events, "Ascent", "kills", "heatmap", estimator, settings)
        assert isinstance(view, NoDataView)

    def test_heatmap_view_contents(self, ascent_match, estimator, settings):
        view = build_view(
            list(ascent_match.kill_events), "Ascent", "both", "heatmap", estimator, settings
        )
        data = view.to_dict()
        assert data["kind"] == "heatmap"
        assert len(data["layers"]) == 2
        assert data["theme"]["--gradient-end"] == "#0000ff"
        assert [entry["label"] for entry in data["legend"]] == ["Kills", "Deaths"]
        band = data["layers"][0]["bands"][0]
        assert band["type"] == "MultiPolygon"
        assert band["fill"].startswith("#")

    def test_points_view_contents(self, ascent_match, estimator, settings, directory):
        view = build_view(
            list(ascent_match.kill_events),
            "Ascent",
            "kills",
            "points",
            estimator,
            settings,
            directory,
            show_context=True,
        )
        data = view.to_dict()
        assert data["kind"] == "points"
        assert len(data["markers"]) == 6
        assert len(data["arrows"]) == 3
        assert data["markers"][0]["tooltip"]["killer"]["name"] == "P1#NA1"

    def test_bandwidth_override(self, ascent_match, estimator, settings):
        view = build_view(
            list(ascent_match.kill_events),
            "Ascent",
            "kills",
            "heatmap",
            estimator,
            settings,
            bandwidth=33.0,
        )
        assert view.layers[0].bandwidth == 33.0
