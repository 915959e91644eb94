"""
Heatmap and Point View Generation for Valorant Match Visualization.

Builds the declarative output handed to the renderer for one display state
(kills / deaths / both x heatmap / points):

- HeatmapView: colored contour layers from the density estimator
- PointsView: killer/victim markers, kill arrows and tooltips
- NoDataView: explicit "nothing to show" marker

Uses coordinate transforms from radar.py (CoordinateTransformer).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass

import numpy as np

from soupheatmap.core.constants import (
    DEATHS_LAYER_OPACITY_FACTOR,
    DEFAULT_OPACITY,
    NO_DATA_MESSAGE,
    UNKNOWN_WEAPON,
    VIEWPORT_SIZE,
    DisplayMode,
    PointRole,
    StyleMode,
)
from soupheatmap.core.schemas import KillEvent, PlayerInfo
from soupheatmap.visualization.colors import (
    ColorScale,
    ColorSettings,
    DerivedTheme,
    LegendEntry,
    build_legend,
    category_colors,
    derive_theme,
    visible_roles,
)
from soupheatmap.visualization.density import (
    ContourBand,
    DensityEstimator,
    DensityField,
    DensityResult,
    DualDensity,
)
from soupheatmap.visualization.radar import CoordinateTransformer, get_map_image_url

logger = logging.getLogger(__name__)

UNKNOWN_PLAYER = PlayerInfo(name="Unknown", agent="Unknown", team="Unknown")


# ============================================================================
# Point collection and density
# ============================================================================


def collect_points(
    events: Sequence[KillEvent],
    map_name: str,
    use_killer: bool,
    viewport_size: int = VIEWPORT_SIZE,
) -> np.ndarray:
    """
    Viewport positions of the killers (use_killer) or victims of events.

    Events whose location is a sentinel, or any event on an unknown map,
    contribute nothing.
    """
    transformer = CoordinateTransformer(map_name, viewport_size)
    positions = []
    for event in events:
        location = event.killer_location if use_killer else event.victim_location
        pos = transformer.game_to_radar(location.x, location.y)
        if pos is not None:
            positions.append(pos.to_tuple())

    if not positions:
        return np.empty((0, 2), dtype=np.float64)
    return np.asarray(positions, dtype=np.float64)


def compute_density(
    events: Sequence[KillEvent],
    map_name: str,
    display_mode: DisplayMode | str,
    estimator: DensityEstimator,
    bandwidth: float | None = None,
) -> DensityResult:
    """
    Density for the active display mode.

    kills/deaths estimate killer/victim positions; both estimates each
    category independently.
    """
    display_mode = DisplayMode(display_mode)
    viewport_size = estimator.config.viewport_size

    if display_mode == DisplayMode.BOTH:
        return estimator.estimate_categories(
            collect_points(events, map_name, True, viewport_size),
            collect_points(events, map_name, False, viewport_size),
            bandwidth,
        )

    use_killer = display_mode == DisplayMode.KILLS
    points = collect_points(events, map_name, use_killer, viewport_size)
    return estimator.estimate(points, bandwidth)


# ============================================================================
# View types
# ============================================================================


@dataclass(frozen=True)
class HeatmapLayer:
    """Contour bands of one category with a fill color per band."""

    category: str  # "kills" or "deaths"
    bands: tuple[ContourBand, ...]
    fills: tuple[str, ...]
    opacity: float
    domain: tuple[float, float]
    bandwidth: float

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "opacity": self.opacity,
            "domain": list(self.domain),
            "bandwidth": self.bandwidth,
            "bands": [
                {**band.to_geojson(), "fill": fill}
                for band, fill in zip(self.bands, self.fills, strict=True)
            ],
        }


@dataclass(frozen=True)
class Tooltip:
    """Hover details of one kill event."""

    killer: PlayerInfo
    victim: PlayerInfo
    weapon: str
    round: int  # 1-based
    seconds: int

    def lines(self) -> list[str]:
        return [
            f"KILLER: {self.killer.name}",
            f"{self.killer.agent} • {self.killer.team}",
            f"VICTIM: {self.victim.name}",
            f"{self.victim.agent} • {self.victim.team}",
            f"Weapon: {self.weapon}",
            f"Round: {self.round}",
            f"Time: {self.seconds}s",
        ]

    def to_dict(self) -> dict:
        return {
            "killer": asdict(self.killer),
            "victim": asdict(self.victim),
            "weapon": self.weapon,
            "round": self.round,
            "seconds": self.seconds,
        }


@dataclass(frozen=True)
class PointMarker:
    """A killer or victim dot."""

    role: PointRole
    x: float
    y: float
    color: str
    event_index: int  # links the marker to its arrow and partner marker
    tooltip: Tooltip


@dataclass(frozen=True)
class KillArrow:
    """Killer to victim line, colored killer_color to victim_color."""

    event_index: int
    start: tuple[float, float]
    end: tuple[float, float]
    killer_color: str
    victim_color: str
    visible: bool


@dataclass(frozen=True)
class HeatmapView:
    map_image: str
    layers: tuple[HeatmapLayer, ...]
    theme: DerivedTheme
    legend: tuple[LegendEntry, ...]

    kind = StyleMode.HEATMAP

    def to_dict(self) -> dict:
        return {
            "kind": str(self.kind),
            "map_image": self.map_image,
            "layers": [layer.to_dict() for layer in self.layers],
            "theme": self.theme.to_css_variables(),
            "legend": [entry.to_dict() for entry in self.legend],
        }


@dataclass(frozen=True)
class PointsView:
    map_image: str
    markers: tuple[PointMarker, ...]
    arrows: tuple[KillArrow, ...]
    theme: DerivedTheme
    legend: tuple[LegendEntry, ...]

    kind = StyleMode.POINTS

    def to_dict(self) -> dict:
        return {
            "kind": str(self.kind),
            "map_image": self.map_image,
            "markers": [
                {
                    "role": str(m.role),
                    "x": round(m.x, 1),
                    "y": round(m.y, 1),
                    "color": m.color,
                    "event_index": m.event_index,
                    "tooltip": m.tooltip.to_dict(),
                }
                for m in self.markers
            ],
            "arrows": [
                {
                    "event_index": a.event_index,
                    "start": list(a.start),
                    "end": list(a.end),
                    "killer_color": a.killer_color,
                    "victim_color": a.victim_color,
                    "visible": a.visible,
                }
                for a in self.arrows
            ],
            "theme": self.theme.to_css_variables(),
            "legend": [entry.to_dict() for entry in self.legend],
        }


@dataclass(frozen=True)
class NoDataView:
    map_image: str
    message: str = NO_DATA_MESSAGE

    kind = "empty"

    def to_dict(self) -> dict:
        return {"kind": self.kind, "map_image": self.map_image, "message": self.message}


View = HeatmapView | PointsView | NoDataView


# ============================================================================
# Heatmap colorization
# ============================================================================


def _layer(category: str, field: DensityField, scale: ColorScale, opacity: float) -> HeatmapLayer:
    return HeatmapLayer(
        category=category,
        bands=field.bands,
        fills=tuple(scale(band.value) for band in field.bands),
        opacity=opacity,
        domain=field.domain,
        bandwidth=field.bandwidth,
    )


def colorize_density(
    density: DensityResult,
    settings: ColorSettings,
    display_mode: DisplayMode | str,
    opacity: float = DEFAULT_OPACITY,
    deaths_opacity_factor: float = DEATHS_LAYER_OPACITY_FACTOR,
) -> list[HeatmapLayer]:
    """
    Assign fill colors to density bands.

    Pure function of a density result and colors; never estimates density.
    In both mode each category is scaled over its own maximum and the deaths
    layer is drawn at opacity * deaths_opacity_factor.
    """
    display_mode = DisplayMode(display_mode)

    if density.is_empty:
        return []

    if isinstance(density, DualDensity):
        scales = category_colors(
            settings,
            DisplayMode.BOTH,
            {"kills": density.kills.max_density, "deaths": density.deaths.max_density},
        )
        layers = []
        if not density.kills.is_empty:
            layers.append(_layer("kills", density.kills, scales["kills"], opacity))
        if not density.deaths.is_empty:
            layers.append(
                _layer("deaths", density.deaths, scales["deaths"], opacity * deaths_opacity_factor)
            )
        return layers

    category = "deaths" if display_mode == DisplayMode.DEATHS else "kills"
    scales = category_colors(settings, display_mode, {"density": density.max_density})
    return [_layer(category, density, scales["density"], opacity)]


# ============================================================================
# Point markers
# ============================================================================


def build_tooltip(event: KillEvent, directory: Mapping[str, PlayerInfo]) -> Tooltip:
    return Tooltip(
        killer=directory.get(event.killer_puuid, UNKNOWN_PLAYER),
        victim=directory.get(event.victim_puuid, UNKNOWN_PLAYER),
        weapon=event.weapon or UNKNOWN_WEAPON,
        round=event.round_num + 1,
        seconds=event.round_time_millis // 1000,
    )


def build_point_markers(
    events: Sequence[KillEvent],
    map_name: str,
    directory: Mapping[str, PlayerInfo],
    settings: ColorSettings,
    display_mode: DisplayMode | str,
    show_context: bool = False,
    show_arrows: bool = True,
    viewport_size: int = VIEWPORT_SIZE,
) -> tuple[list[PointMarker], list[KillArrow]]:
    """
    Markers and arrows for point mode.

    An event is drawn only when both its killer and victim positions
    transform. Arrows exist in both mode or with context enabled; their
    visibility follows show_arrows.

    Returns:
        (markers, arrows)
    """
    display_mode = DisplayMode(display_mode)
    transformer = CoordinateTransformer(map_name, viewport_size)
    show_killer, show_victim = visible_roles(display_mode, show_context)
    with_arrows = display_mode == DisplayMode.BOTH or show_context

    markers: list[PointMarker] = []
    arrows: list[KillArrow] = []
    index = 0

    for event in events:
        killer_pos = transformer.game_to_radar(event.killer_location.x, event.killer_location.y)
        victim_pos = transformer.game_to_radar(event.victim_location.x, event.victim_location.y)
        if killer_pos is None or victim_pos is None:
            continue

        tooltip = build_tooltip(event, directory)

        if with_arrows:
            arrows.append(
                KillArrow(
                    event_index=index,
                    start=killer_pos.to_tuple(),
                    end=victim_pos.to_tuple(),
                    killer_color=settings.killer_dot,
                    victim_color=settings.victim_dot,
                    visible=show_arrows,
                )
            )
        if show_killer:
            markers.append(
                PointMarker(
                    PointRole.KILLER,
                    killer_pos.x,
                    killer_pos.y,
                    settings.killer_dot,
                    index,
                    tooltip,
                )
            )
        if show_victim:
            markers.append(
                PointMarker(
                    PointRole.VICTIM,
                    victim_pos.x,
                    victim_pos.y,
                    settings.victim_dot,
                    index,
                    tooltip,
                )
            )
        index += 1

    logger.debug(f"Built {len(markers)} markers and {len(arrows)} arrows from {len(events)} events")
    return markers, arrows


# ============================================================================
# View assembly
# ============================================================================


def build_heatmap_view(
    density: DensityResult,
    map_name: str,
    settings: ColorSettings,
    display_mode: DisplayMode | str,
    opacity: float = DEFAULT_OPACITY,
    deaths_opacity_factor: float = DEATHS_LAYER_OPACITY_FACTOR,
) -> HeatmapView | NoDataView:
    """Heatmap view from an already computed density result."""
    display_mode = DisplayMode(display_mode)
    map_image = get_map_image_url(map_name)

    if density.is_empty:
        return NoDataView(map_image=map_image)

    layers = colorize_density(density, settings, display_mode, opacity, deaths_opacity_factor)
    return HeatmapView(
        map_image=map_image,
        layers=tuple(layers),
        theme=derive_theme(settings, display_mode, StyleMode.HEATMAP),
        legend=tuple(build_legend(settings, display_mode, StyleMode.HEATMAP)),
    )


def build_points_view(
    events: Sequence[KillEvent],
    map_name: str,
    directory: Mapping[str, PlayerInfo],
    settings: ColorSettings,
    display_mode: DisplayMode | str,
    show_context: bool = False,
    show_arrows: bool = True,
    viewport_size: int = VIEWPORT_SIZE,
) -> PointsView | NoDataView:
    display_mode = DisplayMode(display_mode)
    map_image = get_map_image_url(map_name)

    markers, arrows = build_point_markers(
        events,
        map_name,
        directory,
        settings,
        display_mode,
        show_context,
        show_arrows,
        viewport_size,
    )
    if not markers:
        return NoDataView(map_image=map_image)

    return PointsView(
        map_image=map_image,
        markers=tuple(markers),
        arrows=tuple(arrows),
        theme=derive_theme(settings, display_mode, StyleMode.POINTS),
        legend=tuple(build_legend(settings, display_mode, StyleMode.POINTS, show_context)),
    )


def build_view(
    events: Sequence[KillEvent],
    map_name: str,
    display_mode: DisplayMode | str,
    style_mode: StyleMode | str,
    estimator: DensityEstimator,
    settings: ColorSettings,
    directory: Mapping[str, PlayerInfo] | None = None,
    bandwidth: float | None = None,
    opacity: float = DEFAULT_OPACITY,
    deaths_opacity_factor: float = DEATHS_LAYER_OPACITY_FACTOR,
    show_context: bool = False,
    show_arrows: bool = True,
) -> View:
    """
    Build the view for one display state.

    Args:
        events: Filtered kill events
        map_name: Map of the events
        display_mode: kills, deaths or both
        style_mode: heatmap or points
        estimator: Memoizing density estimator
        settings: Current colors
        directory: Player id to tooltip identity (points only)
        bandwidth: Kernel bandwidth override (heatmap only)
        opacity: Heatmap layer opacity
        deaths_opacity_factor: Deaths layer opacity multiplier in both mode
        show_context: Also show the other participant in point mode
        show_arrows: Kill arrow visibility in point mode

    Returns:
        HeatmapView, PointsView or NoDataView
    """
    display_mode = DisplayMode(display_mode)
    style_mode = StyleMode(style_mode)

    if not events:
        return NoDataView(map_image=get_map_image_url(map_name))

    if style_mode == StyleMode.POINTS:
        return build_points_view(
            events,
            map_name,
            directory or {},
            settings,
            display_mode,
            show_context,
            show_arrows,
            estimator.config.viewport_size,
        )

    density = compute_density(events, map_name, display_mode, estimator, bandwidth)
    return build_heatmap_view(
        density, map_name, settings, display_mode, opacity, deaths_opacity_factor
    )
