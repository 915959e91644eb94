"""
Heatmap Session

Holds the interactive state of one heatmap screen and drives the pipeline:

    repository -> aggregate -> filters -> transform -> density -> colors -> view

Responsibilities:
- Single-match and map-aggregate view modes
- Filter selection reset to "select all" whenever a new match or map is active
- Request tokens so a slow, superseded load can never overwrite a newer one
- Repository failures surfaced as a message in `error`, state left untouched
- Debounced recoloring that reuses the last density result
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence

from soupheatmap.analysis.aggregate import (
    MapCount,
    aggregate_matches,
    available_maps,
    matches_for_map,
)
from soupheatmap.analysis.filters import (
    FilterOptions,
    FilterSelection,
    build_filter_options,
    build_player_directory,
    filter_events,
    summarize_filter,
)
from soupheatmap.core.config import SoupHeatmapConfig, get_config
from soupheatmap.core.constants import DisplayMode, StyleMode, ViewMode
from soupheatmap.core.schemas import KillEvent, MatchDataset, MatchDetail, MatchSummary
from soupheatmap.infra.cache import DensityCache
from soupheatmap.infra.debounce import Debouncer
from soupheatmap.repository import (
    MatchRepository,
    ProgressCallback,
    ProgressReport,
    RepositoryError,
)
from soupheatmap.visualization.colors import (
    ColorSettings,
    DerivedTheme,
    LegendEntry,
    build_legend,
    derive_theme,
)
from soupheatmap.visualization.density import DensityEstimator, DensityResult
from soupheatmap.visualization.heatmaps import (
    NoDataView,
    View,
    build_heatmap_view,
    build_points_view,
    compute_density,
)
from soupheatmap.visualization.radar import get_map_image_url

logger = logging.getLogger(__name__)


class HeatmapSession:
    """
    Interactive state and pipeline driver for one folder of matches.

    Usage:
        session = HeatmapSession(repository, "matches/")
        session.load_matches()
        session.select_match(session.summaries[0].match_id)
        view = session.render()
    """

    def __init__(
        self,
        repository: MatchRepository,
        folder: str,
        config: SoupHeatmapConfig | None = None,
        estimator: DensityEstimator | None = None,
        on_recolor: Callable[[View], None] | None = None,
        on_progress: ProgressCallback | None = None,
    ):
        """
        Args:
            repository: Match source
            folder: Folder passed to every repository call
            config: Defaults for density, filters, rendering and colors
            estimator: Density estimator (a cached one is built from config)
            on_recolor: Receives the rebuilt view after a debounced recolor
            on_progress: Receives batch load progress in aggregate mode
        """
        self.repository = repository
        self.folder = folder
        self.config = config or get_config()
        self.estimator = estimator or DensityEstimator(
            self.config.density, DensityCache(self.config.density.cache_entries)
        )
        self.on_recolor = on_recolor
        self.on_progress = on_progress

        self._lock = threading.RLock()
        self._request_token = 0
        self._active_token = 0

        # Data
        self.summaries: list[MatchSummary] = []
        self.view_mode = ViewMode.SINGLE
        self.current_match_id: str | None = None
        self.selected_map: str | None = None
        self.map_matches: list[MatchDetail] = []
        self.selected_match_ids: set[str] = set()
        self.dataset = MatchDataset(map_name="")
        self.selection = FilterSelection(time_window=self._default_time_window())

        # Display
        render = self.config.render
        self.display_mode = DisplayMode.BOTH
        self.style_mode = StyleMode.HEATMAP
        self.bandwidth: float | None = None
        self.opacity = render.opacity
        self.show_context = render.show_context
        self.show_arrows = render.show_arrows
        self.colors = ColorSettings.from_config(self.config.colors, render.independent_kills_deaths)
        self._pending_colors: ColorSettings | None = None
        self._debouncer = Debouncer(self._apply_colors, render.recolor_debounce_seconds)

        # Status
        self.loading = False
        self.error: str | None = None
        self.view: View | None = None
        self._density: DensityResult | None = None
        self._rendered_state: tuple | None = None

    def _default_time_window(self) -> tuple[float, float]:
        return (self.config.filters.time_window_low, self.config.filters.time_window_high)

    # ========================================================================
    # Match list
    # ========================================================================

    def load_matches(self) -> bool:
        """Load the match summaries of the folder."""
        try:
            summaries = self.repository.list_matches(self.folder)
        except RepositoryError as e:
            self._report_error(f"Failed to load matches: {e}")
            return False

        with self._lock:
            self.summaries = list(summaries)
            self.error = None
        logger.info(f"Loaded {len(self.summaries)} match summaries from {self.folder}")
        return True

    def available_maps(self) -> list[MapCount]:
        return available_maps(self.summaries)

    def set_view_mode(self, view_mode: ViewMode | str) -> None:
        with self._lock:
            self.view_mode = ViewMode(view_mode)

    # ========================================================================
    # Loading with stale-request guard
    # ========================================================================

    def _begin_load(self) -> int:
        with self._lock:
            self._request_token += 1
            self._active_token = self._request_token
            self.loading = True
            return self._active_token

    def _is_active(self, token: int, what: str) -> bool:
        if token != self._active_token:
            logger.info(f"Discarding superseded load of {what} (request {token})")
            return False
        return True

    def _report_error(self, message: str, token: int | None = None) -> None:
        with self._lock:
            if token is not None:
                if not self._is_active(token, "failed request"):
                    return
                self.loading = False
            self.error = message
        logger.error(message)

    def _set_dataset(self, dataset: MatchDataset) -> None:
        self.dataset = dataset
        self._density = None
        self.view = None

    def _activate(self, dataset: MatchDataset) -> None:
        self._set_dataset(dataset)
        self.selection = FilterSelection.select_all(dataset, self._default_time_window())
        self.error = None
        self.loading = False

    def begin_match_load(self, match_id: str) -> int:
        """Start loading a match; returns the request token."""
        token = self._begin_load()
        logger.debug(f"Loading match {match_id} (request {token})")
        return token

    def complete_match_load(self, token: int, match: MatchDetail) -> bool:
        """
        Apply a loaded match if its request is still the latest.

        Returns:
            False when the result was discarded
        """
        with self._lock:
            if not self._is_active(token, f"match {match.match_id}"):
                return False
            self.view_mode = ViewMode.SINGLE
            self.current_match_id = match.match_id
            self._activate(MatchDataset.from_match(match))
        return True

    def select_match(self, match_id: str) -> bool:
        """Load a single match and make it the active dataset."""
        token = self.begin_match_load(match_id)
        try:
            match = self.repository.get_match_detail(self.folder, match_id)
        except RepositoryError as e:
            self._report_error(f"Failed to load match {match_id}: {e}", token)
            return False
        return self.complete_match_load(token, match)

    def begin_map_load(self, map_name: str) -> int:
        """Start loading the matches of a map; returns the request token."""
        token = self._begin_load()
        logger.debug(f"Loading matches for {map_name} (request {token})")
        return token

    def complete_map_load(
        self, token: int, map_name: str, matches: Sequence[MatchDetail]
    ) -> bool:
        """Apply loaded map matches (all selected) if the request is still the latest."""
        with self._lock:
            if not self._is_active(token, f"map {map_name}"):
                return False
            self.view_mode = ViewMode.AGGREGATE
            self.selected_map = map_name
            self.map_matches = list(matches)
            self.selected_match_ids = {m.match_id for m in matches}
            self._activate(aggregate_matches(self.map_matches, self.selected_match_ids, map_name))
        return True

    def select_map(self, map_name: str) -> bool:
        """Load every match of a map and aggregate them."""
        match_ids = matches_for_map(self.summaries, map_name)
        token = self.begin_map_load(map_name)

        reported = False

        def forward(report: ProgressReport) -> None:
            nonlocal reported
            reported = True
            self._emit_progress(report)

        self._emit_progress(ProgressReport(indeterminate=True))
        try:
            matches = self.repository.get_match_details(self.folder, match_ids, on_progress=forward)
        except RepositoryError as e:
            self._report_error(f"Failed to load matches for {map_name}: {e}", token)
            return False

        if not reported:
            self._emit_progress(ProgressReport(processed=len(matches), total=len(matches)))
        return self.complete_map_load(token, map_name, matches)

    def _emit_progress(self, report: ProgressReport) -> None:
        if self.on_progress is not None:
            self.on_progress(report)

    def set_match_selected(self, match_id: str, selected: bool) -> None:
        """
        Include or exclude a loaded match of the aggregate.

        The filter selection is kept; only the event and player pool changes.
        """
        with self._lock:
            if selected:
                self.selected_match_ids.add(match_id)
            else:
                self.selected_match_ids.discard(match_id)
            self._set_dataset(
                aggregate_matches(self.map_matches, self.selected_match_ids, self.selected_map)
            )

    # ========================================================================
    # Filtering
    # ========================================================================

    def filtered_events(self) -> list[KillEvent]:
        return filter_events(
            self.dataset.events, self.selection, self.dataset.players, self.display_mode
        )

    def filter_options(self) -> FilterOptions:
        return build_filter_options(self.dataset)

    def filter_summary(self) -> str:
        match_count = (
            len(self.dataset.match_ids) if self.view_mode == ViewMode.AGGREGATE else None
        )
        return summarize_filter(
            len(self.filtered_events()), len(self.dataset.events), self.selection, match_count
        )

    def reset_filters(self) -> None:
        with self._lock:
            self.selection = FilterSelection.select_all(self.dataset, self._default_time_window())

    # ========================================================================
    # Display settings
    # ========================================================================

    def set_display_mode(self, display_mode: DisplayMode | str) -> None:
        self.display_mode = DisplayMode(display_mode)

    def set_style_mode(self, style_mode: StyleMode | str) -> None:
        self.style_mode = StyleMode(style_mode)

    def set_bandwidth(self, bandwidth: float | None) -> None:
        """Override the kernel bandwidth; None restores the automatic one."""
        if bandwidth is not None and bandwidth <= 0:
            raise ValueError(f"Bandwidth must be positive, got {bandwidth}")
        self.bandwidth = bandwidth

    def set_opacity(self, opacity: float) -> None:
        if not 0 <= opacity <= 1:
            raise ValueError(f"Opacity must be within [0, 1], got {opacity}")
        self.opacity = opacity

    # ========================================================================
    # Rendering
    # ========================================================================

    @property
    def map_name(self) -> str:
        return self.dataset.map_name

    def _render_state(self) -> tuple:
        """Everything besides colors and opacity that shapes the view."""
        return (
            self.dataset,
            self.selection.copy(),
            self.display_mode,
            self.style_mode,
            self.bandwidth,
            self.show_context,
            self.show_arrows,
        )

    def render(self) -> View:
        """Run the pipeline for the current state and return the view."""
        with self._lock:
            self._rendered_state = self._render_state()
            events = self.filtered_events()
            if not events:
                self._density = None
                self.view = NoDataView(map_image=get_map_image_url(self.map_name))
                return self.view

            if self.style_mode == StyleMode.HEATMAP:
                self._density = compute_density(
                    events, self.map_name, self.display_mode, self.estimator, self.bandwidth
                )
                self.view = self._heatmap_view(self._density)
            else:
                self._density = None
                self.view = self._points_view(events)
            return self.view

    def _heatmap_view(self, density: DensityResult) -> View:
        return build_heatmap_view(
            density,
            self.map_name,
            self.colors,
            self.display_mode,
            self.opacity,
            self.config.render.deaths_opacity_factor,
        )

    def _points_view(self, events: list[KillEvent]) -> View:
        return build_points_view(
            events,
            self.map_name,
            build_player_directory(self.dataset.players),
            self.colors,
            self.display_mode,
            self.show_context,
            self.show_arrows,
            self.estimator.config.viewport_size,
        )

    @property
    def theme(self) -> DerivedTheme:
        return derive_theme(self.colors, self.display_mode, self.style_mode)

    @property
    def legend(self) -> list[LegendEntry]:
        return build_legend(self.colors, self.display_mode, self.style_mode, self.show_context)

    # ========================================================================
    # Recoloring
    # ========================================================================

    def update_colors(self, **changes) -> None:
        """
        Request a color change; bursts collapse into one recolor.

        Changes accumulate until the debounced recolor runs.
        """
        with self._lock:
            base = self._pending_colors or self.colors
            self._pending_colors = base.update(**changes)
            pending = self._pending_colors
        self._debouncer.submit(pending)

    def flush_colors(self) -> bool:
        """Apply a pending color change immediately."""
        return self._debouncer.flush()

    def _apply_colors(self, colors: ColorSettings) -> None:
        with self._lock:
            self.colors = colors
            self._pending_colors = None
            if self.view is None:
                return
            if self._render_state() != self._rendered_state:
                # Display state moved on since the last render
                view = self.render()
            elif isinstance(self.view, NoDataView):
                return
            elif self._density is not None:
                self.view = view = self._heatmap_view(self._density)
            else:
                self.view = view = self._points_view(self.filtered_events())

        if self.on_recolor is not None:
            self.on_recolor(view)

    def close(self) -> None:
        """Drop any pending recolor."""
        self._debouncer.cancel()
