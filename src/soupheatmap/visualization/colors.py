"""
Category Color and Legend Mapping

Maps density values to colors, derives the UI theme from the active display
state and lists the legend entries the renderer should show.

Color strings are parsed and formatted with matplotlib.colors, so any
matplotlib color spec is accepted on input and "#rrggbb" is produced on
output.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from matplotlib import colors as mcolors

from soupheatmap.core.config import ColorConfig
from soupheatmap.core.constants import DisplayMode, StyleMode
from soupheatmap.core.utils import clamp

logger = logging.getLogger(__name__)


def _to_rgb(color: str) -> tuple[float, float, float]:
    try:
        return mcolors.to_rgb(color)
    except ValueError as e:
        raise ValueError(f"Invalid color: {color!r}") from e


def color_for(value: float, domain_max: float, low: str, high: str) -> str:
    """
    Linear RGB interpolation from low (at 0) to high (at domain_max).

    Values outside the domain are clamped. A non-positive domain_max falls
    back to 1.
    """
    if domain_max <= 0:
        domain_max = 1.0
    t = clamp(value / domain_max)
    low_rgb = _to_rgb(low)
    high_rgb = _to_rgb(high)
    mixed = tuple(a + (b - a) * t for a, b in zip(low_rgb, high_rgb, strict=True))
    return mcolors.to_hex(mixed)


@dataclass(frozen=True)
class ColorScale:
    """Sequential scale over [0, domain_max]."""

    low: str
    high: str
    domain_max: float = 1.0

    def __call__(self, value: float) -> str:
        return color_for(value, self.domain_max, self.low, self.high)

    def with_domain(self, domain_max: float) -> ColorScale:
        return replace(self, domain_max=domain_max)


@dataclass(frozen=True)
class ColorSettings:
    """User-chosen colors; replaced wholesale on every recolor."""

    low: str
    high: str
    kills_low: str
    kills_high: str
    deaths_low: str
    deaths_high: str
    killer_dot: str
    victim_dot: str
    independent_kills_deaths: bool = False

    @classmethod
    def from_config(
        cls, config: ColorConfig | None = None, independent_kills_deaths: bool = False
    ) -> ColorSettings:
        config = config or ColorConfig()
        return cls(
            low=config.low,
            high=config.high,
            kills_low=config.kills_low,
            kills_high=config.kills_high,
            deaths_low=config.deaths_low,
            deaths_high=config.deaths_high,
            killer_dot=config.killer_dot,
            victim_dot=config.victim_dot,
            independent_kills_deaths=independent_kills_deaths,
        )

    def update(self, **changes) -> ColorSettings:
        """New settings with the given fields changed; colors are validated."""
        for name, value in changes.items():
            if name != "independent_kills_deaths":
                _to_rgb(value)
        return replace(self, **changes)

    def kills_pair(self) -> tuple[str, str]:
        return (self.kills_low, self.kills_high)

    def deaths_pair(self) -> tuple[str, str]:
        return (self.deaths_low, self.deaths_high)

    def linked_pair(self) -> tuple[str, str]:
        return (self.low, self.high)

    def category_pair(self, display_mode: DisplayMode) -> tuple[str, str]:
        """(low, high) for a single-category heatmap."""
        if not self.independent_kills_deaths:
            return self.linked_pair()
        if display_mode == DisplayMode.DEATHS:
            return self.deaths_pair()
        return self.kills_pair()


def category_colors(
    settings: ColorSettings,
    display_mode: DisplayMode,
    domains: dict[str, float],
) -> dict[str, ColorScale]:
    """
    One ColorScale per drawn category, each over its own domain.

    Args:
        settings: Current colors
        display_mode: Active display mode
        domains: Category name ("kills", "deaths" or "density") to max density

    Returns:
        Category name to ColorScale
    """
    if display_mode == DisplayMode.BOTH:
        pairs = {"kills": settings.kills_pair(), "deaths": settings.deaths_pair()}
    else:
        pairs = {"density": settings.category_pair(display_mode)}

    return {
        name: ColorScale(low=low, high=high, domain_max=domains.get(name, 1.0))
        for name, (low, high) in pairs.items()
    }


# ============================================================================
# Theme
# ============================================================================


@dataclass(frozen=True)
class DerivedTheme:
    """Accent gradient matching what is currently drawn."""

    gradient_start: str
    gradient_mid: str
    gradient_end: str

    def to_css_variables(self) -> dict[str, str]:
        return {
            "--gradient-start": self.gradient_start,
            "--gradient-mid": self.gradient_mid,
            "--gradient-end": self.gradient_end,
        }


def derive_theme(
    settings: ColorSettings, display_mode: DisplayMode, style_mode: StyleMode
) -> DerivedTheme:
    """Theme gradient for a display state."""
    if style_mode == StyleMode.POINTS:
        return DerivedTheme(settings.killer_dot, settings.killer_dot, settings.victim_dot)

    if display_mode == DisplayMode.BOTH:
        return DerivedTheme(settings.kills_low, settings.kills_high, settings.deaths_high)

    low, high = settings.category_pair(display_mode)
    return DerivedTheme(low, high, high)


# ============================================================================
# Legend
# ============================================================================


@dataclass(frozen=True)
class LegendEntry:
    """A legend row: a swatch (start == end) or a low to high gradient."""

    label: str
    start: str
    end: str

    @property
    def is_swatch(self) -> bool:
        return self.start == self.end

    def to_dict(self) -> dict:
        return {"label": self.label, "start": self.start, "end": self.end}


def build_legend(
    settings: ColorSettings,
    display_mode: DisplayMode,
    style_mode: StyleMode,
    show_context: bool = False,
) -> list[LegendEntry]:
    """Legend rows for a display state."""
    if style_mode == StyleMode.POINTS:
        show_killer, show_victim = visible_roles(display_mode, show_context)
        entries = []
        if show_killer:
            entries.append(LegendEntry("Killer", settings.killer_dot, settings.killer_dot))
        if show_victim:
            entries.append(LegendEntry("Victim", settings.victim_dot, settings.victim_dot))
        return entries

    if display_mode == DisplayMode.BOTH:
        return [
            LegendEntry("Kills", *settings.kills_pair()),
            LegendEntry("Deaths", *settings.deaths_pair()),
        ]

    return [LegendEntry("Intensity", *settings.category_pair(display_mode))]


def visible_roles(display_mode: DisplayMode, show_context: bool = False) -> tuple[bool, bool]:
    """(killer shown, victim shown) in point mode."""
    show_killer = display_mode in (DisplayMode.KILLS, DisplayMode.BOTH)
    show_victim = display_mode in (DisplayMode.DEATHS, DisplayMode.BOTH)
    if show_context:
        show_killer = show_victim = True
    return show_killer, show_victim
