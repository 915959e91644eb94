"""
SoupHeatMap - Constants

Display modes, coordinate sentinels, viewport geometry and the Valorant
weapon catalog shared by the filter, density and rendering modules.
"""

from enum import StrEnum


class DisplayMode(StrEnum):
    """
    Which participant role(s) of a kill event are visualized.

    Also decides how the player filter is interpreted.
    """

    KILLS = "kills"  # Killer positions, player filter on killer
    DEATHS = "deaths"  # Victim positions, player filter on victim
    BOTH = "both"  # Both positions, player filter on either participant


class StyleMode(StrEnum):
    """How the filtered events are drawn."""

    HEATMAP = "heatmap"  # Density contours
    POINTS = "points"  # Individual killer/victim markers


class ViewMode(StrEnum):
    """Single match or several matches of one map combined."""

    SINGLE = "single"
    AGGREGATE = "aggregate"


class PointRole(StrEnum):
    """Role of a point marker in point rendering."""

    KILLER = "killer"
    VICTIM = "victim"


# ============================================================================
# Coordinates
# ============================================================================

# Raw coordinate values that mean "no position" (observer / dead-state artifacts)
INVALID_COORDINATES = frozenset({0, -999})

# Rendering viewport edge in pixels (map images are square)
VIEWPORT_SIZE = 1024

# Map used for the background image when the map name is unknown
DEFAULT_MAP = "Ascent"

# ============================================================================
# Filtering
# ============================================================================

# Round time window bounds in seconds
TIME_WINDOW_MIN = 0
TIME_WINDOW_MAX = 150
DEFAULT_TIME_WINDOW = (TIME_WINDOW_MIN, TIME_WINDOW_MAX)

# Weapon label used by the source data when the damage item was not resolved
UNKNOWN_WEAPON = "Unknown"

# Every Valorant weapon shown in the weapon filter, used or not
ALL_WEAPONS = (
    "Vandal",
    "Phantom",
    "Operator",
    "Sheriff",
    "Ghost",
    "Classic",
    "Frenzy",
    "Spectre",
    "Stinger",
    "Guardian",
    "Bulldog",
    "Marshal",
    "Odin",
    "Ares",
    "Judge",
    "Bucky",
    "Shorty",
    "Knife",
    "Melee",
    "Ability",
)

# Team labels of the two playing sides; anything else is an observer
PLAYING_TEAMS = ("Blue", "Red")

# ============================================================================
# Density estimation
# ============================================================================

# Bandwidth floor in viewport pixels
MIN_BANDWIDTH = 15.0

# Default bandwidth = max(MIN_BANDWIDTH, BANDWIDTH_SPREAD_FACTOR * mean spread)
BANDWIDTH_SPREAD_FACTOR = 0.03

# Density grid cell edge in viewport pixels
DENSITY_CELL_SIZE = 4

# Number of contour bands per density field
DENSITY_LEVELS = 20

NO_DATA_MESSAGE = "No position data available for this view"

# ============================================================================
# Colors
# ============================================================================

DEFAULT_COLOR_LOW = "#0a244d"
DEFAULT_COLOR_HIGH = "#FF4655"
DEFAULT_COLOR_DEATHS_HIGH = "#4455FF"
DEFAULT_COLOR_KILLER_DOT = "#FF4655"
DEFAULT_COLOR_VICTIM_DOT = "#4455FF"

DEFAULT_OPACITY = 0.7

# Deaths layer is drawn fainter when both categories are shown
DEATHS_LAYER_OPACITY_FACTOR = 0.7

# Recolor requests inside this window collapse to the last one (seconds)
RECOLOR_DEBOUNCE_SECONDS = 0.1
