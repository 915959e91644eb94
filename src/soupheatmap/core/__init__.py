"""
SoupHeatMap Core - Foundation modules for the spatial pipeline.

This module contains the fundamental components:
- constants: Display modes, sentinels and default values
- config: Application configuration management
- schemas: Data contracts for the repository boundary
- utils: Timing and small numeric helpers
"""

from soupheatmap.core.constants import (
    ALL_WEAPONS,
    DEFAULT_TIME_WINDOW,
    INVALID_COORDINATES,
    MIN_BANDWIDTH,
    UNKNOWN_WEAPON,
    VIEWPORT_SIZE,
    DisplayMode,
    PointRole,
    StyleMode,
    ViewMode,
)
from soupheatmap.core.schemas import (
    KillEvent,
    Location,
    MatchDataset,
    MatchDetail,
    MatchSummary,
    PlayerInfo,
    PlayerStat,
)

__all__ = [
    # Enums
    "DisplayMode",
    "PointRole",
    "StyleMode",
    "ViewMode",
    # Constants
    "ALL_WEAPONS",
    "DEFAULT_TIME_WINDOW",
    "INVALID_COORDINATES",
    "MIN_BANDWIDTH",
    "UNKNOWN_WEAPON",
    "VIEWPORT_SIZE",
    # Schemas (data contracts)
    "KillEvent",
    "Location",
    "MatchDataset",
    "MatchDetail",
    "MatchSummary",
    "PlayerInfo",
    "PlayerStat",
]
