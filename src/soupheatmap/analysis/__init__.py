"""
SoupHeatMap Analysis - Event selection and match aggregation.

This module contains:
- filters: Player/weapon/round/time filter pipeline and selection state
- aggregate: Multi-match merging for the map-aggregate view
"""

from soupheatmap.analysis.aggregate import (
    MapCount,
    aggregate_matches,
    available_maps,
    matches_for_map,
    merge_players,
)
from soupheatmap.analysis.filters import (
    FilterOptions,
    FilterSelection,
    WeaponOption,
    build_filter_options,
    build_player_directory,
    eligible_player_ids,
    eligible_players,
    filter_events,
    observed_rounds,
    observed_weapons,
    summarize_filter,
)

__all__ = [
    "FilterOptions",
    "FilterSelection",
    "MapCount",
    "WeaponOption",
    "aggregate_matches",
    "available_maps",
    "build_filter_options",
    "build_player_directory",
    "eligible_player_ids",
    "eligible_players",
    "filter_events",
    "matches_for_map",
    "merge_players",
    "observed_rounds",
    "observed_weapons",
    "summarize_filter",
]
