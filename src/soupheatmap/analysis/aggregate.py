"""
Match aggregation for the map-aggregate view.

Combines the selected matches of one map into a single MatchDataset:
events concatenated in match order, players de-duplicated by id with the
first occurrence kept.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from soupheatmap.core.schemas import MatchDataset, MatchDetail, MatchSummary, PlayerStat
from soupheatmap.core.utils import timed

logger = logging.getLogger(__name__)


def merge_players(matches: Iterable[MatchDetail]) -> list[PlayerStat]:
    """
    Unique players across matches, first occurrence wins.

    A player whose agent or name changed between matches keeps the record of
    the earliest match in input order.
    """
    seen: dict[str, PlayerStat] = {}
    for match in matches:
        for player in match.players:
            if player.puuid not in seen:
                seen[player.puuid] = player
    return list(seen.values())


@timed
def aggregate_matches(
    matches: Sequence[MatchDetail],
    selected_match_ids: Iterable[str],
    map_name: str | None = None,
) -> MatchDataset:
    """
    Merge the selected matches into one dataset.

    Args:
        matches: Loaded match details, in display order
        selected_match_ids: Ids of the matches to include
        map_name: Map of the aggregate; defaults to the first selected match's map

    Returns:
        MatchDataset; empty when no match is selected
    """
    selected_ids = set(selected_match_ids)
    selected = [m for m in matches if m.match_id in selected_ids]

    if not selected:
        logger.debug("No selected matches to aggregate")
        return MatchDataset(map_name=map_name or "")

    events = tuple(event for match in selected for event in match.kill_events)
    players = tuple(merge_players(selected))

    logger.debug(
        f"Aggregated {len(selected)} matches: {len(events)} events, {len(players)} players"
    )
    return MatchDataset(
        map_name=map_name or selected[0].map,
        events=events,
        players=players,
        match_ids=tuple(m.match_id for m in selected),
    )


@dataclass(frozen=True)
class MapCount:
    """A map and how many loaded matches were played on it."""

    map: str
    count: int


def available_maps(summaries: Iterable[MatchSummary]) -> list[MapCount]:
    """Maps of the loaded matches, most played first."""
    counts = Counter(s.map for s in summaries)
    return [MapCount(map=name, count=count) for name, count in counts.most_common()]


def matches_for_map(summaries: Iterable[MatchSummary], map_name: str) -> list[str]:
    """Ids of the matches played on map_name, in summary order."""
    return [s.match_id for s in summaries if s.map == map_name]
