"""
Event Filter Pipeline.

Applies the player, weapon, round and time-window selections to a list of
kill events. The pipeline is a pure function of (events, selection, players,
display mode) and returns an order-preserving subsequence of its input.

Selection semantics per dimension:
- empty selection hides everything ("hide all" is not "no filter")
- a player/weapon selection equal to the full set derived from the current
  data does not filter at all; the full set is recomputed on every call
  because it changes whenever the active match or aggregate scope changes
- the time window is always applied
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from soupheatmap.core.constants import (
    ALL_WEAPONS,
    DEFAULT_TIME_WINDOW,
    DisplayMode,
)
from soupheatmap.core.schemas import KillEvent, MatchDataset, PlayerInfo, PlayerStat
from soupheatmap.core.utils import format_count

logger = logging.getLogger(__name__)


# ============================================================================
# Full-set derivation
# ============================================================================


def eligible_players(players: Iterable[PlayerStat]) -> list[PlayerStat]:
    """Players shown in filters: not observers and with a known agent."""
    return [p for p in players if p.is_eligible]


def eligible_player_ids(players: Iterable[PlayerStat]) -> set[str]:
    return {p.puuid for p in players if p.is_eligible}


def observed_weapons(events: Iterable[KillEvent]) -> set[str]:
    """Weapon names used in the events, excluding missing and "Unknown"."""
    return {e.weapon for e in events if e.has_known_weapon}


def observed_rounds(events: Iterable[KillEvent]) -> list[int]:
    """Sorted distinct round numbers of the events."""
    return sorted({e.round_num for e in events})


# ============================================================================
# Selection state
# ============================================================================


@dataclass
class FilterSelection:
    """
    User-held filter state.

    Four independent selections; the pipeline never mutates it.
    """

    players: set[str] = field(default_factory=set)
    weapons: set[str] = field(default_factory=set)
    rounds: set[int] = field(default_factory=set)
    time_window: tuple[float, float] = DEFAULT_TIME_WINDOW

    def __post_init__(self):
        self.players = set(self.players)
        self.weapons = set(self.weapons)
        self.rounds = set(self.rounds)
        self.set_time_window(*self.time_window)

    @classmethod
    def select_all(
        cls,
        dataset: MatchDataset,
        time_window: tuple[float, float] = DEFAULT_TIME_WINDOW,
    ) -> FilterSelection:
        """Default selection for a newly active match or map."""
        return cls(
            players=eligible_player_ids(dataset.players),
            weapons=observed_weapons(dataset.events),
            rounds=set(observed_rounds(dataset.events)),
            time_window=time_window,
        )

    def copy(self) -> FilterSelection:
        return FilterSelection(
            players=set(self.players),
            weapons=set(self.weapons),
            rounds=set(self.rounds),
            time_window=self.time_window,
        )

    # -- players --------------------------------------------------------

    def toggle_player(self, puuid: str) -> None:
        self.players ^= {puuid}

    def select_all_players(self, dataset: MatchDataset) -> None:
        self.players = eligible_player_ids(dataset.players)

    def clear_players(self) -> None:
        self.players = set()

    # -- weapons --------------------------------------------------------

    def toggle_weapon(self, weapon: str) -> None:
        self.weapons ^= {weapon}

    def select_all_weapons(self, dataset: MatchDataset) -> None:
        self.weapons = observed_weapons(dataset.events)

    def clear_weapons(self) -> None:
        self.weapons = set()

    # -- rounds ---------------------------------------------------------

    def toggle_round(self, round_num: int) -> None:
        self.rounds ^= {round_num}

    def select_all_rounds(self, dataset: MatchDataset) -> None:
        self.rounds = set(observed_rounds(dataset.events))

    def clear_rounds(self) -> None:
        self.rounds = set()

    # -- time window ----------------------------------------------------

    def set_time_window(self, low: float, high: float) -> None:
        if low > high:
            raise ValueError(f"Time window low bound {low} is above high bound {high}")
        self.time_window = (low, high)

    def reset_time_window(self, default: tuple[float, float] = DEFAULT_TIME_WINDOW) -> None:
        self.set_time_window(*default)


# ============================================================================
# Pipeline
# ============================================================================


def _player_matches(event: KillEvent, selected: set[str], display_mode: DisplayMode) -> bool:
    if display_mode == DisplayMode.KILLS:
        return event.killer_puuid in selected
    if display_mode == DisplayMode.DEATHS:
        return event.victim_puuid in selected
    return event.killer_puuid in selected or event.victim_puuid in selected


def filter_by_players(
    events: Sequence[KillEvent],
    selected: set[str],
    players: Iterable[PlayerStat],
    display_mode: DisplayMode,
) -> list[KillEvent]:
    if not selected:
        return []
    if selected == eligible_player_ids(players):
        return list(events)
    return [e for e in events if _player_matches(e, selected, display_mode)]


def filter_by_weapons(
    events: Sequence[KillEvent],
    selected: set[str],
    full_set: set[str] | None = None,
) -> list[KillEvent]:
    if not selected:
        return []
    if full_set is None:
        full_set = observed_weapons(events)
    # Covering the full set (or more) is unrestricted
    if selected >= full_set:
        return list(events)
    return [e for e in events if e.weapon is not None and e.weapon in selected]


def filter_by_rounds(events: Sequence[KillEvent], selected: set[int]) -> list[KillEvent]:
    if not selected:
        return []
    return [e for e in events if e.round_num in selected]


def filter_by_time_window(
    events: Sequence[KillEvent], time_window: tuple[float, float]
) -> list[KillEvent]:
    low, high = time_window
    return [e for e in events if low <= e.round_time_seconds <= high]


def filter_events(
    events: Sequence[KillEvent],
    selection: FilterSelection,
    players: Iterable[PlayerStat],
    display_mode: DisplayMode | str = DisplayMode.BOTH,
) -> list[KillEvent]:
    """
    Apply all filter dimensions in order: players, weapons, rounds, time.

    Args:
        events: Kill events of the active dataset
        selection: Current user selection
        players: Players of the active dataset (eligibility source)
        display_mode: Interpretation of the player selection

    Returns:
        Order-preserving subsequence of events
    """
    display_mode = DisplayMode(display_mode)

    filtered = filter_by_players(events, selection.players, players, display_mode)
    filtered = filter_by_weapons(filtered, selection.weapons, observed_weapons(events))
    filtered = filter_by_rounds(filtered, selection.rounds)
    filtered = filter_by_time_window(filtered, selection.time_window)

    logger.debug(f"Filtered {len(events)} events to {len(filtered)} ({display_mode} mode)")
    return filtered


# ============================================================================
# Filter panel support
# ============================================================================


@dataclass(frozen=True)
class WeaponOption:
    """Weapon filter entry."""

    name: str
    available: bool


@dataclass(frozen=True)
class FilterOptions:
    """Choices offered by the filter panel for the active dataset."""

    players: tuple[PlayerStat, ...]
    weapons: tuple[WeaponOption, ...]
    rounds: tuple[int, ...]


def build_filter_options(dataset: MatchDataset) -> FilterOptions:
    """
    Enumerate filter choices.

    Weapons list the full catalog plus any unlisted weapon seen in the data,
    available ones first, then alphabetical.
    """
    used = observed_weapons(dataset.events)
    names = set(ALL_WEAPONS) | used
    weapons = sorted(
        (WeaponOption(name=name, available=name in used) for name in names),
        key=lambda w: (not w.available, w.name),
    )
    return FilterOptions(
        players=tuple(eligible_players(dataset.players)),
        weapons=tuple(weapons),
        rounds=tuple(observed_rounds(dataset.events)),
    )


def build_player_directory(players: Iterable[PlayerStat]) -> dict[str, PlayerInfo]:
    """Player id to tooltip identity (all players, observers included)."""
    return {
        p.puuid: PlayerInfo(name=p.display_name, agent=p.agent or "Unknown", team=p.team)
        for p in players
    }


def summarize_filter(
    filtered_count: int,
    total_count: int,
    selection: FilterSelection,
    match_count: int | None = None,
) -> str:
    """One-line filter summary, e.g. '12 of 140 events • 3 matches • 2 players'."""
    parts = [f"{filtered_count} of {total_count} events"]
    if match_count is not None:
        parts.append(format_count(match_count, "match"))
    if selection.players:
        parts.append(format_count(len(selection.players), "player"))
    if selection.weapons:
        parts.append(format_count(len(selection.weapons), "weapon"))
    return " • ".join(parts)
