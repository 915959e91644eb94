"""Shared builders for SoupHeatMap tests."""

from __future__ import annotations

import pytest

from soupheatmap.core.config import SoupHeatmapConfig, reset_config
from soupheatmap.core.schemas import KillEvent, Location, MatchDetail, PlayerStat


def build_event(
    killer: str = "p1",
    victim: str = "p2",
    weapon: str | None = "Vandal",
    killer_xy: tuple[float, float] = (2000, -5000),
    victim_xy: tuple[float, float] = (2500, -4500),
    round_num: int = 0,
    time_ms: int = 30_000,
) -> KillEvent:
    return KillEvent(
        killer_puuid=killer,
        victim_puuid=victim,
        weapon=weapon,
        killer_location=Location(*killer_xy),
        victim_location=Location(*victim_xy),
        round_num=round_num,
        round_time_millis=time_ms,
    )


def build_player(
    puuid: str,
    name: str | None = None,
    agent: str | None = "Jett",
    team: str = "Blue",
    tag: str = "NA1",
    is_observer: bool = False,
) -> PlayerStat:
    return PlayerStat(
        puuid=puuid,
        game_name=name or puuid.upper(),
        tag_line=tag,
        agent=agent,
        team=team,
        team_id=team,
        is_observer=is_observer,
    )


def build_match(
    match_id: str,
    players: list[PlayerStat],
    events: list[KillEvent],
    map_name: str = "Ascent",
) -> MatchDetail:
    return MatchDetail(
        match_id=match_id,
        map=map_name,
        players=tuple(players),
        kill_events=tuple(events),
        rounds_played=max((e.round_num for e in events), default=-1) + 1,
    )


@pytest.fixture
def make_event():
    return build_event


@pytest.fixture
def make_player():
    return build_player


@pytest.fixture
def make_match():
    return build_match


@pytest.fixture
def players():
    """Two players per team plus an observer and an agent-less entry."""
    return [
        build_player("p1", agent="Jett", team="Blue"),
        build_player("p2", agent="Sova", team="Red"),
        build_player("p3", agent="Omen", team="Blue"),
        build_player("p4", agent="Sage", team="Red"),
        build_player("obs", agent=None, team="Neutral", is_observer=True),
        build_player("ghost", agent=None, team="Blue"),
    ]


@pytest.fixture
def events():
    """Six events over three rounds with a mix of weapons and times."""
    return [
        build_event("p1", "p2", "Vandal", (2000, -5000), (2500, -4500), 0, 10_000),
        build_event("p2", "p3", "Phantom", (3000, -4000), (3500, -3500), 0, 45_000),
        build_event("p3", "p4", "Operator", (1000, -6000), (1500, -5500), 1, 80_000),
        build_event("p4", "p1", "Vandal", (1200, -4200), (1800, -3800), 1, 100_000),
        build_event("p1", "p4", None, (2200, -5200), (2600, -4800), 2, 5_000),
        build_event("p2", "p1", "Unknown", (2800, -4600), (0, 0), 2, 140_000),
    ]


@pytest.fixture
def ascent_match(players):
    """Single Ascent match with three events at distinct valid killer locations."""
    return build_match(
        "ascent-1",
        players,
        [
            build_event("p1", "p2", "Vandal", (2000, -5000), (2500, -4500), 0, 20_000),
            build_event("p3", "p4", "Phantom", (3000, -4000), (3500, -3500), 1, 40_000),
            build_event("p2", "p3", "Sheriff", (1000, -6000), (1500, -5500), 2, 60_000),
        ],
    )


@pytest.fixture
def config():
    """Default configuration; debounced recolors only apply on flush."""
    cfg = SoupHeatmapConfig()
    cfg.render.recolor_debounce_seconds = 60.0
    return cfg


@pytest.fixture(autouse=True)
def _reset_global_config():
    reset_config()
    yield
    reset_config()
