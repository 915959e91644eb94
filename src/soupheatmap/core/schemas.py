"""
SoupHeatMap Data Contracts

Every structure that crosses the Match Repository boundary is defined here.
The repository creates these objects on load and nothing downstream mutates
them: filtering, aggregation and density estimation only build new values.

Producers: repository implementations
Consumers: analysis.filters, analysis.aggregate, visualization.heatmaps, session
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime

from soupheatmap.core.constants import INVALID_COORDINATES, PLAYING_TEAMS, UNKNOWN_WEAPON


@dataclass(frozen=True)
class Location:
    """Raw game-world position."""

    x: float
    y: float

    @property
    def is_valid(self) -> bool:
        """False for the 0 / -999 sentinels on either axis."""
        return self.x not in INVALID_COORDINATES and self.y not in INVALID_COORDINATES

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict | None) -> Location:
        if not data:
            return cls(x=0, y=0)
        return cls(x=data.get("x", 0), y=data.get("y", 0))


@dataclass(frozen=True)
class KillEvent:
    """A recorded elimination."""

    killer_puuid: str
    victim_puuid: str
    weapon: str | None
    killer_location: Location
    victim_location: Location
    round_num: int  # 0-based
    round_time_millis: int

    @property
    def round_time_seconds(self) -> float:
        return self.round_time_millis / 1000

    @property
    def has_known_weapon(self) -> bool:
        return self.weapon is not None and self.weapon != UNKNOWN_WEAPON

    def to_dict(self) -> dict:
        return {
            "killer_puuid": self.killer_puuid,
            "victim_puuid": self.victim_puuid,
            "weapon": self.weapon,
            "killer_location": self.killer_location.to_dict(),
            "victim_location": self.victim_location.to_dict(),
            "round_num": self.round_num,
            "round_time_millis": self.round_time_millis,
        }

    @classmethod
    def from_dict(cls, data: dict) -> KillEvent:
        return cls(
            killer_puuid=data["killer_puuid"],
            victim_puuid=data["victim_puuid"],
            weapon=data.get("weapon"),
            killer_location=Location.from_dict(data.get("killer_location")),
            victim_location=Location.from_dict(data.get("victim_location")),
            round_num=int(data.get("round_num", 0)),
            round_time_millis=int(data.get("round_time_millis", 0)),
        )


@dataclass(frozen=True)
class PlayerStat:
    """A participant of a match (players and observers alike)."""

    puuid: str
    game_name: str
    team: str
    agent: str | None = None
    tag_line: str = ""
    team_id: str = ""
    score: int = 0
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    rounds_played: int = 0
    is_observer: bool = False

    @property
    def is_eligible(self) -> bool:
        """Shown in player filters and part of the "all players" set."""
        return not self.is_observer and bool(self.agent)

    @property
    def display_name(self) -> str:
        if self.tag_line:
            return f"{self.game_name}#{self.tag_line}"
        return self.game_name

    def to_dict(self) -> dict:
        return {
            "puuid": self.puuid,
            "game_name": self.game_name,
            "tag_line": self.tag_line,
            "agent": self.agent,
            "team": self.team,
            "team_id": self.team_id,
            "score": self.score,
            "kills": self.kills,
            "deaths": self.deaths,
            "assists": self.assists,
            "rounds_played": self.rounds_played,
            "is_observer": self.is_observer,
        }

    @classmethod
    def from_dict(cls, data: dict) -> PlayerStat:
        team = data.get("team", "")
        return cls(
            puuid=data["puuid"],
            game_name=data.get("game_name", ""),
            tag_line=data.get("tag_line", ""),
            agent=data.get("agent"),
            team=team,
            team_id=data.get("team_id", team),
            score=data.get("score", 0),
            kills=data.get("kills", 0),
            deaths=data.get("deaths", 0),
            assists=data.get("assists", 0),
            rounds_played=data.get("rounds_played", 0),
            is_observer=data.get("is_observer", False),
        )


@dataclass(frozen=True)
class PlayerInfo:
    """Tooltip identity of a player."""

    name: str
    agent: str
    team: str


@dataclass(frozen=True)
class MatchSummary:
    """List-view entry for a match."""

    match_id: str
    map: str
    region: str = "UNKNOWN"
    game_start: datetime | None = None
    teams: tuple[str, ...] = ()
    score: str = ""

    def to_dict(self) -> dict:
        return {
            "match_id": self.match_id,
            "map": self.map,
            "region": self.region,
            "game_start": self.game_start.isoformat() if self.game_start else None,
            "teams": list(self.teams),
            "score": self.score,
        }


@dataclass(frozen=True)
class MatchDetail:
    """Full match record as loaded by the repository."""

    match_id: str
    map: str
    players: tuple[PlayerStat, ...] = ()
    kill_events: tuple[KillEvent, ...] = ()
    rounds_played: int = 0
    region: str = "UNKNOWN"
    game_start: datetime | None = None
    game_length_millis: int = 0
    winning_team: str = "Unknown"
    # Winning team label per round, None for rounds without a result
    round_winners: tuple[str | None, ...] = ()

    @property
    def score(self) -> str:
        """Rounds won as "Blue-Red"."""
        wins = Counter(w for w in self.round_winners if w is not None)
        return "-".join(str(wins[team]) for team in PLAYING_TEAMS)

    def summary(self) -> MatchSummary:
        teams = tuple(dict.fromkeys(p.team_id for p in self.players if p.team_id in PLAYING_TEAMS))
        return MatchSummary(
            match_id=self.match_id,
            map=self.map,
            region=self.region,
            game_start=self.game_start,
            teams=teams,
            score=self.score,
        )

    @classmethod
    def from_dict(cls, data: dict) -> MatchDetail:
        game_start = data.get("game_start")
        if isinstance(game_start, str):
            game_start = datetime.fromisoformat(game_start)
        return cls(
            match_id=data["match_id"],
            map=data["map"],
            players=tuple(PlayerStat.from_dict(p) for p in data.get("players", [])),
            kill_events=tuple(KillEvent.from_dict(e) for e in data.get("kill_events", [])),
            rounds_played=data.get("rounds_played", 0),
            region=data.get("region", "UNKNOWN"),
            game_start=game_start,
            game_length_millis=data.get("game_length_millis", 0),
            winning_team=data.get("winning_team", "Unknown"),
            round_winners=tuple(data.get("round_winners", ())),
        )


@dataclass(frozen=True)
class MatchDataset:
    """
    The event/player pool one view works on.

    Built from a single MatchDetail or by aggregating several matches of one
    map. An empty dataset is a normal state ("nothing to show").
    """

    map_name: str
    events: tuple[KillEvent, ...] = ()
    players: tuple[PlayerStat, ...] = ()
    match_ids: tuple[str, ...] = field(default=())

    @property
    def is_empty(self) -> bool:
        return not self.events

    @classmethod
    def from_match(cls, match: MatchDetail) -> MatchDataset:
        return cls(
            map_name=match.map,
            events=tuple(match.kill_events),
            players=tuple(match.players),
            match_ids=(match.match_id,),
        )
