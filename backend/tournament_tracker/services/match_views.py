"""
Read-facing shapes of a match: static match data plus derived allocation
state (court, queue placement, result).
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from tournament_tracker.errors import PlayerNotFound
from tournament_tracker.models.match import Match, MatchResult
from tournament_tracker.models.player import Player
from tournament_tracker.persistence.port import PersistencePort

_PLACEMENT_LABELS = {
    1: "first in queue",
    2: "second in queue",
}


def placement_label(position: int) -> str:
    """Human-facing text for a 1-based queue position."""
    return _PLACEMENT_LABELS.get(position, f"queue position: {position}")


class MatchResultPayload(BaseModel):
    winner: int
    result: str


class PlayerInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class MatchView(BaseModel):
    id: int
    tournament_id: int
    category: str
    player_one: PlayerInfo
    player_two: PlayerInfo
    player_one_arrived: bool
    player_two_arrived: bool
    # Court name while playing; queue placement text while waiting
    court: Optional[str] = None
    winner: Optional[int] = None
    result: Optional[str] = None
    start_time: datetime


class TournamentMatchList(BaseModel):
    scheduled: List[MatchView] = []
    playing: List[MatchView] = []
    finished: List[MatchView] = []


class RegistrationView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    player_id: int
    match_id: int
    registered_at: datetime
    registered_by: str


class RegistrationOutcome(BaseModel):
    registration: RegistrationView
    match: Optional[MatchView] = None
    start_error: Optional[str] = None


@dataclass
class PlayerMatchInfo:
    player_one: Player
    player_two: Player
    player_one_arrived: bool
    player_two_arrived: bool

    @property
    def both_arrived(self) -> bool:
        return self.player_one_arrived and self.player_two_arrived


def load_player_info(store: PersistencePort, match: Match) -> PlayerMatchInfo:
    """Fetch both rostered players and whether each has checked in."""
    player_one = store.get_player(match.player_one_id)
    player_two = store.get_player(match.player_two_id)
    if player_one is None or player_two is None:
        missing = match.player_one_id if player_one is None else match.player_two_id
        raise PlayerNotFound(f"Player {missing} of match {match.id} not found")

    arrived = {r.player_id for r in store.get_registered_players(match.id)}
    return PlayerMatchInfo(
        player_one=player_one,
        player_two=player_two,
        player_one_arrived=player_one.id in arrived,
        player_two_arrived=player_two.id in arrived,
    )


def build_match_view(
    match: Match,
    info: PlayerMatchInfo,
    court: Optional[str] = None,
    result: Optional[MatchResult] = None,
    start_time: Optional[datetime] = None,
) -> MatchView:
    return MatchView(
        id=match.id,
        tournament_id=match.tournament_id,
        category=match.category,
        player_one=PlayerInfo.model_validate(info.player_one),
        player_two=PlayerInfo.model_validate(info.player_two),
        player_one_arrived=info.player_one_arrived,
        player_two_arrived=info.player_two_arrived,
        court=None if result is not None else court,
        winner=result.winner_id if result is not None else None,
        result=result.result if result is not None else None,
        start_time=start_time or match.start_time,
    )
