"""
Match endpoints: creation plus the check-in → start → finish lifecycle.
All lifecycle rules live in MatchLifecycle; these handlers only translate.
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session

from tournament_tracker.database import get_session
from tournament_tracker.errors import InvalidRoster, InvalidStartTime, MatchNotFound, PlayerNotFound, TournamentNotFound
from tournament_tracker.models.match import Match
from tournament_tracker.models.player import Player
from tournament_tracker.models.tournament import Tournament
from tournament_tracker.persistence.port import PersistencePort
from tournament_tracker.routes.deps import get_lifecycle, get_store
from tournament_tracker.services.match_classifier import describe_match
from tournament_tracker.services.match_lifecycle import MatchLifecycle
from tournament_tracker.services.match_views import MatchResultPayload, MatchView, RegistrationOutcome
from tournament_tracker.utils.clock import utc_now

router = APIRouter()


class MatchCreate(BaseModel):
    tournament_id: int
    player_one_id: int
    player_two_id: int
    category: str
    start_time: datetime

    @field_validator("start_time")
    @classmethod
    def to_naive_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v


class MatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    player_one_id: int
    player_two_id: int
    category: str
    start_time: datetime


class PlayerRegistrationPayload(BaseModel):
    player_id: int
    registered_by: str


@router.post("/matches", response_model=MatchResponse, status_code=201)
def create_match(match_data: MatchCreate, session: Session = Depends(get_session)):
    """Create a match between two different players, starting in the future"""
    if match_data.player_one_id == match_data.player_two_id:
        raise InvalidRoster()
    if match_data.start_time < utc_now():
        raise InvalidStartTime()
    if not session.get(Tournament, match_data.tournament_id):
        raise TournamentNotFound(f"Tournament {match_data.tournament_id} not found")
    for player_id in (match_data.player_one_id, match_data.player_two_id):
        if not session.get(Player, player_id):
            raise PlayerNotFound(f"Player {player_id} not found")

    match = Match(**match_data.model_dump())
    session.add(match)
    session.commit()
    session.refresh(match)
    return match


@router.get("/matches/{match_id}", response_model=MatchView, response_model_exclude_none=True)
def get_match(match_id: int, store: PersistencePort = Depends(get_store)):
    match = store.get_match(match_id)
    if match is None:
        raise MatchNotFound(f"Match {match_id} not found")
    _, view = describe_match(store, match)
    return view


@router.post(
    "/matches/{match_id}/register/player",
    response_model=RegistrationOutcome,
    response_model_exclude_none=True,
)
def register_player(
    match_id: int,
    payload: PlayerRegistrationPayload,
    lifecycle: MatchLifecycle = Depends(get_lifecycle),
):
    """Check a player in; the second check-in starts the match"""
    return lifecycle.register_player(match_id, payload.player_id, payload.registered_by)


@router.post("/matches/{match_id}/start", response_model=MatchView, response_model_exclude_none=True)
def start_match(match_id: int, lifecycle: MatchLifecycle = Depends(get_lifecycle)):
    return lifecycle.start_match(match_id)


@router.post("/matches/{match_id}/finish", response_model=MatchView, response_model_exclude_none=True)
def finish_match(
    match_id: int,
    payload: MatchResultPayload,
    lifecycle: MatchLifecycle = Depends(get_lifecycle),
):
    """Record the result; the freed court goes to the next queued match"""
    return lifecycle.finish_match(match_id, payload)
