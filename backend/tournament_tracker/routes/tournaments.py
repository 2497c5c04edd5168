from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from tournament_tracker.database import get_session
from tournament_tracker.errors import CourtAlreadyExists, InvalidDate, TournamentNotFound
from tournament_tracker.models.court import TournamentCourt
from tournament_tracker.models.tournament import Tournament
from tournament_tracker.persistence.port import PersistencePort
from tournament_tracker.routes.deps import get_store
from tournament_tracker.services.match_classifier import classify
from tournament_tracker.services.match_views import TournamentMatchList
from tournament_tracker.utils.clock import utc_now

router = APIRouter()


class TournamentCreate(BaseModel):
    name: str
    start_date: date
    end_date: date


class TournamentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    start_date: date
    end_date: date
    created_at: datetime


class CourtCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("court name is required")
        return v.strip()


class CourtResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    court_name: str
    match_id: Optional[int] = None


def _get_tournament_or_404(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFound(f"Tournament {tournament_id} not found")
    return tournament


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(tournament_data: TournamentCreate, session: Session = Depends(get_session)):
    """Create a tournament. Dates must not lie in the past and start <= end."""
    if tournament_data.start_date > tournament_data.end_date or tournament_data.start_date < utc_now().date():
        raise InvalidDate()

    tournament = Tournament(**tournament_data.model_dump())
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(session: Session = Depends(get_session)):
    """List tournaments that have not ended yet"""
    today = utc_now().date()
    return session.exec(select(Tournament).where(Tournament.end_date >= today).order_by(Tournament.start_date)).all()


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    return _get_tournament_or_404(session, tournament_id)


@router.post("/tournaments/{tournament_id}/courts", response_model=CourtResponse, status_code=201)
def add_court(tournament_id: int, court_data: CourtCreate, session: Session = Depends(get_session)):
    """Add a (free) court to the tournament"""
    _get_tournament_or_404(session, tournament_id)

    court = TournamentCourt(tournament_id=tournament_id, court_name=court_data.name)
    session.add(court)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise CourtAlreadyExists(f"Court {court_data.name!r} already exists in tournament {tournament_id}")
    session.refresh(court)
    return court


@router.get("/tournaments/{tournament_id}/courts", response_model=List[CourtResponse])
def list_courts(tournament_id: int, session: Session = Depends(get_session)):
    _get_tournament_or_404(session, tournament_id)
    return session.exec(
        select(TournamentCourt).where(TournamentCourt.tournament_id == tournament_id).order_by(TournamentCourt.id)
    ).all()


@router.get(
    "/tournaments/{tournament_id}/matches",
    response_model=TournamentMatchList,
    response_model_exclude_none=True,
)
def list_tournament_matches(
    tournament_id: int,
    session: Session = Depends(get_session),
    store: PersistencePort = Depends(get_store),
):
    """Matches of a tournament split into scheduled / playing / finished"""
    _get_tournament_or_404(session, tournament_id)
    return classify(store, tournament_id)
