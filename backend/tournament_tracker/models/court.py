from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel

from tournament_tracker.utils.clock import utc_now


class TournamentCourt(SQLModel, table=True):
    """A court of a tournament and the match currently occupying it (NULL when free)."""

    __tablename__ = "tournamentcourt"
    __table_args__ = (SAUniqueConstraint("tournament_id", "court_name", name="uq_court_tournament_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    court_name: str
    match_id: Optional[int] = Field(default=None, foreign_key="match.id", unique=True)


class CourtQueueEntry(SQLModel, table=True):
    """A match waiting for a free court. FIFO by (place_in_queue, id)."""

    __tablename__ = "courtqueueentry"

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    match_id: int = Field(foreign_key="match.id", unique=True)
    place_in_queue: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime, nullable=False, index=True))
