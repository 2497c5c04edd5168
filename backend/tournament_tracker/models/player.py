from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel

from tournament_tracker.utils.clock import utc_now


class Player(SQLModel, table=True):
    # Ids are assigned by the caller (federation/licence number), not generated
    id: int = Field(primary_key=True, sa_column_kwargs={"autoincrement": False})
    name: str


class PlayerRegistration(SQLModel, table=True):
    """A rostered player's check-in for one match."""

    __tablename__ = "playerregistration"
    __table_args__ = (SAUniqueConstraint("player_id", "match_id", name="uq_registration_player_match"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    player_id: int = Field(foreign_key="player.id", index=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    registered_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime, nullable=False))
    registered_by: str
