from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel


class Match(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    player_one_id: int = Field(foreign_key="player.id")
    player_two_id: int = Field(foreign_key="player.id")
    category: str  # class label, e.g. "P96", "HS"
    start_time: datetime = Field(sa_column=Column(DateTime, nullable=False))

    def has_player(self, player_id: int) -> bool:
        return player_id in (self.player_one_id, self.player_two_id)


class MatchResult(SQLModel, table=True):
    __tablename__ = "matchresult"

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", unique=True)
    winner_id: int = Field(foreign_key="player.id")
    result: str  # e.g. "6-3 6-4" or "7-6(5) 6-4"
