from datetime import date, datetime
from typing import Optional

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel

from tournament_tracker.utils.clock import utc_now


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    start_date: date
    end_date: date
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime, nullable=False))
