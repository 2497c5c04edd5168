from pathlib import Path
from typing import Generator

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from tournament_tracker.settings import Settings, get_settings


def build_engine(settings: Settings) -> Engine:
    """Create the engine for settings.database_url (sqlite paths get their folder created)."""
    connect_args = {"check_same_thread": False} if settings.is_sqlite else {}

    if settings.is_sqlite and ":memory:" not in settings.database_url:
        db_path = settings.database_url.replace("sqlite:///", "", 1)
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    return create_engine(
        settings.database_url,
        echo=settings.sql_echo,
        connect_args=connect_args,
    )


engine: Engine = build_engine(get_settings())


def get_session() -> Generator[Session, None, None]:
    """Get database session"""
    with Session(engine) as session:
        yield session


def init_db() -> None:
    """Initialize database - create all tables"""
    # Import all models to ensure they're registered with SQLModel metadata
    from tournament_tracker.models.court import CourtQueueEntry, TournamentCourt  # noqa: F401
    from tournament_tracker.models.match import Match, MatchResult  # noqa: F401
    from tournament_tracker.models.player import Player, PlayerRegistration  # noqa: F401
    from tournament_tracker.models.tournament import Tournament  # noqa: F401

    SQLModel.metadata.create_all(engine)
