from datetime import timedelta
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import tournament_tracker.models  # noqa: F401  (register all tables before create_all)
from tournament_tracker.database import get_session
from tournament_tracker.main import app
from tournament_tracker.models.court import TournamentCourt
from tournament_tracker.models.match import Match
from tournament_tracker.models.player import Player
from tournament_tracker.models.tournament import Tournament
from tournament_tracker.persistence.memory_store import InMemoryStore
from tournament_tracker.persistence.sql_store import SqlStore
from tournament_tracker.utils.clock import utc_now

TEST_DATABASE_URL = "sqlite:///:memory:"

# StaticPool + :memory: so every session (test code and app requests) sees the same database
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session")
def session_fixture():
    """Fresh schema per test"""
    SQLModel.metadata.create_all(test_engine)
    with Session(test_engine) as session:
        yield session
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Test client whose requests use the test engine"""
    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============================================================================
# Store harness: the same seeding API over SqlStore and InMemoryStore
# ============================================================================


class SqlTracker:
    def __init__(self, session: Session):
        self.session = session
        self.store = SqlStore(session)

    def _save(self, obj):
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    def add_tournament(self, name: str = "Södertälje Open") -> int:
        today = utc_now().date()
        return self._save(Tournament(name=name, start_date=today, end_date=today + timedelta(days=1))).id

    def add_player(self, player_id: int, name: str) -> int:
        return self._save(Player(id=player_id, name=name)).id

    def add_match(self, tournament_id: int, player_one_id: int, player_two_id: int, category: str = "P96") -> int:
        match = Match(
            tournament_id=tournament_id,
            player_one_id=player_one_id,
            player_two_id=player_two_id,
            category=category,
            start_time=utc_now() + timedelta(hours=2),
        )
        return self._save(match).id

    def add_court(self, tournament_id: int, court_name: str) -> None:
        self._save(TournamentCourt(tournament_id=tournament_id, court_name=court_name))


class MemoryTracker:
    def __init__(self, store: Optional[InMemoryStore] = None):
        self.store = store or InMemoryStore()

    def add_tournament(self, name: str = "Södertälje Open") -> int:
        return self.store.add_tournament(name).id

    def add_player(self, player_id: int, name: str) -> int:
        return self.store.add_player(player_id, name).id

    def add_match(self, tournament_id: int, player_one_id: int, player_two_id: int, category: str = "P96") -> int:
        start_time = utc_now() + timedelta(hours=2)
        return self.store.add_match(tournament_id, player_one_id, player_two_id, category, start_time).id

    def add_court(self, tournament_id: int, court_name: str) -> None:
        self.store.add_court(tournament_id, court_name)


@pytest.fixture(params=["sql", "memory"])
def tracker(request, session: Session):
    """Seedable store, once per PersistencePort implementation"""
    if request.param == "sql":
        return SqlTracker(session)
    return MemoryTracker()


@pytest.fixture
def roster(tracker):
    """Tournament with two players: Göte (1) and Sture (2)."""
    tournament_id = tracker.add_tournament()
    tracker.add_player(1, "Göte Svensson")
    tracker.add_player(2, "Sture Svensson")
    return {"tournament_id": tournament_id, "player_one": 1, "player_two": 2}
