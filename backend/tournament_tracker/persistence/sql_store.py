"""
SqlStore: PersistencePort on a SQLModel session.

Outside of transaction() every write commits on its own. Inside, writes are
only flushed and the whole block commits (or rolls back) at the end.

Court claims and queue pops are conditional statements whose row count tells
us whether we won; a loser simply retries against the next candidate row.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy import DateTime, and_, delete, func, insert, literal, or_, update
from sqlalchemy import select as sa_select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from tournament_tracker.errors import MatchAlreadyCompleted, MatchAlreadyStarted, PlayerAlreadyRegistered, StoreError
from tournament_tracker.models.court import CourtQueueEntry, TournamentCourt
from tournament_tracker.models.match import Match, MatchResult
from tournament_tracker.models.player import Player, PlayerRegistration
from tournament_tracker.persistence.port import PersistencePort
from tournament_tracker.utils.clock import utc_now

logger = logging.getLogger(__name__)

# Conditional claim/pop retries before giving up on a contended row set
MAX_CONTENDED_ATTEMPTS = 5


class SqlStore(PersistencePort):
    def __init__(self, session: Session, autocommit: bool = True):
        self.session = session
        self._autocommit = autocommit

    def _write_done(self) -> None:
        if self._autocommit:
            self.session.commit()
        else:
            self.session.flush()

    def _abort_write(self) -> None:
        # Inside transaction() the outer block owns the rollback
        if self._autocommit:
            self.session.rollback()

    @contextmanager
    def _store_errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            logger.error("Failed to %s: %s", action, exc)
            self._abort_write()
            raise StoreError(f"Failed to {action}") from exc

    # ── Matches and players ────────────────────────────────────────────

    def get_match(self, match_id: int) -> Optional[Match]:
        with self._store_errors("fetch match"):
            return self.session.get(Match, match_id)

    def get_tournament_matches(self, tournament_id: int) -> List[Match]:
        with self._store_errors("fetch tournament matches"):
            return list(
                self.session.exec(select(Match).where(Match.tournament_id == tournament_id).order_by(Match.id)).all()
            )

    def get_player(self, player_id: int) -> Optional[Player]:
        with self._store_errors("fetch player"):
            return self.session.get(Player, player_id)

    def get_registered_players(self, match_id: int) -> List[PlayerRegistration]:
        with self._store_errors("fetch player registrations"):
            return list(
                self.session.exec(
                    select(PlayerRegistration)
                    .where(PlayerRegistration.match_id == match_id)
                    .order_by(PlayerRegistration.registered_at, PlayerRegistration.id)
                ).all()
            )

    def insert_player_registration(self, player_id: int, match_id: int, registered_by: str) -> PlayerRegistration:
        registration = PlayerRegistration(player_id=player_id, match_id=match_id, registered_by=registered_by)
        with self._store_errors("register player"):
            try:
                self.session.add(registration)
                self._write_done()
            except IntegrityError as exc:
                self._abort_write()
                raise PlayerAlreadyRegistered() from exc
            self.session.refresh(registration)
        return registration

    def get_match_result(self, match_id: int) -> Optional[MatchResult]:
        with self._store_errors("fetch match result"):
            return self.session.exec(select(MatchResult).where(MatchResult.match_id == match_id)).first()

    def insert_match_result(self, match_id: int, winner_id: int, result: str) -> MatchResult:
        match_result = MatchResult(match_id=match_id, winner_id=winner_id, result=result)
        with self._store_errors("insert match result"):
            try:
                self.session.add(match_result)
                self._write_done()
            except IntegrityError as exc:
                self._abort_write()
                raise MatchAlreadyCompleted() from exc
            self.session.refresh(match_result)
        return match_result

    # ── Courts and queue ───────────────────────────────────────────────

    def get_match_court(self, tournament_id: int, match_id: int) -> Optional[str]:
        with self._store_errors("fetch match court"):
            return self._court_of(tournament_id, match_id)

    def _court_of(self, tournament_id: int, match_id: int) -> Optional[str]:
        return self.session.exec(
            select(TournamentCourt.court_name).where(
                TournamentCourt.tournament_id == tournament_id,
                TournamentCourt.match_id == match_id,
            )
        ).first()

    def try_assign_free_court(self, tournament_id: int, match_id: int) -> Optional[str]:
        free_court_id = (
            select(TournamentCourt.id)
            .where(TournamentCourt.tournament_id == tournament_id, TournamentCourt.match_id.is_(None))
            .order_by(TournamentCourt.id)
            .limit(1)
            .scalar_subquery()
        )
        claim = (
            update(TournamentCourt)
            .where(TournamentCourt.id == free_court_id, TournamentCourt.match_id.is_(None))
            .values(match_id=match_id)
            .execution_options(synchronize_session=False)
        )
        with self._store_errors("assign free court"):
            for _ in range(MAX_CONTENDED_ATTEMPTS):
                try:
                    claimed = self.session.execute(claim).rowcount == 1
                except IntegrityError as exc:
                    # uq on tournamentcourt.match_id: the match sits on another court
                    self._abort_write()
                    raise MatchAlreadyStarted(f"Match {match_id} already occupies a court") from exc
                if claimed:
                    self._write_done()
                    return self._court_of(tournament_id, match_id)
                if self._court_of(tournament_id, match_id) is not None:
                    self._abort_write()
                    raise MatchAlreadyStarted(f"Match {match_id} already occupies a court")
                if not self._has_free_court(tournament_id):
                    return None
                logger.debug("Lost court claim race for match %d, retrying", match_id)
        logger.warning("Gave up claiming a court for match %d after %d attempts", match_id, MAX_CONTENDED_ATTEMPTS)
        return None

    def _has_free_court(self, tournament_id: int) -> bool:
        free = self.session.exec(
            select(TournamentCourt.id).where(
                TournamentCourt.tournament_id == tournament_id,
                TournamentCourt.match_id.is_(None),
            )
        ).first()
        return free is not None

    def release_court(self, tournament_id: int, match_id: int) -> Optional[str]:
        court_name = self.get_match_court(tournament_id, match_id)
        if court_name is None:
            return None
        release = (
            update(TournamentCourt)
            .where(TournamentCourt.tournament_id == tournament_id, TournamentCourt.match_id == match_id)
            .values(match_id=None)
            .execution_options(synchronize_session=False)
        )
        with self._store_errors("release court"):
            if self.session.execute(release).rowcount != 1:
                self._abort_write()
                return None
            self._write_done()
        return court_name

    def append_to_queue(self, tournament_id: int, match_id: int) -> CourtQueueEntry:
        # INSERT ... SELECT ... WHERE NOT EXISTS: a match holding a court is never queued
        holds_court = sa_select(TournamentCourt.id).where(TournamentCourt.match_id == match_id).exists()
        enqueue = insert(CourtQueueEntry).from_select(
            ["tournament_id", "match_id", "place_in_queue"],
            sa_select(
                literal(tournament_id),
                literal(match_id),
                literal(utc_now(), type_=DateTime()),
            ).where(~holds_court),
        )
        with self._store_errors("append match to court queue"):
            try:
                self.session.execute(enqueue)
            except IntegrityError as exc:
                self._abort_write()
                raise MatchAlreadyStarted(f"Match {match_id} is already queued") from exc
            self._write_done()
            entry = self.session.exec(select(CourtQueueEntry).where(CourtQueueEntry.match_id == match_id)).first()
        if entry is None:
            raise MatchAlreadyStarted(f"Match {match_id} already occupies a court")
        return entry

    def get_queue_placement(self, tournament_id: int, match_id: int) -> Optional[int]:
        with self._store_errors("fetch queue placement"):
            entry = self.session.exec(
                select(CourtQueueEntry).where(
                    CourtQueueEntry.tournament_id == tournament_id,
                    CourtQueueEntry.match_id == match_id,
                )
            ).first()
            if entry is None:
                return None
            ahead = self.session.exec(
                select(func.count())
                .select_from(CourtQueueEntry)
                .where(
                    CourtQueueEntry.tournament_id == tournament_id,
                    or_(
                        CourtQueueEntry.place_in_queue < entry.place_in_queue,
                        and_(
                            CourtQueueEntry.place_in_queue == entry.place_in_queue,
                            CourtQueueEntry.id < entry.id,
                        ),
                    ),
                )
            ).one()
        return int(ahead) + 1

    def pop_queue(self, tournament_id: int) -> Optional[int]:
        head_query = (
            select(CourtQueueEntry.id, CourtQueueEntry.match_id)
            .where(CourtQueueEntry.tournament_id == tournament_id)
            .order_by(CourtQueueEntry.place_in_queue, CourtQueueEntry.id)
            .limit(1)
        )
        with self._store_errors("pop court queue"):
            for _ in range(MAX_CONTENDED_ATTEMPTS):
                head = self.session.exec(head_query).first()
                if head is None:
                    return None
                entry_id, waiting_match_id = head
                removed = self.session.execute(
                    delete(CourtQueueEntry)
                    .where(CourtQueueEntry.id == entry_id)
                    .execution_options(synchronize_session=False)
                ).rowcount
                if removed == 1:
                    self._write_done()
                    return waiting_match_id
                logger.debug("Queue head %d already popped, retrying", entry_id)
        raise StoreError(f"Could not pop court queue of tournament {tournament_id}")

    # ── Transactions ───────────────────────────────────────────────────

    @contextmanager
    def transaction(self) -> Iterator["SqlStore"]:
        if not self._autocommit:
            # Already inside a transaction: join it
            yield self
            return

        scoped = SqlStore(self.session, autocommit=False)
        try:
            yield scoped
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Transaction failed: %s", exc)
            raise StoreError("Transaction failed") from exc
        except Exception:
            self.session.rollback()
            raise
