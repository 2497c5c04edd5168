"""
InMemoryStore: a process-local PersistencePort for unit tests.

A single re-entrant lock stands in for the database's row-level consistency,
so the atomicity rules of PersistencePort hold when tests hammer it from
several threads. transaction() snapshots the mutable state and restores it
if the block raises.
"""
from __future__ import annotations

import itertools
import threading
from contextlib import contextmanager
from datetime import date, datetime
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from tournament_tracker.errors import CourtAlreadyExists, MatchAlreadyCompleted, MatchAlreadyStarted, PlayerAlreadyRegistered
from tournament_tracker.models.court import CourtQueueEntry, TournamentCourt
from tournament_tracker.models.match import Match, MatchResult
from tournament_tracker.models.player import Player, PlayerRegistration
from tournament_tracker.models.tournament import Tournament
from tournament_tracker.persistence.port import PersistencePort
from tournament_tracker.utils.clock import utc_now

CourtKey = Tuple[int, str]  # (tournament_id, court_name)


class InMemoryStore(PersistencePort):
    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._lock = threading.RLock()
        self._clock = clock
        self._ids = itertools.count(1)

        self.tournaments: Dict[int, Tournament] = {}
        self.players: Dict[int, Player] = {}
        self.matches: Dict[int, Match] = {}

        # Mutable allocation state (snapshotted by transaction())
        self._courts: List[CourtKey] = []
        self._occupancy: Dict[CourtKey, Optional[int]] = {}
        self._queue: List[CourtQueueEntry] = []
        self._registrations: List[PlayerRegistration] = []
        self._results: Dict[int, MatchResult] = {}

    # ── Seeding (stands in for the plain CRUD layer) ───────────────────

    def add_tournament(self, name: str = "Test Open", start_date: Optional[date] = None) -> Tournament:
        start = start_date or self._clock().date()
        tournament = Tournament(id=next(self._ids), name=name, start_date=start, end_date=start)
        self.tournaments[tournament.id] = tournament
        return tournament

    def add_player(self, player_id: int, name: str) -> Player:
        player = Player(id=player_id, name=name)
        self.players[player_id] = player
        return player

    def add_match(
        self,
        tournament_id: int,
        player_one_id: int,
        player_two_id: int,
        category: str = "P96",
        start_time: Optional[datetime] = None,
    ) -> Match:
        match = Match(
            id=next(self._ids),
            tournament_id=tournament_id,
            player_one_id=player_one_id,
            player_two_id=player_two_id,
            category=category,
            start_time=start_time or self._clock(),
        )
        self.matches[match.id] = match
        return match

    def add_court(self, tournament_id: int, court_name: str) -> TournamentCourt:
        key = (tournament_id, court_name)
        with self._lock:
            if key in self._occupancy:
                raise CourtAlreadyExists()
            self._courts.append(key)
            self._occupancy[key] = None
        return TournamentCourt(tournament_id=tournament_id, court_name=court_name)

    def courts(self, tournament_id: int) -> List[TournamentCourt]:
        with self._lock:
            return [
                TournamentCourt(tournament_id=t_id, court_name=name, match_id=self._occupancy[(t_id, name)])
                for t_id, name in self._courts
                if t_id == tournament_id
            ]

    # ── Matches and players ────────────────────────────────────────────

    def get_match(self, match_id: int) -> Optional[Match]:
        return self.matches.get(match_id)

    def get_tournament_matches(self, tournament_id: int) -> List[Match]:
        return [m for m in self.matches.values() if m.tournament_id == tournament_id]

    def get_player(self, player_id: int) -> Optional[Player]:
        return self.players.get(player_id)

    def get_registered_players(self, match_id: int) -> List[PlayerRegistration]:
        with self._lock:
            return [r for r in self._registrations if r.match_id == match_id]

    def insert_player_registration(self, player_id: int, match_id: int, registered_by: str) -> PlayerRegistration:
        with self._lock:
            if any(r.player_id == player_id and r.match_id == match_id for r in self._registrations):
                raise PlayerAlreadyRegistered()
            registration = PlayerRegistration(
                id=next(self._ids),
                player_id=player_id,
                match_id=match_id,
                registered_at=self._clock(),
                registered_by=registered_by,
            )
            self._registrations.append(registration)
            return registration

    def get_match_result(self, match_id: int) -> Optional[MatchResult]:
        with self._lock:
            return self._results.get(match_id)

    def insert_match_result(self, match_id: int, winner_id: int, result: str) -> MatchResult:
        with self._lock:
            if match_id in self._results:
                raise MatchAlreadyCompleted()
            match_result = MatchResult(id=next(self._ids), match_id=match_id, winner_id=winner_id, result=result)
            self._results[match_id] = match_result
            return match_result

    # ── Courts and queue ───────────────────────────────────────────────

    def get_match_court(self, tournament_id: int, match_id: int) -> Optional[str]:
        with self._lock:
            for (t_id, name), occupant in self._occupancy.items():
                if t_id == tournament_id and occupant == match_id:
                    return name
            return None

    def try_assign_free_court(self, tournament_id: int, match_id: int) -> Optional[str]:
        with self._lock:
            if match_id in self._occupancy.values():
                # Mirrors the unique constraint on tournamentcourt.match_id
                raise MatchAlreadyStarted(f"Match {match_id} already occupies a court")
            for key in self._courts:
                if key[0] == tournament_id and self._occupancy[key] is None:
                    self._occupancy[key] = match_id
                    return key[1]
            return None

    def release_court(self, tournament_id: int, match_id: int) -> Optional[str]:
        with self._lock:
            for key in self._courts:
                if key[0] == tournament_id and self._occupancy[key] == match_id:
                    self._occupancy[key] = None
                    return key[1]
            return None

    def append_to_queue(self, tournament_id: int, match_id: int) -> CourtQueueEntry:
        with self._lock:
            if any(e.match_id == match_id for e in self._queue):
                raise MatchAlreadyStarted(f"Match {match_id} is already queued")
            if match_id in self._occupancy.values():
                raise MatchAlreadyStarted(f"Match {match_id} already occupies a court")
            entry = CourtQueueEntry(
                id=next(self._ids),
                tournament_id=tournament_id,
                match_id=match_id,
                place_in_queue=self._clock(),
            )
            self._queue.append(entry)
            return entry

    def _tournament_queue(self, tournament_id: int) -> List[CourtQueueEntry]:
        entries = [e for e in self._queue if e.tournament_id == tournament_id]
        return sorted(entries, key=lambda e: (e.place_in_queue, e.id))

    def get_queue_placement(self, tournament_id: int, match_id: int) -> Optional[int]:
        with self._lock:
            for position, entry in enumerate(self._tournament_queue(tournament_id), start=1):
                if entry.match_id == match_id:
                    return position
            return None

    def pop_queue(self, tournament_id: int) -> Optional[int]:
        with self._lock:
            queue = self._tournament_queue(tournament_id)
            if not queue:
                return None
            head = queue[0]
            self._queue.remove(head)
            return head.match_id

    # ── Transactions ───────────────────────────────────────────────────

    @contextmanager
    def transaction(self) -> Iterator["InMemoryStore"]:
        with self._lock:
            snapshot = (
                dict(self._occupancy),
                list(self._queue),
                list(self._registrations),
                dict(self._results),
            )
            try:
                yield self
            except Exception:
                self._occupancy, self._queue, self._registrations, self._results = snapshot
                raise
