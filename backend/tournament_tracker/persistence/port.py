"""
PersistencePort: the store operations the match/court core is written against.

Two implementations exist: SqlStore (SQLModel session, the real thing) and
InMemoryStore (plain Python, for unit tests). Both must honour the same
atomicity rules:

- try_assign_free_court claims a court only if it is still free, as one
  conditional mutation. Two concurrent callers can never claim the same court.
- pop_queue removes and returns the head of the queue only once, even when
  callers race.
- transaction() yields a port whose writes commit together when the block
  exits cleanly and are all rolled back when it raises.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import List, Optional

from tournament_tracker.models.court import CourtQueueEntry
from tournament_tracker.models.match import Match, MatchResult
from tournament_tracker.models.player import Player, PlayerRegistration


class PersistencePort(ABC):
    # ── Matches and players ────────────────────────────────────────────

    @abstractmethod
    def get_match(self, match_id: int) -> Optional[Match]:
        ...

    @abstractmethod
    def get_tournament_matches(self, tournament_id: int) -> List[Match]:
        """All matches of a tournament in insertion order."""

    @abstractmethod
    def get_player(self, player_id: int) -> Optional[Player]:
        ...

    @abstractmethod
    def get_registered_players(self, match_id: int) -> List[PlayerRegistration]:
        ...

    @abstractmethod
    def insert_player_registration(self, player_id: int, match_id: int, registered_by: str) -> PlayerRegistration:
        """Record a check-in. Raises PlayerAlreadyRegistered on a duplicate (player, match)."""

    @abstractmethod
    def get_match_result(self, match_id: int) -> Optional[MatchResult]:
        ...

    @abstractmethod
    def insert_match_result(self, match_id: int, winner_id: int, result: str) -> MatchResult:
        """Record the outcome. Raises MatchAlreadyCompleted if one already exists."""

    # ── Courts and queue ───────────────────────────────────────────────

    @abstractmethod
    def get_match_court(self, tournament_id: int, match_id: int) -> Optional[str]:
        ...

    @abstractmethod
    def try_assign_free_court(self, tournament_id: int, match_id: int) -> Optional[str]:
        """
        Claim any free court for match_id. Returns the court name, or None if all
        are taken. Raises MatchAlreadyStarted if match_id already holds a court.
        """

    @abstractmethod
    def release_court(self, tournament_id: int, match_id: int) -> Optional[str]:
        """Free the court held by match_id. Returns its name, or None if the match held none."""

    @abstractmethod
    def append_to_queue(self, tournament_id: int, match_id: int) -> CourtQueueEntry:
        """Queue match_id. Raises MatchAlreadyStarted if it is already queued or holds a court."""

    @abstractmethod
    def get_queue_placement(self, tournament_id: int, match_id: int) -> Optional[int]:
        """1-based rank of match_id in the tournament queue, or None if not queued."""

    @abstractmethod
    def pop_queue(self, tournament_id: int) -> Optional[int]:
        """Remove and return the earliest queued match id, or None if the queue is empty."""

    # ── Transactions ───────────────────────────────────────────────────

    @abstractmethod
    def transaction(self) -> AbstractContextManager[PersistencePort]:
        """Scope the enclosed operations to one commit-or-rollback-all unit."""
