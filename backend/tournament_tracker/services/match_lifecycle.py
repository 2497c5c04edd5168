"""
Match Lifecycle: check-in → start → finish.

A match moves through unstarted → (court-assigned | queued) → finished and is
in exactly one of those states at any time:

- The second player's check-in starts the match: it gets a free court or, if
  none is free, joins the tournament's court queue.
- Finishing records the result, frees the court and hands it to the head of
  the queue, all in one store transaction. If any step fails nothing of it
  is kept, the result included, and the caller retries the whole call.

All validation happens before the first write.
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from tournament_tracker.errors import (
    InvalidPlayerRegistration,
    MatchAlreadyCompleted,
    MatchAlreadyStarted,
    MatchNotFound,
    MatchNotStarted,
    PlayerAlreadyRegistered,
    PlayerMissing,
    StoreError,
    TrackerError,
)
from tournament_tracker.models.match import Match
from tournament_tracker.persistence.port import PersistencePort
from tournament_tracker.services.court_allocator import CourtAllocator
from tournament_tracker.services.match_views import (
    MatchResultPayload,
    MatchView,
    RegistrationOutcome,
    RegistrationView,
    build_match_view,
    load_player_info,
    placement_label,
)
from tournament_tracker.services.result_validator import ResultValidator
from tournament_tracker.utils.clock import utc_now

logger = logging.getLogger(__name__)


class MatchLifecycle:
    def __init__(
        self,
        store: PersistencePort,
        validator: Optional[ResultValidator] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.validator = validator or ResultValidator()
        self._clock = clock

    def _get_match(self, match_id: int) -> Match:
        match = self.store.get_match(match_id)
        if match is None:
            raise MatchNotFound(f"Match {match_id} not found")
        return match

    def register_player(self, match_id: int, player_id: int, registered_by: str) -> RegistrationOutcome:
        """
        Check a rostered player in. The check-in that completes the pair starts
        the match; if that start fails the check-in still stands and the error
        kind is reported in start_error.
        """
        match = self._get_match(match_id)
        if not match.has_player(player_id):
            raise InvalidPlayerRegistration(f"Player {player_id} is not on the roster of match {match_id}")

        previous = self.store.get_registered_players(match_id)
        if any(r.player_id == player_id for r in previous):
            raise PlayerAlreadyRegistered(f"Player {player_id} already registered to match {match_id}")

        registration = self.store.insert_player_registration(player_id, match_id, registered_by)
        outcome = RegistrationOutcome(registration=RegistrationView.model_validate(registration))

        checked_in = {r.player_id for r in self.store.get_registered_players(match_id)}
        if len(checked_in) == 2:
            try:
                outcome.match = self.start_match(match_id)
            except TrackerError as exc:
                logger.warning("Player %d checked in to match %d but the match did not start: %s", player_id, match_id, exc)
                outcome.start_error = exc.kind
        return outcome

    def start_match(self, match_id: int) -> MatchView:
        """Put a fully checked-in match on a free court, or queue it."""
        match = self._get_match(match_id)
        tournament_id = match.tournament_id

        if self.store.get_match_court(tournament_id, match_id) is not None:
            raise MatchAlreadyStarted(f"Match {match_id} is already on a court")
        if self.store.get_queue_placement(tournament_id, match_id) is not None:
            raise MatchAlreadyStarted(f"Match {match_id} is already waiting for a court")
        if self.store.get_match_result(match_id) is not None:
            raise MatchAlreadyCompleted(f"Match {match_id} is already finished")

        info = load_player_info(self.store, match)
        if not info.both_arrived:
            raise PlayerMissing(f"Both players must check in before match {match_id} can start")

        # A concurrent start of the same match gets MatchAlreadyStarted from
        # the store here instead of seating or queueing the match twice
        with self.store.transaction() as tx:
            allocator = CourtAllocator(tx)
            court_name = allocator.try_assign_free_court(tournament_id, match_id)
            if court_name is None:
                allocator.enqueue(tournament_id, match_id)
                position = allocator.queue_placement(tournament_id, match_id)

        if court_name is not None:
            return build_match_view(match, info, court=court_name, start_time=self._clock())
        return build_match_view(match, info, court=placement_label(position))

    def finish_match(self, match_id: int, payload: MatchResultPayload) -> MatchView:
        """Record the result, free the court and promote the next queued match."""
        match = self._get_match(match_id)
        tournament_id = match.tournament_id

        self.validator.validate(payload, match)
        if self.store.get_match_result(match_id) is not None:
            raise MatchAlreadyCompleted(f"Match {match_id} already has a result")
        if self.store.get_match_court(tournament_id, match_id) is None:
            raise MatchNotStarted(f"Match {match_id} holds no court")

        with self.store.transaction() as tx:
            result = tx.insert_match_result(match_id, payload.winner, payload.result.strip())
            allocator = CourtAllocator(tx)
            freed_court = allocator.release_court(tournament_id, match_id)

            waiting_match_id = allocator.pop_queue(tournament_id)
            if waiting_match_id is not None:
                # The court freed above must still be free here
                court_name = allocator.try_assign_free_court(tournament_id, waiting_match_id)
                if court_name is None:
                    logger.error("Match %d left the queue but court %s could not be assigned", waiting_match_id, freed_court)
                    raise StoreError(f"Could not promote match {waiting_match_id} to court {freed_court}")
                logger.info("Promoted match %d from the queue to court %s", waiting_match_id, court_name)

        info = load_player_info(self.store, match)
        return build_match_view(match, info, result=result)
