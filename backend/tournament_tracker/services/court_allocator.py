"""
Court Allocator: exclusive court occupancy and the FIFO court queue of a
tournament.

A match is never both queued and on a court. Claiming a court for a match
that already holds one, or queueing a match that is already queued or
playing, raises MatchAlreadyStarted.
Bind the allocator to a transactional port (store.transaction()) to make a
release/pop/assign sequence one unit.
"""
import logging
from typing import Optional

from tournament_tracker.errors import CourtNotFound, QueueEntryNotFound
from tournament_tracker.persistence.port import PersistencePort

logger = logging.getLogger(__name__)


class CourtAllocator:
    def __init__(self, store: PersistencePort):
        self.store = store

    def try_assign_free_court(self, tournament_id: int, match_id: int) -> Optional[str]:
        """Claim a free court for match_id. None means every court is taken (not an error)."""
        court_name = self.store.try_assign_free_court(tournament_id, match_id)
        if court_name is None:
            logger.info("No free court in tournament %d for match %d", tournament_id, match_id)
        else:
            logger.info("Assigned court %s to match %d", court_name, match_id)
        return court_name

    def release_court(self, tournament_id: int, match_id: int) -> str:
        court_name = self.store.release_court(tournament_id, match_id)
        if court_name is None:
            raise CourtNotFound(f"Match {match_id} holds no court in tournament {tournament_id}")
        logger.info("Released court %s held by match %d", court_name, match_id)
        return court_name

    def enqueue(self, tournament_id: int, match_id: int) -> None:
        entry = self.store.append_to_queue(tournament_id, match_id)
        logger.info("Match %d queued for a court at %s", match_id, entry.place_in_queue)

    def queue_placement(self, tournament_id: int, match_id: int) -> int:
        """1-based position of match_id in the tournament's court queue."""
        position = self.store.get_queue_placement(tournament_id, match_id)
        if position is None:
            raise QueueEntryNotFound(f"Match {match_id} is not in the court queue of tournament {tournament_id}")
        return position

    def pop_queue(self, tournament_id: int) -> Optional[int]:
        match_id = self.store.pop_queue(tournament_id)
        if match_id is None:
            logger.debug("Court queue of tournament %d is empty", tournament_id)
        return match_id
