"""
Tournament match listing: scheduled / playing / finished.

State is inferred from which rows exist for a match:

- result row                  → finished (winner + result, no court)
- court row                   → playing (court name)
- queue row                   → scheduled (court carries the queue placement text)
- none, players not both in   → scheduled (not started yet, no court)
- none, both players in       → inconsistent; left out of the listing
"""
import logging
from typing import Optional, Tuple

from tournament_tracker.errors import PlayerNotFound
from tournament_tracker.models.match import Match
from tournament_tracker.persistence.port import PersistencePort
from tournament_tracker.services.match_views import (
    MatchView,
    TournamentMatchList,
    build_match_view,
    load_player_info,
    placement_label,
)

logger = logging.getLogger(__name__)

SCHEDULED = "scheduled"
PLAYING = "playing"
FINISHED = "finished"


def describe_match(store: PersistencePort, match: Match) -> Tuple[Optional[str], MatchView]:
    """
    Return (bucket, view) for one match. bucket is None when the match is
    checked in but neither on a court nor queued.

    Raises PlayerNotFound if a rostered player row is missing.
    """
    info = load_player_info(store, match)

    result = store.get_match_result(match.id)
    if result is not None:
        return FINISHED, build_match_view(match, info, result=result)

    court_name = store.get_match_court(match.tournament_id, match.id)
    if court_name is not None:
        return PLAYING, build_match_view(match, info, court=court_name)

    position = store.get_queue_placement(match.tournament_id, match.id)
    if position is not None:
        return SCHEDULED, build_match_view(match, info, court=placement_label(position))
    if not info.both_arrived:
        return SCHEDULED, build_match_view(match, info)
    return None, build_match_view(match, info)


def classify(store: PersistencePort, tournament_id: int) -> TournamentMatchList:
    listing = TournamentMatchList()
    buckets = {SCHEDULED: listing.scheduled, PLAYING: listing.playing, FINISHED: listing.finished}

    for match in store.get_tournament_matches(tournament_id):
        try:
            bucket, view = describe_match(store, match)
        except PlayerNotFound as exc:
            logger.warning("Player info not found for match %d: %s", match.id, exc)
            continue

        if bucket is None:
            logger.error("Match %d should be in the court queue!", match.id)
            continue
        buckets[bucket].append(view)

    return listing
