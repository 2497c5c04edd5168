from tournament_tracker.models.court import CourtQueueEntry, TournamentCourt
from tournament_tracker.models.match import Match, MatchResult
from tournament_tracker.models.player import Player, PlayerRegistration
from tournament_tracker.models.tournament import Tournament

__all__ = [
    "Tournament",
    "Player",
    "PlayerRegistration",
    "Match",
    "MatchResult",
    "TournamentCourt",
    "CourtQueueEntry",
]
