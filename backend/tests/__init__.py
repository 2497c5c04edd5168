# Force SQLModel table registration at test discovery time
from tournament_tracker.models.court import CourtQueueEntry, TournamentCourt  # noqa: F401
from tournament_tracker.models.match import Match, MatchResult  # noqa: F401
from tournament_tracker.models.player import Player, PlayerRegistration  # noqa: F401
from tournament_tracker.models.tournament import Tournament  # noqa: F401
