"""
Syntactic check of a proposed match outcome.

A result is one or more sets separated by single spaces, each set being
"<games>-<games>" with an optional "(<tie-break points>)" suffix:

  "6-3 6-4"            ok
  "2-3(2) 4-4 3-3(2)"  ok
  "2-3-4-5 6-2(2)"     rejected

Nothing checks that the winner actually won enough sets.
"""
import re

from tournament_tracker.errors import InvalidResult, InvalidWinner
from tournament_tracker.models.match import Match
from tournament_tracker.services.match_views import MatchResultPayload
from tournament_tracker.settings import DEFAULT_RESULT_PATTERN


class ResultValidator:
    def __init__(self, pattern: str = DEFAULT_RESULT_PATTERN):
        self._regex = re.compile(pattern)

    def is_valid_score(self, result: str) -> bool:
        return self._regex.fullmatch(result.strip()) is not None

    def validate(self, payload: MatchResultPayload, match: Match) -> None:
        """Raise InvalidWinner or InvalidResult; return None when the outcome is acceptable."""
        if not match.has_player(payload.winner):
            raise InvalidWinner(f"Player {payload.winner} did not play match {match.id}")
        if not self.is_valid_score(payload.result):
            raise InvalidResult(f"Invalid result string: {payload.result!r}")
