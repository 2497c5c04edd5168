from functools import lru_cache

from fastapi import Depends
from sqlmodel import Session

from tournament_tracker.database import get_session
from tournament_tracker.persistence.port import PersistencePort
from tournament_tracker.persistence.sql_store import SqlStore
from tournament_tracker.services.match_lifecycle import MatchLifecycle
from tournament_tracker.services.result_validator import ResultValidator
from tournament_tracker.settings import get_settings


def get_store(session: Session = Depends(get_session)) -> PersistencePort:
    return SqlStore(session)


@lru_cache(maxsize=1)
def get_result_validator() -> ResultValidator:
    return ResultValidator(get_settings().result_pattern)


def get_lifecycle(
    store: PersistencePort = Depends(get_store),
    validator: ResultValidator = Depends(get_result_validator),
) -> MatchLifecycle:
    return MatchLifecycle(store, validator)
