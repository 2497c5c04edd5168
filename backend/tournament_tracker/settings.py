"""
Process-wide settings, read once from the environment (.env supported).

The Settings object is frozen: build it with get_settings() at startup and
pass it to whatever needs it instead of re-reading os.environ.
"""
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

# One or more "<int>-<int>[(<int>)]" sets separated by single spaces
DEFAULT_RESULT_PATTERN = r"[0-9]+-[0-9]+(\([0-9]+\))?( [0-9]+-[0-9]+(\([0-9]+\))?)*"


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./tournament.db"
    sql_echo: bool = False
    log_level: str = "INFO"
    result_pattern: str = DEFAULT_RESULT_PATTERN

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv()
    return Settings(
        database_url=os.getenv("DATABASE_URL", Settings.database_url),
        sql_echo=_env_flag("SQL_ECHO"),
        log_level=os.getenv("LOG_LEVEL", Settings.log_level).upper(),
        result_pattern=os.getenv("RESULT_PATTERN") or DEFAULT_RESULT_PATTERN,
    )
