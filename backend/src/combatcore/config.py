from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

_DEFAULT_DATABASE_URL = "sqlite:///./combatcore.sqlite3"


@dataclass(frozen=True)
class Settings:
    database_url: str = _DEFAULT_DATABASE_URL
    log_level: str = "INFO"
    seed: Optional[int] = None  # фиксированный seed для новых сессий (отладка)


def _int_or_none(raw: Optional[str]) -> Optional[int]:
    if raw is None or not raw.strip():
        return None
    return int(raw)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        database_url=os.environ.get("COMBATCORE_DATABASE_URL", _DEFAULT_DATABASE_URL),
        log_level=os.environ.get("COMBATCORE_LOG_LEVEL", "INFO").upper(),
        seed=_int_or_none(os.environ.get("COMBATCORE_SEED")),
    )


def configure_logging(settings: Settings | None = None) -> None:
    s = settings or get_settings()
    logging.basicConfig(
        level=s.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("combatcore").setLevel(s.log_level)
