from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.engine import Engine

from . import models  # noqa: F401  регистрирует таблицы в Base.metadata
from .base import Base
from .session import engine

logger = logging.getLogger(__name__)


def init_db(bind: Optional[Engine] = None) -> None:
    target = bind if bind is not None else engine
    Base.metadata.create_all(bind=target)
    logger.info("database ready: %s", ", ".join(sorted(Base.metadata.tables)))
