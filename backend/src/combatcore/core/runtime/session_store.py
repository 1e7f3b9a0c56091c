from __future__ import annotations

import logging
from typing import Dict, List, Optional

from combatcore.core.engine.state import EncounterSession

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Живые сессии боя в памяти процесса, по id encounter'а.
    Один писатель на сессию: роутер берёт сессию, применяет одну команду, кладёт обратно.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, EncounterSession] = {}

    def create(
        self, encounter_id: str, name: str, seed: Optional[int] = None
    ) -> EncounterSession:
        session = EncounterSession(id=encounter_id, name=name)
        if seed is not None:
            session.with_seed(seed)
        self._sessions[encounter_id] = session
        logger.info("session created: %s (seed=%s)", encounter_id, seed)
        return session

    def get(self, encounter_id: str) -> Optional[EncounterSession]:
        return self._sessions.get(encounter_id)

    def save(self, session: EncounterSession) -> None:
        self._sessions[session.id] = session

    def drop(self, encounter_id: str) -> None:
        self._sessions.pop(encounter_id, None)

    def ids(self) -> List[str]:
        return list(self._sessions)

    def clear(self) -> None:
        self._sessions.clear()


_store = SessionStore()


def get_store() -> SessionStore:
    return _store
