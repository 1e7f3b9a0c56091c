from __future__ import annotations

from typing import Iterable, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from combatcore.api.main import app
from combatcore.db.base import Base
import combatcore.db.models  # noqa: F401
import combatcore.db.session as db_session
import combatcore.db.init_db as db_init
from combatcore.db.deps import get_db
from combatcore.core.runtime.session_store import get_store


class ScriptedRoller:
    """Кубик с заранее заданными значениями: roll(min, max) отдаёт следующее."""

    def __init__(self, values: Iterable[int]):
        self.values: List[int] = list(values)
        self.calls: List[tuple[int, int]] = []

    def __call__(self, lo: int, hi: int) -> int:
        assert self.values, f"unexpected roll({lo}, {hi})"
        v = self.values.pop(0)
        assert lo <= v <= hi, f"scripted {v} outside {lo}..{hi}"
        self.calls.append((lo, hi))
        return v


@pytest.fixture()
def scripted():
    return ScriptedRoller


@pytest.fixture(scope="session")
def engine():
    # SQLite in-memory (один коннект на всю сессию тестов)
    eng = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    return eng


@pytest.fixture(scope="session")
def TestingSessionLocal(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture(scope="session", autouse=True)
def _patch_db(engine, TestingSessionLocal):
    # патчим "боевые" engine/SessionLocal на тестовые
    db_session.engine = engine
    db_session.SessionLocal = TestingSessionLocal

    db_init.engine = engine

    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(TestingSessionLocal):
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    get_store().clear()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    get_store().clear()
