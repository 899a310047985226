"""Pytest fixtures for TaskMaster tests."""

import datetime as dt
import os

# Tests never need a real Postgres.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from taskmaster.db.session import Base

# Ensure all models are loaded for create_all
import taskmaster.models  # noqa: F401
from taskmaster.models.enums import LogAction
from taskmaster.models.user import User
from taskmaster.schemas.project_log import LogRecord


@pytest.fixture(scope="function")
def db():
    """In-memory SQLite DB with all tables; one shared connection so TestClient threads see the same data."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


def _add_user(db, username: str, display_name: str) -> User:
    # Hash is irrelevant for service/API tests; auth is overridden.
    user = User(username=username, display_name=display_name, password_hash="x")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def alice(db) -> User:
    return _add_user(db, "alice", "Alice")


@pytest.fixture
def bob(db) -> User:
    return _add_user(db, "bob", "Bob")


@pytest.fixture
def client(db, alice):
    from taskmaster.api.deps import require_auth
    from taskmaster.db.session import get_db
    from taskmaster.main import app

    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[require_auth] = lambda: alice
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_record():
    """Build a stored-looking LogRecord (id + created_at set)."""
    counter = {"n": 0}

    def _make(
        created_at: dt.datetime,
        *,
        action: LogAction = LogAction.FIELDS_UPDATED,
        changes: dict | None = None,
        actor: str = "Alice",
        title: str | None = "Runway Lighting",
        project_id: str = "P1",
        description: str = "",
        note: str | None = None,
    ) -> LogRecord:
        counter["n"] += 1
        if changes is None and action in (LogAction.FIELDS_UPDATED,):
            changes = {"budget": {"from": 100, "to": 200}}
        return LogRecord(
            id=f"log{counter['n']}",
            project_id=project_id,
            project_title=title,
            action=action,
            description=description,
            changes=changes or {},
            note=note,
            created_by=actor.lower(),
            created_by_name=actor,
            created_at=created_at,
        )

    return _make
