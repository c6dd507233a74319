"""Root conftest for all tests.

Every test gets its own in-memory SQLite database. The engine getter in
zoe.db.session is patched, so the real get_session() (commit / rollback
semantics included) runs against it.
"""

from collections.abc import Callable

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from zoe.core.auth_jwt import create_access_token
from zoe.core.password import hash_password
from zoe.db.models import Base, User

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture(scope="session")
def password() -> str:
    return TEST_PASSWORD


@pytest.fixture(scope="session")
def password_hash() -> str:
    """bcrypt is slow; hash the shared test password once."""
    return hash_password(TEST_PASSWORD)


@pytest.fixture
def engine(monkeypatch):
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)

    monkeypatch.setattr("zoe.db.session._get_engine", lambda: engine)
    monkeypatch.setattr("zoe.db.session._SessionLocal", None)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def db_session(engine) -> Session:
    """A session on the test database for seeding and assertions. Commit explicitly."""
    from zoe.db.session import _get_session_local

    session = _get_session_local()()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def make_user(db_session, password_hash) -> Callable[..., User]:
    counter = {"n": 0}

    def _make_user(email: str | None = None, first_name: str = "Emma", is_admin: bool = False, **fields) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            password_hash=password_hash,
            first_name=first_name,
            last_name="Stone",
            is_admin=is_admin,
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


def _bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    return _bearer


@pytest.fixture
def admin(make_user) -> User:
    return make_user(email="zoe@example.com", first_name="Zoe", is_admin=True)


@pytest.fixture
def admin_headers(admin) -> dict[str, str]:
    return _bearer(admin)


@pytest.fixture
def client(engine, tmp_path, monkeypatch):
    from fastapi.testclient import TestClient

    from zoe.config.settings import settings
    from zoe.main import app

    monkeypatch.setattr(settings, "upload_dir", str(tmp_path / "uploads"))
    monkeypatch.setattr(settings, "anthropic_api_key", "")
    monkeypatch.setattr(settings, "openai_api_key", "")
    return TestClient(app)
