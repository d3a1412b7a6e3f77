"""Pytest configuration and fixtures."""
import itertools

import pytest
from fastapi.testclient import TestClient

from campusfeed.database.config.config import Settings, settings
from campusfeed.database.config.connection import build_engine, build_session_factory, init_db
from campusfeed.database.core import accounts
from campusfeed.main import create_app

DOMAIN = settings.INSTITUTIONAL_EMAIL_DOMAIN
_counter = itertools.count(1)


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    """Use the cheapest bcrypt cost so tests stay fast."""
    monkeypatch.setattr(settings, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def db():
    """In-memory database session with all tables created."""
    engine = build_engine("sqlite://")
    init_db(engine)
    session = build_session_factory(engine)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def file_engine(tmp_path):
    """File-backed SQLite engine, needed when several threads write at once."""
    engine = build_engine(f"sqlite:///{tmp_path / 'concurrency.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


def institutional_email(name=None):
    return f"{name or 'student'}{next(_counter)}@{DOMAIN}"


@pytest.fixture
def make_account(db):
    """Register an account and optionally promote it. Returns the account id."""
    def _make(role="user", email=None, username="student", password="secret-pass"):
        account_id = accounts.register(db, email or institutional_email(), username, password)
        if role != "user":
            accounts.promote(db, account_id, role)
        return account_id
    return _make


@pytest.fixture
def app_settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'app.db'}",
        MEDIA_ROOT=str(tmp_path / "media"),
        LOG_LEVEL="WARNING",
        BCRYPT_ROUNDS=4,
        _env_file=None,
    )


@pytest.fixture
def app(app_settings):
    return create_app(app_settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def new_client(app):
    """Factory for extra clients, each with its own cookie jar."""
    def _new():
        return TestClient(app)
    return _new


@pytest.fixture
def signup():
    """Register through the API on ``client`` and return the profile JSON."""
    def _signup(client, username="student", password="secret-pass", email=None):
        response = client.post(
            "/register",
            json={"email": email or institutional_email(username), "username": username, "password": password},
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _signup


@pytest.fixture
def set_role(app):
    """Promote an account directly in the app's database."""
    def _set_role(account_id, role):
        session = app.state.session_factory()
        try:
            accounts.promote(session, account_id, role)
        finally:
            session.close()
    return _set_role
