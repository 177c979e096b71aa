"""Shared test fixtures for the Bingo Board API test suite.

Provides:
- engine / db_session: fresh in-memory SQLite database per test (tables created/dropped)
- client: FastAPI TestClient with get_db pointed at the test database
- make_user: registers a user through the API and returns its id, token and auth headers
- make_friends: sends and accepts a friend request between two users
- make_admin: registers a user and grants the admin flag
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RUN_MIGRATIONS_ON_STARTUP"] = "False"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.scripts.promote_admin import set_admin_flag

API = "/api/v1"
DEFAULT_PASSWORD = "pw123456"


@pytest.fixture
def engine():
    """In-memory SQLite shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    """Session for inspecting or seeding the database directly."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    """TestClient whose requests use the test database."""

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(client):
    """Factory: register a user and return a dict with id, token and headers."""

    def _make_user(name, email, password=DEFAULT_PASSWORD, username=None):
        payload = {"name": name, "email": email, "password": password}
        if username is not None:
            payload["username"] = username
        resp = client.post(f"{API}/auth/register", json=payload)
        assert resp.status_code == 201, resp.text
        body = resp.json()
        return {
            "id": body["user"]["id"],
            "name": name,
            "email": email,
            "token": body["access_token"],
            "headers": {"Authorization": f"Bearer {body['access_token']}"},
        }

    return _make_user


@pytest.fixture
def make_friends(client):
    """Factory: make two registered users accepted friends; returns the friendship id."""

    def _make_friends(requester, addressee):
        resp = client.post(
            f"{API}/friends/request",
            json={"identifier": addressee["email"]},
            headers=requester["headers"],
        )
        assert resp.status_code == 201, resp.text
        friendship_id = resp.json()["id"]
        resp = client.post(f"{API}/friends/accept/{friendship_id}", headers=addressee["headers"])
        assert resp.status_code == 200, resp.text
        return friendship_id

    return _make_friends


@pytest.fixture
def make_admin(make_user, db_session):
    """Factory: register a user and grant the admin reporting flag."""

    def _make_admin(name="Admin", email="admin@x.com"):
        admin = make_user(name, email)
        assert set_admin_flag(db_session, email, True)
        return admin

    return _make_admin


@pytest.fixture
def ann(make_user):
    return make_user("Ann", "ann@x.com", username="ann")


@pytest.fixture
def bo(make_user):
    return make_user("Bo", "bo@x.com", username="bo")


@pytest.fixture
def cy(make_user):
    return make_user("Cy", "cy@x.com")


def sample_card(size=3):
    """A size x size card with only the top-left cell completed."""
    grid = [
        [{"text": f"Task {r}-{c}", "category": "health" if (r + c) % 2 else "travel"} for c in range(size)]
        for r in range(size)
    ]
    completed = [[False] * size for _ in range(size)]
    completed[0][0] = True
    return {"size": size, "grid": grid, "completed": completed}
