"""Shared test fixtures.

Each test gets a fresh application bound to an in-memory SQLite
database, with the tables created inside an application context.
"""
from __future__ import annotations

import pytest

from carecircle import create_app, db, get_services

TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite://",
    "JWT_SECRET_KEY": "test-secret-key-with-at-least-32-bytes!",
    "LOG_LEVEL": "DEBUG",
}


@pytest.fixture
def app():
    app = create_app(TEST_CONFIG)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return get_services(app)


@pytest.fixture
def users(services):
    """Create three users and return their ids keyed by username."""
    return {
        name: services.authing.create(name, "secret").id
        for name in ("alice", "bob", "carol")
    }


@pytest.fixture
def login(client):
    """Register (if needed) and log in a user, returning auth headers."""

    def _login(username: str, password: str = "secret") -> dict:
        client.post("/api/users", json={"username": username, "password": password})
        response = client.post("/api/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.get_json()
        token = response.get_json()["access_token"]
        return {"Authorization": f"Bearer {token}"}

    return _login
