"""Pytest fixtures building an isolated application per test.

Each test gets a fresh Flask app bound to its own in-memory SQLite database,
with every table created up front and dropped afterwards.
"""

from __future__ import annotations

import os

import pytest
from twitterclone.core.config import TestingConfig
from twitterclone.core.extensions import db as _db
from twitterclone.factory import create_app
from twitterclone.services.container import get_services


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - In-memory SQLite, recreated for every test.
    - Refresh tokens in SQL so no Redis server is needed.
    - No retries for counter updates beyond the default.
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    CORS_ORIGINS = "http://localhost:4200"
    ACCESS_TOKEN_TTL_SECONDS = 15 * 60
    REFRESH_TOKEN_TTL_SECONDS = 7 * 24 * 3600


@pytest.fixture()
def app():
    """Create the application and its schema inside an app context.

    Yields
    ------
    flask.Flask
        Application instance with :class:`TestConfig` applied.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestConfig, instance_relative_config=False)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def db(app):
    """Database extension bound to the testing application."""
    return _db


@pytest.fixture()
def session(db):
    """The Flask-scoped session the services and repositories use."""
    return db.session


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def services(app):
    """Service container built by the factory for this app."""
    return get_services()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to the app session ----------------------------------
@pytest.fixture(autouse=True)
def _factories_session(request):
    """Wire Factory Boy's session helper to the test's database session."""
    from tests.factories import SQLAlchemySession

    if "app" not in request.fixturenames:
        SQLAlchemySession.set(None)
        yield
        return
    SQLAlchemySession.set(request.getfixturevalue("session"))
    yield
    SQLAlchemySession.set(None)
