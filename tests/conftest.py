"""
tests/conftest.py -- Shared fixtures.

Every test gets a fresh app built from TestingConfig: an in-memory SQLite
database (StaticPool, so all sessions see the same schema) and the cheapest
argon2 parameters. The storage singleton is rebound per app, so no state
leaks between tests.
"""

from __future__ import annotations

import os
from datetime import timedelta

os.environ.setdefault("APP_ENV", "testing")

import pytest

from api import create_app
from models import storage
from models.refresh_token_store import RefreshTokenStore
from models.user_store import UserStore
from services.auth_service import AuthService
from utils.security import PasswordHasher
from utils.tokens import TokenConfig, TokenManager

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"


@pytest.fixture
def app():
    app = create_app("testing")
    yield app
    storage.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth(app):
    """The AuthService wired into the test app."""
    return app.extensions["auth_service"]


@pytest.fixture
def token_config() -> TokenConfig:
    return TokenConfig(
        secret=TEST_SECRET,
        issuer="user-auth-api-test",
        access_expires=timedelta(minutes=15),
        refresh_expires=timedelta(days=7),
    )


@pytest.fixture
def tokens(token_config) -> TokenManager:
    return TokenManager(token_config)


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(time_cost=1, memory_cost=8)


@pytest.fixture
def db():
    """A standalone DBStorage-backed pair of stores, no Flask app involved."""
    storage.configure("sqlite://")
    storage.reload()
    yield storage
    storage.drop_all()


@pytest.fixture
def user_store(db) -> UserStore:
    return UserStore(db)


@pytest.fixture
def refresh_store(db) -> RefreshTokenStore:
    return RefreshTokenStore(db)


@pytest.fixture
def service(user_store, refresh_store, hasher, tokens) -> AuthService:
    return AuthService(user_store, refresh_store, hasher, tokens)
