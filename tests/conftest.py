"""Pytest configuration and fixtures."""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from unittest.mock import AsyncMock, MagicMock

import jwt
import pytest
import structlog

# Keep any accidental startup away from the real home directory
_SCRATCH = tempfile.mkdtemp(prefix="inventory-tests-")
os.environ.setdefault("SESSION_FILE", os.path.join(_SCRATCH, "session.json"))
os.environ.setdefault("DATA_DIR", os.path.join(_SCRATCH, "data"))
os.environ.setdefault("DATA_SOURCE", "local")

from inventory.config import Settings
from inventory.models.auth import AuthResponse
from inventory.models.user import AppUser, Role
from inventory.services.auth_backend import AuthBackend
from inventory.services.auth_guard import AuthGuard
from inventory.services.session_store import SessionStore

TEST_JWT_SECRET = "test-secret-key-for-unit-tests"


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Isolated settings: local data source rooted in tmp_path."""
    return Settings(
        _env_file=None,
        data_source="local",
        data_dir=str(tmp_path / "data"),
        session_file=str(tmp_path / "session.json"),
        jwt_secret=TEST_JWT_SECRET,
        page_size=10,
        log_level="DEBUG",
    )


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Build a JWT like the backend would issue.

    expires_in: seconds from now (negative for an expired token), or
    None for a token without an 'exp' claim.
    """

    def _make(
        user_id: str = "u-1",
        username: str = "alice",
        role: str = "admin",
        expires_in: Optional[int] = 3600,
        secret: str = TEST_JWT_SECRET,
    ) -> str:
        payload = {"id": user_id, "sub": user_id, "username": username, "role": role}
        if expires_in is not None:
            payload["exp"] = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        return jwt.encode(payload, secret, algorithm="HS256")

    return _make


@pytest.fixture
def session_store(settings) -> SessionStore:
    return SessionStore(settings.session_path)


@pytest.fixture
def mock_backend() -> MagicMock:
    """AuthBackend whose login/register are AsyncMocks to be configured per test."""
    backend = MagicMock(spec=AuthBackend)
    backend.login = AsyncMock()
    backend.register = AsyncMock()
    return backend


@pytest.fixture
def guard_factory(settings, session_store, make_token):
    """Return an async factory producing a signed-in AuthGuard."""

    async def _make(role: str = "admin", username: str = "alice", user_id: str = "u-1") -> AuthGuard:
        backend = MagicMock(spec=AuthBackend)
        backend.login = AsyncMock(
            return_value=AuthResponse(
                token=make_token(user_id=user_id, username=username, role=role),
                username=username,
                role=Role(role),
                id=user_id,
            )
        )
        guard = AuthGuard(session_store, backend, settings)
        await guard.login(username, "secret")
        return guard

    return _make


def make_app_user(
    user_id: Optional[str] = "u-1",
    username: str = "alice",
    email: Optional[str] = None,
    role: Role = Role.USER,
) -> AppUser:
    """Create an AppUser for test assertions."""
    return AppUser(
        id=user_id,
        username=username,
        email=email or f"{username}@example.com",
        role=role,
    )


@pytest.fixture
def app_user() -> Callable[..., AppUser]:
    return make_app_user


@pytest.fixture
def local_context(settings):
    """AppContext on the local data source with two seeded accounts.

    alice / secret is an admin, bob / password is a regular user. Nobody
    is signed in yet.
    """
    from inventory.context import build_context

    context = build_context(settings, initialize=False)
    users = context.repositories.users
    users.add(AppUser(username="alice", email="alice@example.com", role=Role.ADMIN), password="secret")
    users.add(
        AppUser(username="bob", email="bob@example.com", first_name="Bob", last_name="Martin"),
        password="password",
    )
    return context


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo any configure_logging() a test triggered (cached loggers, streams)."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
