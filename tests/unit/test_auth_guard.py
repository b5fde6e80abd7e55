"""Unit tests for AuthGuard: restore, login, register, logout."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from inventory.errors import AuthError, AuthErrorReason, ValidationError
from inventory.models.auth import AuthResponse
from inventory.models.user import Role, Session, SessionUser
from inventory.services.auth_guard import AuthGuard


def _stored(token, role=Role.ADMIN, username="alice"):
    return Session(token=token, user=SessionUser(id="u-1", username=username, role=role))


def _assert_logged_out(guard, store):
    assert guard.is_authenticated is False
    assert guard.is_admin is False
    assert guard.user is None
    assert guard.token is None
    assert store.load() is None


@pytest.fixture
def guard(session_store, mock_backend, settings):
    return AuthGuard(session_store, mock_backend, settings)


# ---------------------------------------------------------------------------
# initialize()
# ---------------------------------------------------------------------------

class TestInitialize:
    """Restoring a persisted session on startup."""

    @pytest.mark.parametrize("role", [Role.ADMIN, Role.USER])
    def test_valid_session_is_adopted(self, guard, session_store, make_token, role):
        session_store.save(_stored(make_token(role=role.value), role=role))

        guard.initialize()

        assert guard.is_authenticated is True
        assert guard.is_admin == (role == Role.ADMIN)
        assert guard.user.username == "alice"
        assert guard.session.expiry > datetime.now(timezone.utc)

    def test_expired_session_is_discarded(self, guard, session_store, make_token):
        session_store.save(_stored(make_token(expires_in=-5)))
        guard.initialize()
        _assert_logged_out(guard, session_store)

    def test_undecodable_token_is_discarded(self, guard, session_store):
        session_store.save(_stored("garbage-token"))
        guard.initialize()
        _assert_logged_out(guard, session_store)

    def test_token_without_expiry_is_discarded(self, guard, session_store, make_token):
        session_store.save(_stored(make_token(expires_in=None)))
        guard.initialize()
        _assert_logged_out(guard, session_store)

    def test_no_stored_session_stays_logged_out(self, guard, session_store):
        guard.initialize()
        _assert_logged_out(guard, session_store)


# ---------------------------------------------------------------------------
# login()
# ---------------------------------------------------------------------------

class TestLogin:
    """Tests for AuthGuard.login."""

    async def test_successful_admin_login(self, guard, mock_backend, session_store, make_token):
        mock_backend.login.return_value = AuthResponse(
            token=make_token(), username="alice", role=Role.ADMIN
        )

        result = await guard.login("alice", "secret")

        assert result is True
        assert guard.is_authenticated is True
        assert guard.is_admin is True
        assert guard.user.id == "u-1"
        assert session_store.load().token == guard.token

    async def test_user_id_taken_from_response_first(self, guard, mock_backend, make_token):
        mock_backend.login.return_value = AuthResponse(
            token=make_token(user_id="from-token"), username="alice", role=Role.USER, id="from-body"
        )
        await guard.login("alice", "secret")
        assert guard.user.id == "from-body"
        assert guard.is_admin is False

    async def test_invalid_credentials_leave_state_logged_out(self, guard, mock_backend, session_store):
        mock_backend.login.side_effect = AuthError(AuthErrorReason.INVALID_CREDENTIALS)

        with pytest.raises(AuthError) as exc_info:
            await guard.login("alice", "wrong")

        assert exc_info.value.reason == AuthErrorReason.INVALID_CREDENTIALS
        _assert_logged_out(guard, session_store)

    async def test_network_failure_propagates(self, guard, mock_backend):
        mock_backend.login.side_effect = AuthError(AuthErrorReason.NETWORK_FAILURE)
        with pytest.raises(AuthError) as exc_info:
            await guard.login("alice", "secret")
        assert exc_info.value.reason == AuthErrorReason.NETWORK_FAILURE
        assert guard.is_authenticated is False

    async def test_blank_username_is_a_validation_error(self, guard, mock_backend):
        with pytest.raises(ValidationError) as exc_info:
            await guard.login("   ", "secret")
        assert exc_info.value.field == "username"
        mock_backend.login.assert_not_called()

    async def test_opaque_token_is_still_adopted(self, guard, mock_backend):
        mock_backend.login.return_value = AuthResponse(
            token="opaque-token", username="alice", role=Role.USER, id="u-7"
        )
        await guard.login("alice", "secret")
        assert guard.is_authenticated is True
        assert guard.session.expiry is None

    async def test_persist_failure_still_signs_in(self, guard, mock_backend, make_token):
        mock_backend.login.return_value = AuthResponse(
            token=make_token(), username="alice", role=Role.ADMIN
        )
        with patch.object(guard.store, "save", side_effect=OSError("disk full")):
            await guard.login("alice", "secret")
        assert guard.is_authenticated is True


# ---------------------------------------------------------------------------
# register()
# ---------------------------------------------------------------------------

class TestRegister:
    """Tests for AuthGuard.register."""

    async def test_register_defaults_to_user_role(self, guard, mock_backend, make_token):
        mock_backend.register.return_value = AuthResponse(
            token=make_token(role="user", username="bob"), username="bob", role=Role.USER
        )

        assert await guard.register("bob", "bob@example.com", "pw") is True

        request = mock_backend.register.call_args.args[0]
        assert request.role == Role.USER
        assert guard.is_authenticated is True
        assert guard.is_admin is False

    async def test_unknown_role_rejected(self, guard, mock_backend):
        with pytest.raises(ValidationError) as exc_info:
            await guard.register("bob", "bob@example.com", "pw", role="superuser")
        assert exc_info.value.field == "role"
        mock_backend.register.assert_not_called()

    async def test_self_service_admin_rejected_by_default(self, guard, mock_backend):
        with pytest.raises(ValidationError) as exc_info:
            await guard.register("bob", "bob@example.com", "pw", role="admin")
        assert exc_info.value.field == "role"
        mock_backend.register.assert_not_called()

    async def test_self_service_admin_allowed_when_enabled(
        self, session_store, mock_backend, settings, make_token
    ):
        settings.allow_self_service_admin = True
        guard = AuthGuard(session_store, mock_backend, settings)
        mock_backend.register.return_value = AuthResponse(
            token=make_token(role="admin", username="bob"), username="bob", role=Role.ADMIN
        )

        await guard.register("bob", "bob@example.com", "pw", role="admin")

        assert guard.is_admin is True

    async def test_password_confirmation_must_match(self, guard, mock_backend):
        with pytest.raises(ValidationError) as exc_info:
            await guard.register("bob", "bob@example.com", "pw", confirm_password="other")
        assert exc_info.value.field == "confirm_password"
        mock_backend.register.assert_not_called()

    async def test_invalid_email_rejected(self, guard, mock_backend):
        with pytest.raises(ValidationError) as exc_info:
            await guard.register("bob", "nope", "pw")
        assert exc_info.value.field == "email"

    async def test_backend_rejection_propagates(self, guard, mock_backend, session_store):
        mock_backend.register.side_effect = AuthError(
            AuthErrorReason.INVALID_CREDENTIALS, "Username already exists"
        )
        with pytest.raises(AuthError, match="already exists"):
            await guard.register("bob", "bob@example.com", "pw")
        _assert_logged_out(guard, session_store)


# ---------------------------------------------------------------------------
# logout()
# ---------------------------------------------------------------------------

class TestLogout:
    """Tests for logout and forced logout."""

    async def test_logout_clears_state_and_store(self, guard_factory, session_store):
        guard = await guard_factory()
        guard.logout()
        _assert_logged_out(guard, session_store)

    async def test_logout_is_idempotent(self, guard_factory, session_store):
        guard = await guard_factory()
        guard.logout()
        once = (guard.is_authenticated, guard.is_admin, guard.user, guard.token)
        guard.logout()
        twice = (guard.is_authenticated, guard.is_admin, guard.user, guard.token)
        assert once == twice
        assert session_store.load() is None

    def test_logout_when_never_signed_in(self, guard, session_store):
        guard.logout()
        _assert_logged_out(guard, session_store)

    async def test_session_invalidated_forces_logout(self, guard_factory, session_store):
        guard = await guard_factory(role="user", username="bob")
        guard.handle_session_invalidated(AuthError(AuthErrorReason.UNAUTHORIZED))
        _assert_logged_out(guard, session_store)

    async def test_restart_after_login_restores_session(
        self, guard_factory, session_store, mock_backend, settings
    ):
        await guard_factory(role="user", username="bob", user_id="u-2")

        restarted = AuthGuard(session_store, mock_backend, settings)
        restarted.initialize()

        assert restarted.is_authenticated is True
        assert restarted.user == SessionUser(id="u-2", username="bob", role=Role.USER)
