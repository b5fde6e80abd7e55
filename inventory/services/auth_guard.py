"""Authentication state: the single source of truth for every protected view.

The guard is built once per process and handed to its consumers; tests
build their own isolated instance.
"""

from typing import Optional

import pydantic
import structlog

from inventory.config import Settings, get_settings
from inventory.errors import AuthError, ValidationError
from inventory.models.auth import AuthResponse, LoginRequest, RegisterRequest
from inventory.models.user import Role, Session, SessionUser
from inventory.services.auth_backend import AuthBackend
from inventory.services.session_store import SessionStore
from inventory.services.token_service import is_expired, read_claims, token_expiry

logger = structlog.get_logger(__name__)


class AuthGuard:
    """Holds the current session and exposes login, register and logout.

    is_authenticated, is_admin and user are all derived from one session
    reference, so a reader can never observe them out of step.
    """

    def __init__(
        self,
        store: SessionStore,
        backend: AuthBackend,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.backend = backend
        self.settings = settings or get_settings()
        self._session: Optional[Session] = None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    @property
    def is_admin(self) -> bool:
        return self._session is not None and self._session.user.is_admin

    @property
    def user(self) -> Optional[SessionUser]:
        return self._session.user if self._session else None

    @property
    def token(self) -> Optional[str]:
        return self._session.token if self._session else None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    def initialize(self) -> None:
        """Restore a persisted session if its token has not expired.

        An expired token, a token without 'exp', and an undecodable token
        are all treated the same way: the stored session is discarded.
        """
        stored = self.store.load()
        if stored is None:
            logger.debug("no_stored_session")
            return

        try:
            expiry = token_expiry(stored.token)
        except ValueError as e:
            logger.warning("stored_session_undecodable", error=str(e))
            self.logout()
            return

        if is_expired(expiry):
            logger.info("stored_session_expired", username=stored.user.username)
            self.logout()
            return

        self._session = stored.model_copy(update={"expiry": expiry})
        logger.info(
            "session_restored",
            username=stored.user.username,
            role=stored.user.role.value,
            expires_at=expiry.isoformat(),
        )

    async def login(self, username: str, password: str) -> bool:
        """Sign in with username and password.

        Returns:
            True once the session is persisted and adopted

        Raises:
            ValidationError: If a field is blank
            AuthError: INVALID_CREDENTIALS or NETWORK_FAILURE
        """
        try:
            request = LoginRequest(username=username, password=password)
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic(e)

        try:
            response = await self.backend.login(request)
        except AuthError as e:
            logger.warning("login_failed", username=request.username, reason=e.reason.value)
            raise

        self._adopt(response)
        logger.info("user_logged_in", username=response.username, role=response.role.value)
        return True

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        role: Optional[str] = None,
        confirm_password: Optional[str] = None,
    ) -> bool:
        """Create an account and sign it in.

        The requested role defaults to 'user'. Requesting 'admin' is only
        honoured when allow_self_service_admin is enabled.

        Raises:
            ValidationError: Unknown or disallowed role, password mismatch, bad field
            AuthError: INVALID_CREDENTIALS (rejected) or NETWORK_FAILURE
        """
        try:
            requested_role = Role(role or Role.USER.value)
        except ValueError:
            raise ValidationError("role", "Role must be 'admin' or 'user'")

        if requested_role == Role.ADMIN and not self.settings.allow_self_service_admin:
            logger.warning("self_service_admin_rejected", username=username)
            raise ValidationError("role", "Self-service admin registration is disabled")

        if confirm_password is not None and confirm_password != password:
            raise ValidationError("confirm_password", "Passwords do not match")

        try:
            request = RegisterRequest(
                username=username,
                email=email,
                password=password,
                role=requested_role,
            )
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic(e)

        try:
            response = await self.backend.register(request)
        except AuthError as e:
            logger.warning("registration_failed", username=request.username, reason=e.reason.value)
            raise

        self._adopt(response)
        logger.info("user_registered", username=response.username, role=response.role.value)
        return True

    def logout(self) -> None:
        """Forget the session in memory and on disk. Idempotent."""
        was_authenticated = self._session is not None
        try:
            self.store.clear()
        except OSError as e:
            logger.error("session_clear_failed", error=str(e))
        self._session = None
        if was_authenticated:
            logger.info("user_logged_out")

    def handle_session_invalidated(self, error: AuthError) -> None:
        """Forced logout after the backend rejected the token."""
        logger.warning(
            "session_invalidated",
            reason=error.reason.value,
            username=self._session.user.username if self._session else None,
        )
        self.logout()

    def _adopt(self, response: AuthResponse) -> None:
        """Persist the new session, then make it current."""
        user_id = response.id
        expiry = None
        try:
            claims = read_claims(response.token)
            user_id = user_id or claims.get("id") or claims.get("sub")
            expiry = token_expiry(response.token)
        except ValueError as e:
            # Opaque tokens are accepted; the next restart will discard them
            logger.warning("issued_token_undecodable", error=str(e))

        session = Session(
            token=response.token,
            user=SessionUser(id=user_id, username=response.username, role=response.role),
            expiry=expiry,
        )
        try:
            self.store.save(session)
        except OSError as e:
            logger.error("session_persist_failed", error=str(e))
        self._session = session
