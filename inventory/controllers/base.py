"""Shared failure handling for view controllers."""

from typing import Optional

import structlog

from inventory.errors import AuthError, InventoryError
from inventory.services.auth_guard import AuthGuard

logger = structlog.get_logger(__name__)

SESSION_EXPIRED_MESSAGE = "Your session has expired, please sign in again"
LOAD_ERROR_MESSAGE = "Unable to load data, please try again"
ADMIN_ONLY_MESSAGE = "Only administrators can perform this action"


class ViewController:
    """Inline error state common to every view.

    Attributes:
        loading: A load is in flight
        submitting: A mutation is in flight
        error: Message to render inline, None when everything went fine
        failure: The error behind the last failed mutation
        session_expired: The backend rejected the token; the guard was logged out
    """

    view_name = "view"

    def __init__(self, guard: AuthGuard):
        self.guard = guard
        self.loading = False
        self.submitting = False
        self.error: Optional[str] = None
        self.failure: Optional[InventoryError] = None
        self.session_expired = False

    def dismiss_error(self) -> None:
        self.error = None
        self.failure = None

    def _session_rejected(self, exc: AuthError) -> None:
        """Forced logout after a 401/403 and a re-authenticate message."""
        self.guard.handle_session_invalidated(exc)
        self.session_expired = True
        self.error = SESSION_EXPIRED_MESSAGE

    def _load_failed(self, exc: InventoryError, action: str) -> None:
        """Show a generic message; the data already on screen is kept."""
        logger.warning(
            "view_load_failed",
            view=self.view_name,
            action=action,
            error_type=type(exc).__name__,
            error=exc.message,
        )
        self.error = LOAD_ERROR_MESSAGE
        self.failure = exc

    def _mutation_failed(self, exc: InventoryError, action: str) -> None:
        logger.warning(
            "view_mutation_failed",
            view=self.view_name,
            action=action,
            error_type=type(exc).__name__,
            error=exc.message,
        )
        self.error = exc.message
        self.failure = exc

    def _require_admin(self, action: str) -> bool:
        if self.guard.is_admin:
            return True
        logger.warning("view_action_forbidden", view=self.view_name, action=action)
        self.error = ADMIN_ONLY_MESSAGE
        return False
