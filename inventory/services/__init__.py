"""Services package exports."""

from inventory.services.auth_guard import AuthGuard
from inventory.services.logging_service import configure_logging, get_logger
from inventory.services.session_store import SessionStore

__all__ = [
    "AuthGuard",
    "SessionStore",
    "configure_logging",
    "get_logger",
]
