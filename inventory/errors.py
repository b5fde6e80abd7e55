"""Error taxonomy shared by the guard, repositories and controllers."""

from enum import Enum
from typing import Any, Optional


class AuthErrorReason(str, Enum):
    """Why an authentication or authorization step failed."""

    INVALID_CREDENTIALS = "invalid_credentials"
    NETWORK_FAILURE = "network_failure"
    TOKEN_EXPIRED = "token_expired"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"


class InventoryError(Exception):
    """Base class for every error surfaced to the user.

    Attributes:
        message: Human-readable explanation, safe to show inline
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuthError(InventoryError):
    """Raised for bad credentials, unusable tokens, or a 401/403 from the API.

    Attributes:
        reason: Machine-readable failure reason
        detail: The explanation given by the backend, if any
    """

    def __init__(self, reason: AuthErrorReason, message: Optional[str] = None):
        self.reason = reason
        self.detail = message
        super().__init__(message or _AUTH_MESSAGES[reason])

    @property
    def invalidates_session(self) -> bool:
        """True when the backend rejected the current token."""
        return self.reason in (
            AuthErrorReason.UNAUTHORIZED,
            AuthErrorReason.FORBIDDEN,
            AuthErrorReason.TOKEN_EXPIRED,
        )


class ValidationError(InventoryError):
    """Raised when a required field is missing or a value is not allowed."""

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"Field '{field}' is required")

    @classmethod
    def from_pydantic(cls, exc: Any) -> "ValidationError":
        """Report the first failure of a pydantic ValidationError."""
        errors = exc.errors()
        if not errors:
            return cls("form", "Validation failed")
        first = errors[0]
        field = ".".join(str(loc) for loc in first.get("loc", ())) or "form"
        return cls(field, f"Field '{field}': {first.get('msg', 'Validation failed')}")


class NetworkError(InventoryError):
    """Raised on transport failures and non-2xx responses without an auth code."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(InventoryError):
    """Raised when the requested resource does not exist."""

    pass


_AUTH_MESSAGES = {
    AuthErrorReason.INVALID_CREDENTIALS: "Invalid username or password",
    AuthErrorReason.NETWORK_FAILURE: "Unable to reach the authentication service",
    AuthErrorReason.TOKEN_EXPIRED: "Your session has expired, please sign in again",
    AuthErrorReason.UNAUTHORIZED: "Unauthorized, please sign in again",
    AuthErrorReason.FORBIDDEN: "Access denied, please sign in again",
}
