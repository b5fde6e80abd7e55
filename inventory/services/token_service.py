"""JWT decoding, local token issuing and password hashing."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import structlog

from inventory.config import Settings, get_settings
from inventory.models.user import Role

logger = structlog.get_logger(__name__)

# Constants
JWT_ALGORITHM = "HS256"


def read_claims(token: str) -> dict:
    """Decode a bearer token's claims without verifying its signature.

    The client cannot verify tokens signed by the backend, so this is only
    used to read the expiry for a local check; the backend's 401/403
    remains the authoritative answer.

    Args:
        token: Encoded JWT string

    Returns:
        Claims dict

    Raises:
        ValueError: If the token is not a decodable JWT
    """
    try:
        return jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False},
            algorithms=[JWT_ALGORITHM, "HS384", "HS512", "RS256"],
        )
    except jwt.InvalidTokenError as e:
        raise ValueError(f"Undecodable token: {e}")


def token_expiry(token: str) -> Optional[datetime]:
    """Return the token's 'exp' claim as an aware UTC datetime, or None if absent.

    Raises:
        ValueError: If the token cannot be decoded or 'exp' is not a timestamp
    """
    exp = read_claims(token).get("exp")
    if exp is None:
        return None
    try:
        return datetime.fromtimestamp(float(exp), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError) as e:
        raise ValueError(f"Invalid exp claim: {e}")


def is_expired(expiry: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """A missing expiry counts as expired."""
    if expiry is None:
        return True
    now = now or datetime.now(timezone.utc)
    return expiry <= now


class TokenService:
    """Password hashing and token issuing for the local data source."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain-text password to hash

        Returns:
            Bcrypt hash string
        """
        salt = bcrypt.gensalt()
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            password: Plain-text password to check
            password_hash: Bcrypt hash to verify against

        Returns:
            True if the password matches, False otherwise
        """
        try:
            return bcrypt.checkpw(
                password.encode("utf-8"),
                password_hash.encode("utf-8"),
            )
        except ValueError:
            logger.warning("password_hash_malformed")
            return False

    def create_access_token(self, user_id: str, username: str, role: Role) -> str:
        """Create a signed JWT access token.

        Args:
            user_id: User id (placed in both 'id' and 'sub' claims)
            username: Username to include in payload
            role: Granted role

        Returns:
            Encoded JWT string
        """
        now = datetime.now(timezone.utc)
        expire_minutes = self.settings.local_token_expire_minutes
        payload = {
            "sub": user_id,
            "id": user_id,
            "username": username,
            "role": role.value,
            "iat": now,
            "exp": now + timedelta(minutes=expire_minutes),
        }
        token = jwt.encode(payload, self.settings.jwt_secret, algorithm=JWT_ALGORITHM)
        logger.debug(
            "access_token_created",
            user_id=user_id,
            username=username,
            expires_minutes=expire_minutes,
        )
        return token

    def validate_access_token(self, token: str) -> dict:
        """Decode and verify a locally issued JWT.

        Args:
            token: Encoded JWT string

        Returns:
            Decoded payload dict with sub, id, username, role, iat, exp

        Raises:
            ValueError: If the token is invalid, expired, or malformed
        """
        try:
            return jwt.decode(
                token,
                self.settings.jwt_secret,
                algorithms=[JWT_ALGORITHM],
            )
        except jwt.ExpiredSignatureError:
            raise ValueError("Access token has expired")
        except jwt.InvalidTokenError as e:
            raise ValueError(f"Invalid access token: {e}")
