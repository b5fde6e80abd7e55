"""Unit tests for token decoding, local token issuing and password hashing."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from inventory.models.user import Role
from inventory.services.token_service import (
    JWT_ALGORITHM,
    TokenService,
    is_expired,
    read_claims,
    token_expiry,
)


@pytest.fixture
def token_service(settings):
    return TokenService(settings)


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

class TestPasswordHashing:
    """bcrypt hashing used by the local data source."""

    def test_hash_and_verify(self, token_service):
        hashed = token_service.hash_password("correct horse")
        assert hashed != "correct horse"
        assert hashed.startswith("$2")
        assert token_service.verify_password("correct horse", hashed) is True

    def test_wrong_password_rejected(self, token_service):
        hashed = token_service.hash_password("correct horse")
        assert token_service.verify_password("battery staple", hashed) is False

    def test_hashes_are_salted(self, token_service):
        assert token_service.hash_password("same") != token_service.hash_password("same")

    def test_malformed_hash_is_a_mismatch(self, token_service):
        assert token_service.verify_password("anything", "not-a-bcrypt-hash") is False


# ---------------------------------------------------------------------------
# Local tokens
# ---------------------------------------------------------------------------

class TestAccessTokens:
    """Tokens issued and checked by the local data source."""

    def test_create_token_claims(self, token_service, settings):
        token = token_service.create_access_token("u-42", "alice", Role.ADMIN)
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALGORITHM])

        assert payload["sub"] == "u-42"
        assert payload["id"] == "u-42"
        assert payload["username"] == "alice"
        assert payload["role"] == "admin"
        assert payload["exp"] > payload["iat"]

    def test_validate_round_trip(self, token_service):
        token = token_service.create_access_token("u-1", "bob", Role.USER)
        payload = token_service.validate_access_token(token)
        assert payload["role"] == "user"

    def test_validate_rejects_expired(self, token_service, make_token):
        with pytest.raises(ValueError, match="expired"):
            token_service.validate_access_token(make_token(expires_in=-60))

    def test_validate_rejects_foreign_signature(self, token_service, make_token):
        with pytest.raises(ValueError, match="Invalid access token"):
            token_service.validate_access_token(make_token(secret="someone-else"))

    def test_validate_rejects_garbage(self, token_service):
        with pytest.raises(ValueError):
            token_service.validate_access_token("not.a.jwt")


# ---------------------------------------------------------------------------
# Unverified decoding
# ---------------------------------------------------------------------------

class TestExpiryDecoding:
    """Client-side expiry reading of tokens signed elsewhere."""

    def test_read_claims_ignores_signature(self, make_token):
        claims = read_claims(make_token(secret="backend-only-secret", username="carol"))
        assert claims["username"] == "carol"

    def test_read_claims_ignores_expiry(self, make_token):
        claims = read_claims(make_token(expires_in=-3600))
        assert "exp" in claims

    def test_read_claims_rejects_garbage(self):
        with pytest.raises(ValueError, match="Undecodable"):
            read_claims("definitely-not-a-token")

    def test_token_expiry_is_aware_datetime(self, make_token):
        expiry = token_expiry(make_token(expires_in=600))
        assert expiry.tzinfo is not None
        delta = expiry - datetime.now(timezone.utc)
        assert timedelta(minutes=9) < delta <= timedelta(minutes=10)

    def test_token_expiry_none_without_exp(self, make_token):
        assert token_expiry(make_token(expires_in=None)) is None

    def test_is_expired(self):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert is_expired(now - timedelta(seconds=1), now=now) is True
        assert is_expired(now, now=now) is True
        assert is_expired(now + timedelta(seconds=1), now=now) is False

    def test_missing_expiry_counts_as_expired(self):
        assert is_expired(None) is True
