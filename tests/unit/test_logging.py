"""Unit tests for logging service."""

import structlog

from inventory.services.logging_service import configure_logging, get_logger, redact_sensitive


class TestRedactSensitive:
    """Tests for redact_sensitive processor."""

    def test_redacts_token(self):
        """Bearer tokens never reach the log output."""
        event_dict = {"token": "eyJhbGciOi...", "event": "test"}
        result = redact_sensitive(None, None, event_dict)
        assert result["token"] == "REDACTED"
        assert result["event"] == "test"

    def test_redacts_authorization(self):
        event_dict = {"authorization": "Bearer token123", "event": "test"}
        result = redact_sensitive(None, None, event_dict)
        assert result["authorization"] == "REDACTED"

    def test_redacts_secret_in_key_name(self):
        event_dict = {"jwt_secret": "abc123", "event": "test"}
        result = redact_sensitive(None, None, event_dict)
        assert result["jwt_secret"] == "REDACTED"

    def test_redacts_password(self):
        event_dict = {"password": "mypassword", "event": "test"}
        result = redact_sensitive(None, None, event_dict)
        assert result["password"] == "REDACTED"

    def test_preserves_non_sensitive_fields(self):
        event_dict = {
            "correlation_id": "abc-123",
            "username": "alice",
            "total_count": 4,
        }
        result = redact_sensitive(None, None, event_dict)
        assert result == {
            "correlation_id": "abc-123",
            "username": "alice",
            "total_count": 4,
        }

    def test_case_insensitive_redaction(self):
        event_dict = {
            "Authorization": "Bearer x",
            "Password": "secret2",
            "ACCESS_TOKEN": "secret3",
        }
        result = redact_sensitive(None, None, event_dict)
        assert result["Authorization"] == "REDACTED"
        assert result["Password"] == "REDACTED"
        assert result["ACCESS_TOKEN"] == "REDACTED"


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_get_logger_returns_bound_logger(self):
        configure_logging("INFO")
        logger = get_logger("test_module")
        assert logger is not None
        logger.info("test_event", data="value")

    def test_get_logger_without_name(self):
        configure_logging("DEBUG")
        assert get_logger() is not None

    def test_unknown_level_falls_back_to_info(self):
        configure_logging("NOT-A-LEVEL")
        assert get_logger("fallback") is not None


class TestCorrelationIdBinding:
    """Tests for correlation ID context binding."""

    def test_correlation_id_binds_to_context(self):
        configure_logging("INFO")
        structlog.contextvars.clear_contextvars()

        structlog.contextvars.bind_contextvars(correlation_id="test-correlation-123")

        context = structlog.contextvars.get_contextvars()
        assert context.get("correlation_id") == "test-correlation-123"

    def test_correlation_id_clears_correctly(self):
        structlog.contextvars.bind_contextvars(correlation_id="to-be-cleared")
        structlog.contextvars.clear_contextvars()

        assert "correlation_id" not in structlog.contextvars.get_contextvars()
