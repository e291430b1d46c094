"""Unit tests for logging service."""

from unittest.mock import MagicMock

import pytest
import structlog

from src.services.logging_service import (
    bind_analysis_context,
    configure_logging,
    get_logger,
    log_analysis_complete,
    redact_sensitive,
)


@pytest.fixture(autouse=True)
def clean_context():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


class TestRedactSensitive:
    """Tests for redact_sensitive processor."""

    def test_redacts_llm_api_key(self):
        """Test llm_api_key field is redacted."""
        event_dict = {"llm_api_key": "sk-secret123", "event": "test"}
        result = redact_sensitive(None, None, event_dict)
        assert result["llm_api_key"] == "REDACTED"
        assert result["event"] == "test"

    def test_redacts_authorization(self):
        """Test authorization field is redacted."""
        event_dict = {"authorization": "Bearer token123", "event": "test"}
        result = redact_sensitive(None, None, event_dict)
        assert result["authorization"] == "REDACTED"

    def test_redacts_database_url(self):
        """Test connection strings are redacted."""
        event_dict = {
            "postgres_url": "postgresql://user:pw@db/observability",
            "dsn": "postgresql://user:pw@db/observability",
        }
        result = redact_sensitive(None, None, event_dict)
        assert result["postgres_url"] == "REDACTED"
        assert result["dsn"] == "REDACTED"

    def test_redacts_secret_and_password(self):
        event_dict = {"client_secret": "abc123", "Password": "pw"}
        result = redact_sensitive(None, None, event_dict)
        assert result["client_secret"] == "REDACTED"
        assert result["Password"] == "REDACTED"

    def test_preserves_non_sensitive_fields(self):
        """Test non-sensitive fields are preserved."""
        event_dict = {
            "correlation_id": "abc-123",
            "session_id": "session-1",
            "duration_ms": 100,
        }
        result = redact_sensitive(None, None, event_dict)
        assert result == {
            "correlation_id": "abc-123",
            "session_id": "session-1",
            "duration_ms": 100,
        }


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_get_logger_returns_bound_logger(self):
        """Test get_logger returns a usable structlog logger."""
        configure_logging("INFO")
        logger = get_logger("test_module")
        assert logger is not None
        logger.info("test_event", data="value")

    def test_unknown_level_falls_back_to_info(self):
        configure_logging("NOT_A_LEVEL")
        assert get_logger() is not None


class TestAnalysisContext:
    """Tests for per-analysis context binding."""

    def test_binds_session_and_call_ids(self):
        bind_analysis_context(session_id="session-1", call_id="call-1")

        context = structlog.contextvars.get_contextvars()
        assert context["session_id"] == "session-1"
        assert context["call_id"] == "call-1"

    def test_skips_missing_ids(self):
        bind_analysis_context(session_id=None, call_id=None)

        context = structlog.contextvars.get_contextvars()
        assert "session_id" not in context
        assert "call_id" not in context

    def test_keeps_correlation_id(self):
        structlog.contextvars.bind_contextvars(correlation_id="req-1")

        bind_analysis_context(session_id="session-1")

        assert structlog.contextvars.get_contextvars()["correlation_id"] == "req-1"


class TestAnalysisCompleteEvent:
    """Tests for the per-analysis summary event."""

    def test_logs_summary_fields(self):
        logger = MagicMock()

        log_analysis_complete(
            logger,
            turn_count=4,
            overall_score=72,
            risk_level="medium",
            degraded=False,
            persisted=True,
            duration_ms=1500,
        )

        logger.info.assert_called_once_with(
            "analysis_complete",
            turn_count=4,
            overall_score=72,
            risk_level="medium",
            degraded=False,
            persisted=True,
            duration_ms=1500,
        )
