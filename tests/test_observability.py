"""
Tests for logging context, metrics helpers and tracing switches.
"""

from unittest.mock import MagicMock, patch

import pytest
import structlog
from prometheus_client import REGISTRY

from mdrg.config import settings
from mdrg.observability import log_context, metrics
from mdrg.observability.logging import REDACTED, add_request_defaults, redact_credentials
from mdrg.observability.tracing import (
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_tracing,
    tag_current_span,
)


class TestLogContext:
    """Tests for log_context."""

    def test_binds_and_unbinds(self):
        structlog.contextvars.clear_contextvars()

        with log_context(request_id="req-1"):
            assert structlog.contextvars.get_contextvars()["request_id"] == "req-1"

        assert "request_id" not in structlog.contextvars.get_contextvars()


class TestMetrics:
    """Tests for RecoveryMetrics helpers."""

    def test_auth_event(self):
        labels = {"event": "login", "outcome": "failure"}
        before = REGISTRY.get_sample_value("mdrg_auth_events_total", labels) or 0

        metrics.record_auth_event("login", success=False)

        assert REGISTRY.get_sample_value("mdrg_auth_events_total", labels) == before + 1

    def test_case_created(self):
        labels = {"priority": "high"}
        before = REGISTRY.get_sample_value("mdrg_cases_created_total", labels) or 0

        metrics.record_case_created("high", 1200.0)

        assert REGISTRY.get_sample_value("mdrg_cases_created_total", labels) == before + 1

    def test_activity_failure(self):
        labels = {"operation": "login"}
        before = REGISTRY.get_sample_value("mdrg_activity_log_failures_total", labels) or 0

        metrics.record_activity_failure("login")

        assert (
            REGISTRY.get_sample_value("mdrg_activity_log_failures_total", labels) == before + 1
        )


class TestTracingDisabled:
    """Tracing is a no-op unless enabled."""

    def test_setup_tracing_noop(self):
        with patch("mdrg.observability.tracing.trace") as mock_trace:
            setup_tracing()

        mock_trace.set_tracer_provider.assert_not_called()

    def test_instrumentation_noop(self):
        with (
            patch("mdrg.observability.tracing.FastAPIInstrumentor") as mock_fastapi,
            patch("mdrg.observability.tracing.SQLAlchemyInstrumentor") as mock_sqlalchemy,
        ):
            instrument_fastapi(MagicMock())
            instrument_sqlalchemy(MagicMock())

        mock_fastapi.instrument_app.assert_not_called()
        mock_sqlalchemy.assert_not_called()


class TestProcessors:
    """Tests for the MDRG log processors."""

    def test_redacts_credentials(self):
        event = {
            "event": "login_attempt",
            "email": "a@x.com",
            "password": "pw123!",
            "new_password": "pw456!",
            "Authorization": "Bearer abc",
            "X-Admin-Key": "secret",
        }

        result = redact_credentials(None, "info", event)

        assert result["email"] == "a@x.com"
        assert result["password"] == REDACTED
        assert result["new_password"] == REDACTED
        assert result["Authorization"] == REDACTED
        assert result["X-Admin-Key"] == REDACTED

    def test_request_defaults_fill_missing(self):
        result = add_request_defaults(None, "info", {"event": "startup"})

        assert result["request_id"] is None
        assert result["client_id"] is None

    def test_request_defaults_keep_bound_values(self):
        result = add_request_defaults(
            None, "info", {"event": "case_created", "request_id": "req-1", "client_id": "MDRG1"}
        )

        assert result["request_id"] == "req-1"
        assert result["client_id"] == "MDRG1"


class TestSpanTagging:
    """Tests for tag_current_span."""

    def test_noop_when_disabled(self):
        with patch("mdrg.observability.tracing.trace") as mock_trace:
            tag_current_span(client_id="MDRG1")

        mock_trace.get_current_span.assert_not_called()

    def test_sets_namespaced_attributes(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(settings, "tracing_enabled", True)
        span = MagicMock()
        span.is_recording.return_value = True

        with patch("mdrg.observability.tracing.trace") as mock_trace:
            mock_trace.get_current_span.return_value = span
            tag_current_span(client_id="MDRG1", case_id="CASE1")

        span.set_attribute.assert_any_call("mdrg.client_id", "MDRG1")
        span.set_attribute.assert_any_call("mdrg.case_id", "CASE1")

    def test_skips_non_recording_span(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(settings, "tracing_enabled", True)
        span = MagicMock()
        span.is_recording.return_value = False

        with patch("mdrg.observability.tracing.trace") as mock_trace:
            mock_trace.get_current_span.return_value = span
            tag_current_span(client_id="MDRG1")

        span.set_attribute.assert_not_called()
