"""
Unit tests for structured logging configuration.

Tests verify:
- Logging can be configured for JSON and console output
- Context variables (trace_id, request_id) are set and retrieved
- The trace-context processor adds correlation fields to every entry
- ID generation produces unique UUIDs
"""
import json
import logging
from io import StringIO

from worship_assistant.core import logging as app_logging
from worship_assistant.core.logging import (
    add_trace_context,
    configure_logging,
    generate_request_id,
    generate_trace_id,
    get_logger,
    get_request_id,
    get_trace_id,
    set_request_id,
    set_trace_id,
)


class TestLoggingConfiguration:
    """Test logging configuration and setup."""

    def test_configure_logging_json_output(self):
        """A configured logger emits a JSON line carrying event and fields."""
        configure_logging(log_level="INFO", json_output=True)

        output = StringIO()
        handler = logging.StreamHandler(output)
        root_logger = logging.getLogger()
        root_logger.addHandler(handler)
        root_logger.setLevel(logging.INFO)
        try:
            get_logger("tests.logging").info("chat_handled", query_type="general")
        finally:
            root_logger.removeHandler(handler)

        line = output.getvalue().strip().splitlines()[-1]
        entry = json.loads(line)
        assert entry["event"] == "chat_handled"
        assert entry["query_type"] == "general"
        assert entry["service"] == app_logging.SERVICE_NAME
        assert entry["level"] == "info"

    def test_configure_logging_console_output(self):
        configure_logging(log_level="DEBUG", json_output=False)
        logger = get_logger(__name__)

        # Should not raise an error
        logger.info("test_message", test_field="test_value")

    def test_default_service_name(self):
        assert app_logging.SERVICE_NAME == "worship_assistant_api"


class TestContextVariables:
    """Test trace ID and request ID context variables."""

    def test_set_and_get_trace_id(self):
        set_trace_id("test-trace-123")
        assert get_trace_id() == "test-trace-123"

        set_trace_id(None)
        assert get_trace_id() is None

    def test_set_and_get_request_id(self):
        set_request_id("test-request-456")
        assert get_request_id() == "test-request-456"

        set_request_id(None)
        assert get_request_id() is None

    def test_generated_ids_are_unique_uuids(self):
        trace_id = generate_trace_id()
        request_id = generate_request_id()

        assert len(trace_id) == 36 and trace_id.count("-") == 4
        assert len(request_id) == 36 and request_id.count("-") == 4
        assert generate_trace_id() != trace_id
        assert generate_request_id() != request_id


class TestTraceContextProcessor:
    """Test the processor that injects correlation fields."""

    def test_adds_trace_and_request_ids(self):
        set_trace_id("trace-abc")
        set_request_id("request-def")
        try:
            event = add_trace_context(None, "info", {"event": "batch_started"})
        finally:
            set_trace_id(None)
            set_request_id(None)

        assert event["trace_id"] == "trace-abc"
        assert event["request_id"] == "request-def"
        assert event["service"] == app_logging.SERVICE_NAME
        assert "timestamp" in event

    def test_without_context_only_service_and_timestamp(self):
        event = add_trace_context(None, "info", {"event": "batch_started"})

        assert "trace_id" not in event
        assert "request_id" not in event
        assert event["service"]

    def test_existing_timestamp_is_kept(self):
        event = add_trace_context(None, "info", {"event": "x", "timestamp": "2026-01-01T00:00:00Z"})

        assert event["timestamp"] == "2026-01-01T00:00:00Z"
