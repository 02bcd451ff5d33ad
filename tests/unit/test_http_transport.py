"""
Unit tests for the blocking HTTP transport.
"""

import pytest

from traceflow import TransportError
from traceflow.models import TraceEvent, TraceEventType


def started(trace_id="trace-1"):
    return TraceEvent(event_type=TraceEventType.TRACE_STARTED, trace_id=trace_id, source="svc", payload={"title": "T"})


class TestHttpTransport:
    """Test cases for synchronous delivery and retries."""

    def test_send_delivers_immediately(self, collector, sync_transport_factory):
        """The request is complete when send returns."""
        transport = sync_transport_factory(collector)

        transport.send(started())

        assert len(collector.requests) == 1
        request = collector.requests[0]
        assert request.method == "POST"
        assert request.path == "/api/v1/traces"
        assert request.json["status"] == "PENDING"
        assert request.headers["x-api-key"] == "test-key"
        assert request.headers["content-type"] == "application/json"

    def test_preserves_send_order(self, collector, sync_transport_factory):
        """Requests reach the collector in send order."""
        transport = sync_transport_factory(collector)
        events = [
            started(),
            TraceEvent(event_type=TraceEventType.STEP_STARTED, trace_id="trace-1", step_id="s", source="svc"),
            TraceEvent(event_type=TraceEventType.STEP_FINISHED, trace_id="trace-1", step_id="s", source="svc"),
            TraceEvent(event_type=TraceEventType.TRACE_FINISHED, trace_id="trace-1", source="svc"),
        ]

        for event in events:
            transport.send(event)

        assert [(r.method, r.path) for r in collector.requests] == [
            ("POST", "/api/v1/traces"),
            ("POST", "/api/v1/steps"),
            ("PATCH", "/api/v1/steps/trace-1/s"),
            ("PATCH", "/api/v1/traces/trace-1"),
        ]

    def test_retries_then_succeeds(self, collector_factory, sync_transport_factory):
        """Transient failures are retried until one succeeds."""
        collector = collector_factory(statuses=[500, 502])
        transport = sync_transport_factory(collector)

        transport.send(started())

        assert len(collector.requests) == 3

    def test_exhaustion_in_silent_mode_does_not_raise(self, failing_collector, sync_transport_factory, caplog):
        """Exhausted retries are logged and swallowed."""
        transport = sync_transport_factory(failing_collector, max_retries=3)

        transport.send(started())

        assert len(failing_collector.requests) == 4
        assert "silenced" in caplog.text

    def test_exhaustion_in_strict_mode_raises(self, failing_collector, sync_transport_factory):
        """Exhausted retries raise a TransportError in strict mode."""
        transport = sync_transport_factory(failing_collector, max_retries=2, silent_errors=False)

        with pytest.raises(TransportError) as exc_info:
            transport.send(started())

        assert exc_info.value.status_code == 500
        assert exc_info.value.attempts == 3
        assert len(failing_collector.requests) == 3

    def test_network_errors_are_retried_like_status_errors(self, collector_factory, sync_transport_factory):
        """Connection failures follow the same retry policy."""
        collector = collector_factory(network_error=True)
        transport = sync_transport_factory(collector, max_retries=1, silent_errors=False)

        with pytest.raises(TransportError) as exc_info:
            transport.send(started())

        assert exc_info.value.status_code is None
        assert len(collector.requests) == 2

    def test_zero_retries_means_single_attempt(self, failing_collector, sync_transport_factory):
        """max_retries=0 sends exactly once."""
        transport = sync_transport_factory(failing_collector, max_retries=0)

        transport.send(started())

        assert len(failing_collector.requests) == 1

    def test_flush_and_shutdown_are_noops(self, collector, sync_transport_factory):
        """Flush sends nothing and shutdown can be repeated."""
        transport = sync_transport_factory(collector)
        transport.send(started())

        transport.flush()
        transport.shutdown()
        transport.shutdown()

        assert len(collector.requests) == 1

    def test_send_after_shutdown_is_dropped(self, collector, sync_transport_factory):
        """Events sent after shutdown are dropped."""
        transport = sync_transport_factory(collector)
        transport.shutdown()

        transport.send(started())

        assert collector.requests == []
