"""Unit tests for the trace context middleware"""
import pytest
from unittest.mock import Mock

from app.middleware.trace_context import (
    TraceContextMiddleware,
    extract_trace_context,
    get_trace_id,
)

TRACE_ID = "4bf92f3577b34da6a3ce929d0e0e4736"
SPAN_ID = "00f067aa0ba902b7"


class MockRequest:
    def __init__(self, headers):
        self.headers = headers
        self.state = Mock()


def make_call_next(captured):
    async def call_next(req):
        captured["trace_id"] = get_trace_id()
        response = Mock()
        response.headers = {}
        return response
    return call_next


class TestExtractTraceContext:
    """Test traceparent parsing"""

    def test_valid_traceparent(self):
        assert extract_trace_context(f"00-{TRACE_ID}-{SPAN_ID}-01") == (TRACE_ID, SPAN_ID)

    @pytest.mark.parametrize("value", [
        None,
        "",
        "garbage",
        f"00-{TRACE_ID}-{SPAN_ID}",
        f"00-{'0' * 32}-{SPAN_ID}-01",
        f"00-{TRACE_ID}-{'0' * 16}-01",
    ])
    def test_invalid_traceparent(self, value):
        assert extract_trace_context(value) is None


class TestTraceContextMiddleware:
    """Test TraceContextMiddleware functionality"""

    @pytest.mark.asyncio
    async def test_trace_id_from_traceparent(self):
        """Test propagating an incoming W3C trace context"""
        # Arrange
        middleware = TraceContextMiddleware(Mock())
        request = MockRequest({"traceparent": f"00-{TRACE_ID}-{SPAN_ID}-01"})
        captured = {}

        # Act
        response = await middleware.dispatch(request, make_call_next(captured))

        # Assert
        assert captured["trace_id"] == TRACE_ID
        assert response.headers["traceparent"] == f"00-{TRACE_ID}-{SPAN_ID}-01"
        assert response.headers["X-Correlation-ID"] == TRACE_ID

    @pytest.mark.asyncio
    async def test_correlation_id_from_header(self):
        """Test falling back to the correlation id header"""
        middleware = TraceContextMiddleware(Mock(), correlation_header="X-Request-ID")
        request = MockRequest({"X-Request-ID": "test-correlation-123"})
        captured = {}

        response = await middleware.dispatch(request, make_call_next(captured))

        assert captured["trace_id"] == "test-correlation-123"
        assert response.headers["X-Request-ID"] == "test-correlation-123"
        assert "traceparent" not in response.headers

    @pytest.mark.asyncio
    async def test_trace_id_generated(self):
        """Test generating a new trace id when none is provided"""
        middleware = TraceContextMiddleware(Mock())
        request = MockRequest({})
        captured = {}

        response = await middleware.dispatch(request, make_call_next(captured))

        assert len(captured["trace_id"]) == 32
        assert response.headers["X-Correlation-ID"] == captured["trace_id"]
        assert request.state.trace_id == captured["trace_id"]
