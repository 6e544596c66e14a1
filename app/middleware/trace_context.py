"""
Request trace context middleware.

Resolves a trace id for every request (W3C ``traceparent`` first, then the
correlation id header, otherwise a fresh one), keeps it in a context variable
for the structured logger, and echoes it back on the response.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional, Tuple

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

trace_id_ctx: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)
span_id_ctx: ContextVar[Optional[str]] = ContextVar("span_id", default=None)

TRACEPARENT_PATTERN = re.compile(r'^00-([0-9a-f]{32})-([0-9a-f]{16})-[0-9a-f]{2}$')


def get_trace_id() -> Optional[str]:
    """Get the trace ID from the current context"""
    return trace_id_ctx.get()


def get_span_id() -> Optional[str]:
    """Get the span ID from the current context"""
    return span_id_ctx.get()


def set_trace_context(trace_id: str, span_id: str) -> None:
    trace_id_ctx.set(trace_id)
    span_id_ctx.set(span_id)


def extract_trace_context(traceparent: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Extract (trace_id, span_id) from a W3C traceparent header.
    Format: 00-{32-hex-traceId}-{16-hex-spanId}-{2-hex-flags}

    Returns None for missing, malformed or all-zero values.
    """
    if not traceparent:
        return None

    match = TRACEPARENT_PATTERN.match(traceparent)
    if match:
        trace_id, span_id = match.groups()
        if trace_id != '0' * 32 and span_id != '0' * 16:
            return trace_id, span_id

    return None


def generate_trace_context() -> Tuple[str, str]:
    return uuid.uuid4().hex, uuid.uuid4().hex[:16]


class TraceContextMiddleware(BaseHTTPMiddleware):
    """Binds trace context to the request and propagates it in the response"""

    def __init__(self, app, correlation_header: str = "X-Correlation-ID"):
        super().__init__(app)
        self.correlation_header = correlation_header

    async def dispatch(self, request: Request, call_next):
        trace_context = extract_trace_context(request.headers.get("traceparent"))

        if trace_context:
            trace_id, span_id = trace_context
        else:
            trace_id, span_id = generate_trace_context()
            # A caller-supplied correlation id wins over a generated trace id
            trace_id = request.headers.get(self.correlation_header) or trace_id

        set_trace_context(trace_id, span_id)
        request.state.trace_id = trace_id

        response = await call_next(request)

        if trace_context:
            response.headers["traceparent"] = f"00-{trace_id}-{span_id}-01"
        response.headers[self.correlation_header] = trace_id

        return response
