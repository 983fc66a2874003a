"""
W3C Trace Context middleware.

Reads the ``traceparent`` header (or generates a new context), keeps the
trace id in a context variable for logging and outbound CloudEvents, and
echoes the context back on the response.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional, Tuple

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

_TRACEPARENT_RE = re.compile(r'^00-([0-9a-f]{32})-([0-9a-f]{16})-[0-9a-f]{2}$')

trace_id_ctx: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)
span_id_ctx: ContextVar[Optional[str]] = ContextVar("span_id", default=None)


def get_trace_id() -> Optional[str]:
    """Trace id of the request being handled, if any"""
    return trace_id_ctx.get()


def get_span_id() -> Optional[str]:
    return span_id_ctx.get()


def parse_traceparent(traceparent: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Split a traceparent header into (trace_id, span_id).

    Format: 00-{32 hex trace id}-{16 hex span id}-{2 hex flags}. All-zero ids
    are invalid per the W3C recommendation.
    """
    if not traceparent:
        return None

    match = _TRACEPARENT_RE.match(traceparent.strip().lower())
    if not match:
        return None

    trace_id, span_id = match.groups()
    if trace_id == '0' * 32 or span_id == '0' * 16:
        return None
    return trace_id, span_id


def new_trace_context() -> Tuple[str, str]:
    return uuid.uuid4().hex, uuid.uuid4().hex[:16]


class TraceContextMiddleware(BaseHTTPMiddleware):
    """Bind a trace context to every request and propagate it in the response"""

    async def dispatch(self, request: Request, call_next):
        trace_id, span_id = parse_traceparent(request.headers.get("traceparent")) or new_trace_context()

        trace_token = trace_id_ctx.set(trace_id)
        span_token = span_id_ctx.set(span_id)
        request.state.trace_id = trace_id
        try:
            response = await call_next(request)
        finally:
            trace_id_ctx.reset(trace_token)
            span_id_ctx.reset(span_token)

        response.headers["traceparent"] = f"00-{trace_id}-{span_id}-01"
        response.headers["X-Trace-ID"] = trace_id
        return response
