"""
NoteApp: Request ID Middleware
===============================

What:  Assigns a request id and a trace id to each incoming request.
How:   Stores both in ContextVars and request.state, echoes the request id
       in the X-Request-ID response header.
Who:   Applied to every request via Starlette middleware.

Request id vs trace id:
    request id  Client-supplied X-Request-ID, or a short generated UUID.
                Appears in every log line for the request.
    trace id    The W3C `traceparent` header when a distributed trace is
                active, otherwise the request id. Shown on the error page so
                an operator can locate the corresponding log entries.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ── Context Variables ─────────────────────────────────────────────────────
# ContextVar, not threading.local: concurrent requests share a thread
request_id_var: ContextVar[str] = ContextVar("request_id", default="")
trace_id_var: ContextVar[str] = ContextVar("trace_id", default="")

# version-traceid-parentid-flags, e.g.
# 00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01
_TRACEPARENT_RE = re.compile(r"^[0-9a-f]{2}-[0-9a-f]{32}-[0-9a-f]{16}-[0-9a-f]{2}$")
_INVALID_TRACE_ID = "0" * 32


def parse_traceparent(header: str) -> str:
    """
    Return the traceparent value if it is well-formed, otherwise "".

    An all-zero trace id is invalid under W3C Trace Context.
    """
    value = header.strip().lower()
    if not _TRACEPARENT_RE.match(value):
        return ""
    if value.split("-")[1] == _INVALID_TRACE_ID:
        return ""
    return value


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that assigns a unique ID and a trace ID to each request.

    Behavior:
        1. Use X-Request-ID from the client if present, else generate one
        2. Use a valid traceparent header as the trace id, else the request id
        3. Store both in ContextVars (loggers) and request.state (handlers)
        4. Add X-Request-ID to the response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        tid = parse_traceparent(request.headers.get("traceparent", "")) or rid

        request_id_var.set(rid)
        trace_id_var.set(tid)
        request.state.request_id = rid
        request.state.trace_id = tid

        response = await call_next(request)

        response.headers["X-Request-ID"] = rid

        return response
