"""ASGI middleware binding tracing context to structured logs.

Every log line emitted while a request is served carries the caller's trace
id (taken from the usual tracing headers) plus the method and path.

Examples:
    Starlette integration::

        app.add_middleware(TraceContextMiddleware)
"""

from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

TRACE_HEADERS = (
    "x-trace-id",
    "x-request-id",
    "x-correlation-id",
    "traceparent",
)


def extract_trace_id(request: Request) -> str | None:
    """Return the first tracing header present on the request, if any."""
    for header in TRACE_HEADERS:
        value = request.headers.get(header)
        if value:
            return value
    return None


class TraceContextMiddleware(BaseHTTPMiddleware):
    """Bind trace id, method and path to structlog's context variables."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            method=request.method,
            path=request.url.path,
        )
        trace_id = extract_trace_id(request)
        if trace_id is not None:
            structlog.contextvars.bind_contextvars(trace_id=trace_id)

        try:
            return await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()
