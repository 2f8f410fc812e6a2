"""
Prescription API — Request ID Middleware
=========================================

What:  Assigns an ID to each incoming request and returns it in the response.
How:   Uses the client's X-Request-ID header when present, otherwise an
       8-character UUID prefix; stores it in a ContextVar and request.state.
Who:   Applied to every request via Starlette middleware.

Every log line and every error body of a request carries the same ID, so a
client-reported request_id leads straight to the matching server logs.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local storage for the current request ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware that assigns a correlation ID to each request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
