"""
Prescription API — Request Logging Middleware
==============================================

What:  One log line per HTTP request with method, path, status, duration.
How:   Measures time around call_next and logs at a level chosen by status.
Who:   Applied to every request via Starlette middleware.
When:  After RequestIDMiddleware (uses the request ID for correlation).

What we log vs what we DON'T log:
    ✅ Log: method, path, status, duration, client IP, request ID
    ❌ Don't log: request bodies (patient medical data), auth headers
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from prescription_api.middleware.request_id import request_id_var

logger = logging.getLogger("prescription_api.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs structured information about each HTTP request and response.

    Levels:
        5xx → ERROR, 4xx → WARNING, everything else → INFO.
    /health is skipped; probes hit it every few seconds.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path
        rid = request_id_var.get("")

        if path == "/health":
            return await call_next(request)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
