"""
NoteSync Backend: Request Logging Middleware
============================================

What:  One access log line per HTTP request on the `notesync.access` logger.
How:   Times the downstream call and logs method, path, status, duration
       and request ID. Runs after RequestIDMiddleware.

Levels:
    5xx          → ERROR   (503 is tagged "store unavailable")
    4xx          → WARNING
    /api/files/* → DEBUG   (image fetches by the note list are noisy)
    else         → INFO

/health is not logged. Bodies are never logged; for uploads only the
declared Content-Length is.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from notesync.middleware.request_id import request_id_var

logger = logging.getLogger("notesync.access")

UNLOGGED_PATHS = frozenset({"/health"})
QUIET_PREFIX = "/api/files/"


def access_level(path: str, status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    if path.startswith(QUIET_PREFIX):
        return logging.DEBUG
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access logging for the API routes."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in UNLOGGED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        status = response.status_code
        level = access_level(path, status)
        if not logger.isEnabledFor(level):
            return response

        rid = request_id_var.get("")
        upload_bytes = request.headers.get("content-length") if request.method == "POST" else None
        suffix = " store unavailable" if status == 503 else ""
        logger.log(
            level,
            "[%s] %s %s -> %d in %.1fms%s%s",
            rid,
            request.method,
            path,
            status,
            elapsed_ms,
            f" ({upload_bytes} bytes in)" if upload_bytes else "",
            suffix,
            extra={
                "request_id": rid,
                "status": status,
                "duration_ms": round(elapsed_ms, 2),
            },
        )
        return response
