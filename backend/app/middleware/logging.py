"""
FinSight Backend — Request Logging Middleware
===============================================

What:  One access-log line per HTTP request.
How:   Measures time around call_next and logs method, path, status,
       duration, request ID and client IP. Level follows the status class:
       5xx → ERROR, 4xx → WARNING, otherwise INFO.

Authenticated requests also carry the caller's user id (the token's `sub`),
which the auth gate leaves on request.state.

What we log vs what we DON'T log (privacy):
    ✅ Log: method, path, status, duration, IP, request ID, user id
    ❌ Don't log: request bodies (passwords), Authorization headers, cookies,
       tokens, email addresses
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("finsight.access")

# Probed every few seconds by orchestrators; not worth a log line each
QUIET_PATHS = {"/", "/health"}


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if request.method == "GET" and path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000

        rid = request_id_var.get("")
        client_ip = request.client.host if request.client else "unknown"
        user_id = getattr(request.state, "user_id", None) or "-"

        logger.log(
            _level_for(response.status_code),
            "%s %s %d %.1fms [%s] user=%s from %s",
            request.method,
            path,
            response.status_code,
            duration_ms,
            rid,
            user_id,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "user_id": user_id,
                "client_ip": client_ip,
            },
        )
        return response
