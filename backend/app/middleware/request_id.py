"""
FinSight Backend — Request ID Middleware
==========================================

What:  Tags every request with a short correlation ID and returns it in the
       X-Request-ID response header.
How:   A client-supplied X-Request-ID is reused when it is a short token of
       letters, digits, "-" or "_"; anything else is replaced by 8 hex chars
       of a UUID4. The ID lives in a ContextVar, read by the access log and
       by every error body built in main.py, and in request.state.

A user reporting "Unable to generate market stats." can quote the
request_id from the error body, and the matching upstream failure is one
grep away in the logs.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Echoed into logs and headers, so only plain tokens are accepted from clients
_CLIENT_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def resolve_request_id(supplied: str) -> str:
    """The client's ID when it is a plain token, otherwise a fresh one."""
    if supplied and _CLIENT_ID_RE.match(supplied):
        return supplied
    return new_request_id()


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER, ""))
        # Not reset afterwards: the outermost 500 handler still reads it
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
