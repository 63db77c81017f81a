"""
Readlog Backend - Request ID Middleware
========================================

What:  Gives every request a correlation ID and returns it in X-Request-ID.
How:   Uses the client's X-Request-ID header when present, otherwise a short
       UUID. The ID is stored in a ContextVar (read by the access log and the
       exception handlers) and on request.state.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"
MAX_CLIENT_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns a request ID and echoes it on the response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        client_id = request.headers.get(REQUEST_ID_HEADER, "")[:MAX_CLIENT_ID_LENGTH]
        rid = client_id or uuid.uuid4().hex[:8]

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
