"""Request ID middleware.

Binds a request ID to the logging context for the lifetime of each request
and echoes it back in the ``X-Request-ID`` response header.
"""

import re

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from media_catalog.core.logging import clear_request_id, set_request_id

REQUEST_ID_HEADER = "X-Request-ID"

# Client-supplied IDs end up in logs; only accept short, plain tokens
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9_.-]{1,64}$")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Propagate or generate a request ID for every request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER)
        if incoming and not _VALID_REQUEST_ID.match(incoming):
            incoming = None

        request_id = set_request_id(incoming)
        try:
            response = await call_next(request)
        finally:
            clear_request_id()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
