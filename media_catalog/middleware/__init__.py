"""Middleware package for the API."""

from media_catalog.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware

__all__ = [
    "REQUEST_ID_HEADER",
    "RequestIDMiddleware",
]
