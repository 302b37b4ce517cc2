"""Centralized error handling for the API.

This module provides standardized error codes, exception-to-response mapping,
and a global exception handler for FastAPI. Response messages are short and
localized; raw engine diagnostics only ever reach the logs.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Type

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_405_METHOD_NOT_ALLOWED,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from media_catalog.core.i18n import i18n
from media_catalog.core.logging import get_request_id
from media_catalog.core.metrics import MetricsCollector
from media_catalog.engine.exceptions import (
    CatalogError,
    EngineInitError,
    EngineLaunchError,
    ExtractionError,
    ExtractionTimeoutError,
    InvalidInputError,
    MalformedEngineOutputError,
    RestrictedSourceError,
    UnknownExtractionError,
    UnsupportedSourceError,
)

logger = structlog.get_logger(__name__)


class ErrorCode:
    """Standardized error codes for API responses."""

    # Client Errors (4xx)
    INVALID_INPUT = "INVALID_INPUT"
    UNSUPPORTED_SOURCE = "UNSUPPORTED_SOURCE"
    RESTRICTED_SOURCE = "RESTRICTED_SOURCE"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"

    # Server Errors (5xx)
    ENGINE_INIT_FAILED = "ENGINE_INIT_FAILED"
    EXTRACTION_TIMEOUT = "EXTRACTION_TIMEOUT"
    MALFORMED_ENGINE_OUTPUT = "MALFORMED_ENGINE_OUTPUT"
    EXTRACTION_FAILED = "EXTRACTION_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# Error code to HTTP status code mapping
ERROR_CODE_TO_STATUS: Dict[str, int] = {
    ErrorCode.INVALID_INPUT: HTTP_400_BAD_REQUEST,
    ErrorCode.UNSUPPORTED_SOURCE: HTTP_400_BAD_REQUEST,
    ErrorCode.RESTRICTED_SOURCE: HTTP_403_FORBIDDEN,
    ErrorCode.NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.METHOD_NOT_ALLOWED: HTTP_405_METHOD_NOT_ALLOWED,
    ErrorCode.ENGINE_INIT_FAILED: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.EXTRACTION_TIMEOUT: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.MALFORMED_ENGINE_OUTPUT: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.EXTRACTION_FAILED: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INTERNAL_ERROR: HTTP_500_INTERNAL_SERVER_ERROR,
}


# Exception type to error code mapping
# Order matters: subclasses must come before their base classes
EXCEPTION_TO_ERROR_CODE: Dict[Type[Exception], str] = {
    InvalidInputError: ErrorCode.INVALID_INPUT,
    EngineInitError: ErrorCode.ENGINE_INIT_FAILED,
    UnsupportedSourceError: ErrorCode.UNSUPPORTED_SOURCE,
    RestrictedSourceError: ErrorCode.RESTRICTED_SOURCE,
    ExtractionTimeoutError: ErrorCode.EXTRACTION_TIMEOUT,
    MalformedEngineOutputError: ErrorCode.MALFORMED_ENGINE_OUTPUT,
    EngineLaunchError: ErrorCode.EXTRACTION_FAILED,
    UnknownExtractionError: ErrorCode.EXTRACTION_FAILED,
    # ExtractionError must come after its subclasses
    ExtractionError: ErrorCode.EXTRACTION_FAILED,
}


def error_code_for(exc: Exception) -> str:
    """Map a pipeline exception to its error code.

    Uses EXCEPTION_TO_ERROR_CODE; dictionary order ensures subclasses are
    checked before their base classes.
    """
    for exc_type, error_code in EXCEPTION_TO_ERROR_CODE.items():
        if isinstance(exc, exc_type):
            return error_code
    return ErrorCode.INTERNAL_ERROR


def status_for(error_code: str) -> int:
    return ERROR_CODE_TO_STATUS.get(error_code, HTTP_500_INTERNAL_SERVER_ERROR)


def _status_to_error_code(status_code: int) -> str:
    """Infer error code from HTTP status code."""
    if status_code == HTTP_400_BAD_REQUEST:
        return ErrorCode.INVALID_INPUT
    elif status_code == HTTP_404_NOT_FOUND:
        return ErrorCode.NOT_FOUND
    elif status_code == HTTP_405_METHOD_NOT_ALLOWED:
        return ErrorCode.METHOD_NOT_ALLOWED
    else:
        return ErrorCode.INTERNAL_ERROR


def build_error_response(error_code: str, message: str) -> Dict[str, Any]:
    """Build a standardized error response dictionary.

    Args:
        error_code: Machine-readable error code.
        message: Human-readable, localized error message.

    Returns:
        Dictionary matching the ErrorResponse schema.
    """
    response: Dict[str, Any] = {
        "error_code": error_code,
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    request_id = get_request_id()
    if request_id:
        response["request_id"] = request_id

    return response


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for FastAPI.

    Converts all exceptions to standardized error responses with a localized
    message and the matching HTTP status code.

    Args:
        request: The FastAPI request object.
        exc: The exception that was raised.

    Returns:
        JSONResponse with the error body and appropriate status code.
    """
    locale = i18n.get_locale(request.headers.get("accept-language"))
    headers: Optional[Dict[str, str]] = None

    if isinstance(exc, StarletteHTTPException):
        status_code = exc.status_code
        error_code = _status_to_error_code(status_code)
        message = i18n.get(error_code, locale)
        headers = getattr(exc, "headers", None)
        logger.warning(
            "http_exception",
            status_code=status_code,
            error_code=error_code,
            path=request.url.path,
        )

    elif isinstance(exc, CatalogError):
        error_code = error_code_for(exc)
        status_code = status_for(error_code)
        message = i18n.get(error_code, locale)
        log = logger.error if status_code >= HTTP_500_INTERNAL_SERVER_ERROR else logger.warning
        log(
            "catalog_error",
            error_code=error_code,
            error_type=type(exc).__name__,
            error=str(exc),
            stderr=getattr(exc, "stderr", None),
            path=request.url.path,
        )

    else:
        # Unexpected error - log with full traceback
        error_code = ErrorCode.INTERNAL_ERROR
        status_code = HTTP_500_INTERNAL_SERVER_ERROR
        message = i18n.get(error_code, locale)
        logger.error(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error=str(exc),
            path=request.url.path,
            exc_info=exc,
        )

    route = request.scope.get("route")
    MetricsCollector.record_error(error_code, route.path if route else "/unmatched")

    return JSONResponse(
        status_code=status_code,
        content=build_error_response(error_code, message),
        headers=headers,
    )
