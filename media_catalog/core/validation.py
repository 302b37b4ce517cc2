"""Input validation utilities for the API layer.

Covers decoding the analyze request body and checking that the submitted
URL is an http(s) URL before the engine ever sees it.
"""

import json
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlparse

import structlog

from media_catalog.engine.exceptions import InvalidInputError

logger = structlog.get_logger(__name__)

MAX_URL_LENGTH = 2048


@dataclass(frozen=True)
class ValidationResult:
    """Result of a validation operation."""

    is_valid: bool
    error_message: Optional[str] = None
    sanitized_value: Optional[str] = None


class URLValidator:
    """Validates that a URL is an absolute http(s) URL."""

    ALLOWED_SCHEMES = frozenset({"http", "https"})

    def validate(self, url: Any) -> ValidationResult:
        """Validate a URL.

        Args:
            url: Candidate URL from the request body

        Returns:
            ValidationResult with validation status and any error message
        """
        if not url or not isinstance(url, str):
            return ValidationResult(
                is_valid=False, error_message="URL is required and must be a string"
            )

        url = url.strip()
        if not url:
            return ValidationResult(is_valid=False, error_message="URL cannot be empty")

        if len(url) > MAX_URL_LENGTH:
            return ValidationResult(
                is_valid=False,
                error_message=f"URL exceeds maximum length of {MAX_URL_LENGTH}",
            )

        if any(ch.isspace() for ch in url):
            return ValidationResult(is_valid=False, error_message="URL must not contain whitespace")

        try:
            parsed = urlparse(url)
        except ValueError as e:
            logger.warning("URL parsing failed", url=url, error=str(e))
            return ValidationResult(is_valid=False, error_message="Invalid URL format")

        scheme = parsed.scheme.lower()
        if scheme not in self.ALLOWED_SCHEMES:
            return ValidationResult(
                is_valid=False, error_message="URL must use http or https scheme"
            )

        if not parsed.hostname:
            return ValidationResult(is_valid=False, error_message="URL must include a host")

        return ValidationResult(is_valid=True, sanitized_value=url)


def decode_request_body(body: bytes) -> dict:
    """
    Decode the analyze request body.

    Accepts a JSON object, or a JSON string whose content is itself a
    JSON object (some clients double-encode the body).

    Args:
        body: Raw request body

    Returns:
        The decoded object

    Raises:
        InvalidInputError: If the body is empty or not an object
    """
    if not body or not body.strip():
        raise InvalidInputError("Request body is empty")

    try:
        payload = json.loads(body)
        if isinstance(payload, str):
            payload = json.loads(payload)
    except ValueError as e:
        raise InvalidInputError(f"Request body is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise InvalidInputError("Request body must be a JSON object")

    return payload


def extract_url(body: bytes, validator: Optional[URLValidator] = None) -> str:
    """
    Decode the request body and return its validated ``url`` field.

    Raises:
        InvalidInputError: If the body or the URL is invalid
    """
    payload = decode_request_body(body)
    result = (validator or URLValidator()).validate(payload.get("url"))
    if not result.is_valid:
        raise InvalidInputError(result.error_message or "Invalid URL")
    return result.sanitized_value or ""
