"""Engine and extraction exceptions."""

from typing import Optional


class CatalogError(Exception):
    """Base exception for catalog pipeline errors."""

    pass


class EngineInitError(CatalogError):
    """Raised when the engine binary cannot be fetched or made executable."""

    pass


class InvalidInputError(CatalogError):
    """Raised when the request body or URL is missing or malformed."""

    pass


class ExtractionError(CatalogError):
    """Base exception for failures while running the engine.

    The captured stderr is kept for operator logs only.
    """

    def __init__(self, message: str, stderr: Optional[str] = None):
        super().__init__(message)
        self.stderr = stderr


class UnsupportedSourceError(ExtractionError):
    """Raised when the engine does not handle the URL."""

    pass


class RestrictedSourceError(ExtractionError):
    """Raised when the content is private or unavailable."""

    pass


class ExtractionTimeoutError(ExtractionError):
    """Raised when the engine exceeds its time budget."""

    pass


class MalformedEngineOutputError(ExtractionError):
    """Raised when engine output is not a parsable JSON object."""

    pass


class EngineLaunchError(ExtractionError):
    """Raised when the engine process cannot be started."""

    pass


class UnknownExtractionError(ExtractionError):
    """Raised for any engine failure that matches no known marker."""

    pass
