"""Engine provisioning, invocation and catalog normalization."""

from media_catalog.engine.catalog import normalize
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
from media_catalog.engine.extractor import Extractor
from media_catalog.engine.provisioner import EngineProvisioner

__all__ = [
    "EngineProvisioner",
    "Extractor",
    "normalize",
    "CatalogError",
    "EngineInitError",
    "InvalidInputError",
    "ExtractionError",
    "UnsupportedSourceError",
    "RestrictedSourceError",
    "ExtractionTimeoutError",
    "MalformedEngineOutputError",
    "EngineLaunchError",
    "UnknownExtractionError",
]
