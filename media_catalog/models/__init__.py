"""Data models for the application."""

from media_catalog.models.catalog import (
    FormatDescriptor,
    MediaRole,
    RawFormatRecord,
    RawMetadata,
    VideoCatalog,
)

__all__ = [
    "MediaRole",
    "RawFormatRecord",
    "RawMetadata",
    "FormatDescriptor",
    "VideoCatalog",
]
