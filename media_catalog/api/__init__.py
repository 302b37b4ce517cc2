"""API endpoints."""

from media_catalog.api import analyze, health, metrics

__all__ = [
    "analyze",
    "health",
    "metrics",
]
