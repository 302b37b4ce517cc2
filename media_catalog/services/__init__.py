"""Service layer implementations."""

from media_catalog.services.catalog_service import (
    CatalogService,
    configure_catalog_service,
    get_catalog_service,
)

__all__ = [
    "CatalogService",
    "configure_catalog_service",
    "get_catalog_service",
]
