"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from media_catalog.core.metrics import MetricsCollector
from media_catalog.engine.provisioner import is_executable_file
from media_catalog.services.catalog_service import CatalogService

router = APIRouter(tags=["monitoring"])


# Dependency placeholder for catalog service
async def get_catalog_service() -> CatalogService:
    """Get catalog service instance."""
    raise NotImplementedError("Catalog service dependency not configured")


@router.get(
    "/metrics",
    response_class=Response,
    summary="Prometheus metrics endpoint",
    description="Returns metrics in Prometheus text format for scraping.",
)
async def metrics(
    service: CatalogService = Depends(get_catalog_service),  # noqa: B008
) -> Response:
    """
    Export all metrics.

    The engine_ready gauge is refreshed first: the binary may have been left
    on disk by an earlier instance sharing the same storage.
    """
    provisioner = service.provisioner
    MetricsCollector.set_engine_ready(
        provisioner.is_ready or is_executable_file(provisioner.path)
    )
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
