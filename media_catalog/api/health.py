"""Health check endpoints.

- /health: detailed check including the engine binary
- /liveness: process is up
- /readiness: engine is usable or can still be provisioned on demand
"""

import time
from datetime import datetime, timezone
from typing import Literal

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from media_catalog import __version__
from media_catalog.api.schemas import (
    ComponentHealth,
    HealthResponse,
    LivenessResponse,
    ReadinessResponse,
)
from media_catalog.core.checks import check_engine
from media_catalog.engine.provisioner import is_executable_file
from media_catalog.services.catalog_service import CatalogService

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])

# Track application start time for uptime calculation
_start_time: float = time.time()


def reset_start_time() -> None:
    """Reset the start time (for testing)."""
    global _start_time
    _start_time = time.time()


# Dependency placeholder for catalog service
async def get_catalog_service() -> CatalogService:
    """Get catalog service instance."""
    raise NotImplementedError("Catalog service dependency not configured")


async def _check_engine(service: CatalogService) -> ComponentHealth:
    """Check the engine binary.

    A binary that is not on disk yet is "pending": it is fetched by the
    first analyze request.
    """
    path = service.provisioner.path
    if not is_executable_file(path):
        return ComponentHealth(status="pending", details={"path": str(path)})

    result = await check_engine(path)
    if result.available:
        return ComponentHealth(status="healthy", version=result.version)
    return ComponentHealth(
        status="unhealthy",
        details={"error": result.error or "engine not available"},
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={
        200: {"description": "All components healthy or pending"},
        503: {"description": "One or more components unhealthy"},
    },
)
async def health_check(
    service: CatalogService = Depends(get_catalog_service),  # noqa: B008
) -> JSONResponse:
    """
    Detailed health check endpoint.

    Returns HTTP 200 unless the engine binary is present but broken.
    """
    components = {"engine": await _check_engine(service)}

    healthy = all(c.status != "unhealthy" for c in components.values())
    overall_status: Literal["healthy", "unhealthy"] = "healthy" if healthy else "unhealthy"

    response = HealthResponse(
        status=overall_status,
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__,
        uptime_seconds=round(time.time() - _start_time, 2),
        components=components,
    )

    logger.info(
        "health_check_completed",
        status=overall_status,
        components={k: v.status for k, v in components.items()},
    )

    status_code = status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=response.model_dump(), status_code=status_code)


@router.get("/liveness", response_model=LivenessResponse)
async def liveness_check() -> LivenessResponse:
    """Liveness probe endpoint."""
    return LivenessResponse(status="alive")


@router.get(
    "/readiness",
    response_model=ReadinessResponse,
    responses={
        200: {"description": "Service is ready to accept traffic"},
        503: {"description": "Service is not ready"},
    },
)
async def readiness_check(
    service: CatalogService = Depends(get_catalog_service),  # noqa: B008
) -> JSONResponse:
    """
    Readiness probe endpoint.

    Not ready only when the engine binary exists but does not run.
    """
    engine_health = await _check_engine(service)
    if engine_health.status == "unhealthy":
        response = ReadinessResponse(
            status="not_ready",
            ready=False,
            message="engine not available",
        )
        return JSONResponse(
            content=response.model_dump(),
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return JSONResponse(
        content=ReadinessResponse(status="ready", ready=True).model_dump(),
        status_code=status.HTTP_200_OK,
    )
