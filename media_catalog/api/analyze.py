"""Analyze endpoint.

POST a video URL, get back the catalog of downloadable formats.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request

from media_catalog.api.schemas import AnalyzeRequest, ErrorResponse, VideoCatalogResponse
from media_catalog.core.validation import URLValidator, extract_url
from media_catalog.services.catalog_service import CatalogService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["catalog"])

url_validator = URLValidator()


# Dependency placeholder for catalog service
async def get_catalog_service() -> CatalogService:
    """Get catalog service instance."""
    raise NotImplementedError("Catalog service dependency not configured")


@router.post(
    "/analyze",
    response_model=VideoCatalogResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or unsupported URL"},
        403: {"model": ErrorResponse, "description": "Private or unavailable video"},
        405: {"model": ErrorResponse, "description": "Method not allowed"},
        500: {"model": ErrorResponse, "description": "Engine failure or timeout"},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": AnalyzeRequest.model_json_schema()}},
        }
    },
)
async def analyze(
    request: Request,
    service: CatalogService = Depends(get_catalog_service),  # noqa: B008
) -> Any:
    """
    Analyze a video URL and list its downloadable formats.

    The body is read raw because clients may send either a JSON object or
    a JSON string that encodes one.

    Args:
        request: Incoming request
        service: Catalog service instance

    Returns:
        VideoCatalogResponse with formats ordered best first
    """
    url = extract_url(await request.body(), url_validator)
    logger.info("analyze_requested", url=url)

    catalog = await service.analyze(url)
    return VideoCatalogResponse.from_catalog(catalog)
