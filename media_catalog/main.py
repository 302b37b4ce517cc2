"""FastAPI application entry point.

This module assembles all components and creates the main application.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from media_catalog import __version__
from media_catalog.api import analyze, health, metrics
from media_catalog.core.config import ConfigService, SecurityConfig
from media_catalog.core.errors import global_exception_handler
from media_catalog.core.i18n import configure_i18n
from media_catalog.core.logging import configure_logging
from media_catalog.core.metrics import MetricsCollector, initialize_metrics
from media_catalog.engine.exceptions import CatalogError
from media_catalog.middleware.request_id import RequestIDMiddleware
from media_catalog.services.catalog_service import (
    configure_catalog_service,
    get_catalog_service,
)

logger = structlog.get_logger(__name__)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to track HTTP request metrics.

    Records request count and duration for all endpoints,
    using FastAPI route templates to normalize paths.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process request and record metrics."""
        start_time = time.time()
        response = await call_next(request)
        duration = time.time() - start_time

        # Fixed label for unmatched routes to prevent unbounded cardinality
        route = request.scope.get("route")
        endpoint = route.path if route else "/unmatched"

        MetricsCollector.record_request(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code,
            duration=duration,
        )

        return response


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown."""
    config = ConfigService().load()

    configure_logging(config.logging.level, config.logging.format)
    initialize_metrics(__version__)
    configure_i18n(config.i18n.default_locale, config.i18n.supported_locales)

    logger.info("Application starting", version=__version__)

    # The engine itself is provisioned lazily by the first analyze request
    service = configure_catalog_service(config)
    logger.info(
        "Catalog service configured",
        engine_path=str(service.provisioner.path),
        engine_present=service.provisioner.path.exists(),
        extraction_timeout=config.extraction.timeout,
    )

    health.reset_start_time()
    logger.info("Application startup complete", version=__version__)

    yield

    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Media Catalog API",
        description="Lists the downloadable formats of a video URL using yt-dlp",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Default ["*"]; override via APP_SECURITY_CORS_ORIGINS env var
    security_config = SecurityConfig()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=security_config.cors_origins,
        allow_credentials=False,
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["*"],
    )

    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Register global exception handlers
    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(CatalogError, global_exception_handler)
    app.add_exception_handler(StarletteHTTPException, global_exception_handler)

    # Override dependency injection for routers
    app.dependency_overrides[analyze.get_catalog_service] = get_catalog_service
    app.dependency_overrides[health.get_catalog_service] = get_catalog_service
    app.dependency_overrides[metrics.get_catalog_service] = get_catalog_service

    # Register routers
    app.include_router(health.router)
    app.include_router(analyze.router)
    app.include_router(metrics.router)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn  # type: ignore[import-not-found]

    uvicorn.run(app, host="0.0.0.0", port=8000)  # nosec B104
