"""Catalog service.

Runs the pipeline for one URL: make sure the engine is provisioned, run it,
then normalize its report into a catalog.
"""

import time
from typing import Optional

import structlog

from media_catalog.core.config import Config
from media_catalog.core.errors import error_code_for
from media_catalog.core.metrics import MetricsCollector
from media_catalog.engine.catalog import normalize
from media_catalog.engine.exceptions import ExtractionError
from media_catalog.engine.extractor import Extractor
from media_catalog.engine.provisioner import EngineProvisioner
from media_catalog.models.catalog import VideoCatalog

logger = structlog.get_logger(__name__)


class CatalogService:
    """Orchestrates provisioning, extraction and normalization."""

    def __init__(self, provisioner: EngineProvisioner, extractor: Extractor):
        self.provisioner = provisioner
        self.extractor = extractor

    async def analyze(self, url: str, budget: Optional[float] = None) -> VideoCatalog:
        """
        Build the format catalog for a URL.

        Each call makes exactly one readiness check and one engine run.

        Args:
            url: Validated http(s) URL
            budget: Optional extraction time budget override, in seconds

        Returns:
            VideoCatalog, possibly with no formats

        Raises:
            EngineInitError: If the engine could not be provisioned
            ExtractionError: If the engine run failed
        """
        await self.provisioner.ensure_ready()

        start_time = time.monotonic()
        try:
            raw = await self.extractor.fetch_metadata(url, budget=budget)
        except ExtractionError as e:
            MetricsCollector.record_extraction(error_code_for(e), time.monotonic() - start_time)
            raise
        MetricsCollector.record_extraction("success", time.monotonic() - start_time)

        catalog = normalize(raw)
        MetricsCollector.record_catalog(len(catalog.formats))

        if not catalog.formats:
            logger.info("No downloadable formats found", url=url, raw_formats=len(raw.formats))
        else:
            logger.info("Catalog built", url=url, formats=len(catalog.formats))

        return catalog


# Global service instance
_catalog_service: Optional[CatalogService] = None


def configure_catalog_service(config: Config) -> CatalogService:
    """Configure and initialize the global catalog service.

    Args:
        config: Loaded application configuration

    Returns:
        The configured CatalogService
    """
    global _catalog_service

    provisioner = EngineProvisioner(
        path=config.engine.path,
        download_url=config.engine.download_url,
        download_timeout=config.engine.download_timeout,
    )
    extractor = Extractor(
        engine_path=provisioner.path,
        timeout=config.extraction.timeout,
        max_output_bytes=config.extraction.max_output_bytes,
        max_error_bytes=config.extraction.max_error_bytes,
    )
    _catalog_service = CatalogService(provisioner, extractor)
    return _catalog_service


def get_catalog_service() -> CatalogService:
    """Get the global catalog service instance.

    Raises:
        RuntimeError: If the service has not been configured
    """
    if _catalog_service is None:
        raise RuntimeError(
            "Catalog service not configured. Call configure_catalog_service() first."
        )
    return _catalog_service
