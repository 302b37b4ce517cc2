"""Prometheus metrics collection for the API.

Tracks request rates, engine provisioning, extraction outcomes and
catalog sizes.
"""

from prometheus_client import Counter, Gauge, Histogram, Info

# Application info
app_info = Info("media_catalog", "Media catalog API application information")

# HTTP request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 15.0],
)

# Engine metrics
engine_provisioning_total = Counter(
    "engine_provisioning_total",
    "Engine binary provisioning attempts by result",
    ["result"],
)

engine_ready = Gauge(
    "engine_ready",
    "Whether the engine binary is provisioned (1) or not (0)",
)

extractions_total = Counter(
    "extractions_total",
    "Engine extraction runs by outcome",
    ["outcome"],
)

extraction_duration_seconds = Histogram(
    "extraction_duration_seconds",
    "Engine extraction duration in seconds",
    buckets=[0.5, 1.0, 2.0, 4.0, 6.0, 8.0, 10.0, 12.0, 14.0],
)

catalog_formats = Histogram(
    "catalog_formats",
    "Number of formats in returned catalogs",
    buckets=[0, 1, 2, 4, 8, 16, 32],
)

# Error metrics
errors_total = Counter(
    "errors_total",
    "Total errors by error code and endpoint",
    ["error_code", "endpoint"],
)


class MetricsCollector:
    """Centralized metrics collection and update helper."""

    @staticmethod
    def record_request(
        method: str,
        endpoint: str,
        status: int,
        duration: float,
    ) -> None:
        """Record HTTP request metrics.

        Args:
            method: HTTP method (GET, POST, etc.).
            endpoint: Normalized endpoint path.
            status: HTTP response status code.
            duration: Request duration in seconds.
        """
        http_requests_total.labels(
            method=method,
            endpoint=endpoint,
            status=str(status),
        ).inc()
        http_request_duration_seconds.labels(
            method=method,
            endpoint=endpoint,
        ).observe(duration)

    @staticmethod
    def record_engine_provisioning(result: str) -> None:
        """Record a provisioning attempt ('success' or 'failed')."""
        engine_provisioning_total.labels(result=result).inc()
        if result == "success":
            engine_ready.set(1)

    @staticmethod
    def set_engine_ready(ready: bool) -> None:
        engine_ready.set(1 if ready else 0)

    @staticmethod
    def record_extraction(outcome: str, duration: float) -> None:
        """Record an extraction run.

        Args:
            outcome: 'success' or the failing exception's error code.
            duration: Wall-clock time of the run in seconds.
        """
        extractions_total.labels(outcome=outcome).inc()
        extraction_duration_seconds.observe(duration)

    @staticmethod
    def record_catalog(format_count: int) -> None:
        catalog_formats.observe(format_count)

    @staticmethod
    def record_error(error_code: str, endpoint: str) -> None:
        """Record an error occurrence.

        Args:
            error_code: Error code from ErrorCode class.
            endpoint: Endpoint where the error occurred.
        """
        errors_total.labels(error_code=error_code, endpoint=endpoint).inc()


def initialize_metrics(version: str) -> None:
    """Initialize application metrics with version information.

    Should be called during application startup.
    """
    app_info.info({"version": version})
