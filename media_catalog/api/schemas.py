"""Request and response schemas for API endpoints.

This module provides Pydantic models for API request documentation
and response serialization with OpenAPI examples. Catalog payloads use
the camelCase field names the client expects.
"""

from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from media_catalog.models.catalog import FormatDescriptor, VideoCatalog


class AnalyzeRequest(BaseModel):
    """Request body for the analyze endpoint."""

    url: str = Field(
        ..., description="Video URL", examples=["https://www.youtube.com/watch?v=dQw4w9WgXcQ"]
    )


class FormatDescriptorResponse(BaseModel):
    """One downloadable variant."""

    model_config = ConfigDict(populate_by_name=True)

    quality: str = Field(..., examples=["720p", "128kbps"])
    container: str = Field(..., examples=["MP4", "MP3"])
    source_url: str = Field(..., alias="sourceUrl", examples=["https://example.com/video.mp4"])
    role: Literal["video", "audio"] = Field(..., examples=["video"])
    size_bytes: int = Field(..., alias="sizeBytes", gt=0, examples=[52428800])

    @classmethod
    def from_descriptor(cls, descriptor: FormatDescriptor) -> "FormatDescriptorResponse":
        return cls(
            quality=descriptor.quality,
            container=descriptor.container,
            source_url=descriptor.source_url,
            role=descriptor.role.value,
            size_bytes=descriptor.size_bytes,
        )


class VideoCatalogResponse(BaseModel):
    """Catalog of downloadable formats for one video."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., examples=["Rick Astley - Never Gonna Give You Up"])
    thumbnail_url: str = Field(
        ...,
        alias="thumbnailUrl",
        examples=["https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg"],
    )
    formats: list[FormatDescriptorResponse] = Field(
        default_factory=list, description="Formats ordered best first"
    )

    @classmethod
    def from_catalog(cls, catalog: VideoCatalog) -> "VideoCatalogResponse":
        return cls(
            title=catalog.title,
            thumbnail_url=catalog.thumbnail_url,
            formats=[FormatDescriptorResponse.from_descriptor(f) for f in catalog.formats],
        )


class ErrorResponse(BaseModel):
    """Standardized error response."""

    error_code: str = Field(..., examples=["RESTRICTED_SOURCE"])
    message: str = Field(..., examples=["This video is private or unavailable."])
    timestamp: str = Field(..., examples=["2024-01-01T00:00:00+00:00"])
    request_id: Optional[str] = Field(None, examples=["req_0123456789ab"])


class ComponentHealth(BaseModel):
    """Health status of a single component."""

    status: Literal["healthy", "unhealthy", "pending"]
    version: Optional[str] = None
    details: Optional[Dict[str, str]] = None


class HealthResponse(BaseModel):
    """Detailed health response."""

    status: Literal["healthy", "unhealthy"]
    timestamp: str
    version: str
    uptime_seconds: float
    components: Dict[str, ComponentHealth]


class LivenessResponse(BaseModel):
    """Liveness probe response."""

    status: Literal["alive"] = "alive"


class ReadinessResponse(BaseModel):
    """Readiness probe response."""

    status: Literal["ready", "not_ready"]
    ready: bool
    message: Optional[str] = None
