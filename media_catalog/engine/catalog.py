"""Catalog normalization.

Turns the engine's raw format list into the de-duplicated, ranked catalog
shown to the client. Everything here is pure and synchronous.
"""

import math
from typing import Iterable, List

import structlog

from media_catalog.models.catalog import (
    FormatDescriptor,
    MediaRole,
    RawFormatRecord,
    RawMetadata,
    VideoCatalog,
)

logger = structlog.get_logger(__name__)

VIDEO_CONTAINER = "MP4"
# Audio streams are usually m4a/webm; the client labels every audio-only entry MP3
AUDIO_CONTAINER = "MP3"
UNKNOWN_QUALITY = "unknown"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def is_eligible(record: RawFormatRecord) -> bool:
    """
    Check whether a raw record can be offered for download.

    Keeps muxed video+audio and audio-only records with a fetch URL.
    Video-only (muted) streams and codec-less placeholders are dropped.

    Args:
        record: Raw engine format record

    Returns:
        True if the record should be projected into the catalog
    """
    if not record.url:
        return False
    if record.has_video and record.has_audio:
        return True
    return not record.has_video and record.has_audio


def _quality_label(record: RawFormatRecord) -> str:
    if not record.has_video:
        if record.audio_bitrate is None:
            return UNKNOWN_QUALITY
        return f"{_round_half_up(record.audio_bitrate)}kbps"
    if record.height is None:
        return UNKNOWN_QUALITY
    return f"{record.height}p"


def to_descriptor(record: RawFormatRecord) -> FormatDescriptor:
    """
    Project an eligible record onto a catalog entry.

    Args:
        record: Raw record that passed ``is_eligible``

    Returns:
        FormatDescriptor; ``size_bytes`` is 0 when the engine reported no size
    """
    role = MediaRole.VIDEO if record.has_video else MediaRole.AUDIO
    size = record.filesize or record.filesize_approx or 0

    return FormatDescriptor(
        quality=_quality_label(record),
        container=VIDEO_CONTAINER if role is MediaRole.VIDEO else AUDIO_CONTAINER,
        source_url=record.url or "",
        role=role,
        size_bytes=size,
    )


def dedupe(descriptors: Iterable[FormatDescriptor]) -> List[FormatDescriptor]:
    """Keep the first descriptor for each (quality, container) pair."""
    seen = set()
    unique: List[FormatDescriptor] = []
    for descriptor in descriptors:
        if descriptor.key in seen:
            continue
        seen.add(descriptor.key)
        unique.append(descriptor)
    return unique


def normalize(raw: RawMetadata) -> VideoCatalog:
    """
    Build the client catalog from raw engine metadata.

    Steps: eligibility filter, projection, size filter, reversal, de-duplication.
    The engine lists formats least preferred first for the
    ``res,vcodec:h264`` sort, so reversing yields best first.

    Args:
        raw: Parsed engine metadata

    Returns:
        VideoCatalog; ``formats`` may be empty
    """
    descriptors = [to_descriptor(record) for record in raw.formats if is_eligible(record)]
    sized = [d for d in descriptors if d.size_bytes > 0]
    sized.reverse()
    formats = dedupe(sized)

    logger.debug(
        "catalog_normalized",
        raw_formats=len(raw.formats),
        eligible=len(descriptors),
        sized=len(sized),
        catalog_formats=len(formats),
    )

    return VideoCatalog(title=raw.title, thumbnail_url=raw.thumbnail, formats=formats)
