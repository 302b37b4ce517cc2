"""Catalog data models shared by the engine pipeline."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

# yt-dlp reports a missing track as the literal string "none"
NO_CODEC = "none"


def _number(value: Any) -> Optional[float]:
    """Return value as a float when it is a finite JSON number, else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def _integer(value: Any) -> Optional[int]:
    number = _number(value)
    return int(number) if number is not None else None


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


class MediaRole(str, Enum):
    """Role of a catalog entry."""

    VIDEO = "video"
    AUDIO = "audio"


@dataclass
class RawFormatRecord:
    """One format entry as reported by the engine."""

    video_codec: Optional[str] = None
    audio_codec: Optional[str] = None
    height: Optional[int] = None
    audio_bitrate: Optional[float] = None  # kbps
    url: Optional[str] = None
    filesize: Optional[int] = None  # bytes
    filesize_approx: Optional[int] = None  # bytes

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawFormatRecord":
        """
        Build a record from a yt-dlp format dictionary.

        Args:
            data: Format dictionary from the engine's JSON output

        Returns:
            Parsed record; unknown or mistyped fields become None
        """
        return cls(
            video_codec=_text(data.get("vcodec")),
            audio_codec=_text(data.get("acodec")),
            height=_integer(data.get("height")),
            audio_bitrate=_number(data.get("abr")),
            url=_text(data.get("url")),
            filesize=_integer(data.get("filesize")),
            filesize_approx=_integer(data.get("filesize_approx")),
        )

    @property
    def has_video(self) -> bool:
        return self.video_codec not in (None, "", NO_CODEC)

    @property
    def has_audio(self) -> bool:
        return self.audio_codec not in (None, "", NO_CODEC)


@dataclass
class RawMetadata:
    """Engine metadata for a single URL."""

    title: str = ""
    thumbnail: str = ""
    formats: List[RawFormatRecord] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawMetadata":
        """
        Build metadata from the engine's top-level JSON document.

        Non-dict entries in ``formats`` are skipped.
        """
        raw_formats = data.get("formats")
        if not isinstance(raw_formats, list):
            raw_formats = []

        return cls(
            title=_text(data.get("title")) or "",
            thumbnail=_text(data.get("thumbnail")) or "",
            formats=[RawFormatRecord.from_dict(f) for f in raw_formats if isinstance(f, dict)],
        )


@dataclass(frozen=True)
class FormatDescriptor:
    """A downloadable variant presented to the client."""

    quality: str  # e.g. "720p" or "128kbps"
    container: str  # e.g. "MP4" or "MP3"
    source_url: str
    role: MediaRole
    size_bytes: int

    @property
    def key(self) -> tuple:
        """Identity used for de-duplication."""
        return (self.quality, self.container)


@dataclass
class VideoCatalog:
    """Normalized catalog returned for one URL."""

    title: str
    thumbnail_url: str
    formats: List[FormatDescriptor] = field(default_factory=list)
