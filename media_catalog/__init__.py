"""Media catalog API: video URL in, downloadable format catalog out."""

__version__ = "1.0.0"
