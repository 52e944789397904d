"""
Exception taxonomy for the image enrichment pipeline.

Everything the pipeline raises derives from EnrichError so the updater can
isolate a failing record with a single except clause. StoreError is the only
one allowed to end a run.
"""

from pathlib import Path

from models import ImageDimensions


class EnrichError(Exception):
    """Base class for all pipeline errors."""


class FetchError(EnrichError):
    """Network failure while retrieving a page or an image."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"GET {url} failed: {reason}")


class HttpError(FetchError):
    """Non-2xx response."""

    def __init__(self, status: int, url: str):
        self.status = status
        super().__init__(url, f"HTTP {status}")


class ParseError(EnrichError):
    """Malformed embedded JSON (structured data or packed image maps)."""


class NoCandidateError(EnrichError):
    """No strategy produced a usable, non-pixel image URL."""

    def __init__(self, url: str, candidate: str | None = None):
        self.url = url
        self.candidate = candidate
        if candidate:
            msg = f"no usable image found on {url} (rejected {candidate})"
        else:
            msg = f"no usable image found on {url}"
        super().__init__(msg)


class DegenerateImageError(EnrichError):
    """Downloaded image is too small or cannot be decoded."""

    def __init__(self, url: str, dimensions: ImageDimensions | None):
        self.url = url
        self.dimensions = dimensions
        size = f"{dimensions.width}x{dimensions.height}" if dimensions else "undecodable"
        super().__init__(f"degenerate image {url} ({size})")


class TransformError(EnrichError):
    """Normalization or encoding failed on the downloaded bytes."""


class OutputError(EnrichError):
    """The normalized image could not be written for this record."""


class StoreError(EnrichError):
    """The catalog could not be read, decoded or written."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"catalog {path}: {reason}")
