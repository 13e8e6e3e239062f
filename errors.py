"""
Error kinds raised by the stamping pipeline.

Fatal kinds abort a stamping run. GeocodingFailure and AssetMissing are
caught where they happen and only degrade the output.
"""

import os


class StampError(Exception):
    """Base class for all stamping errors."""


class SourceNotFound(StampError, FileNotFoundError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"File not found: {path}")


class UnsupportedFormat(StampError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Unsupported file format: {os.path.splitext(path)[1]}")


class MetadataReadError(StampError):
    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Failed to read metadata from {path}: {reason}")


class NoLocationData(StampError):
    """The photo carries no GPS coordinates."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"No GPS data found in {path}")


class TileFetchFailure(StampError):
    """A map tile could not be fetched after all retries."""

    def __init__(self, url: str, reason: str = ""):
        self.url = url
        self.reason = reason
        message = f"Failed to fetch tile {url}"
        if reason:
            message += f" - {reason}"
        super().__init__(message)


class GeocodingFailure(StampError):
    pass


class AssetMissing(StampError):
    """An SVG asset is absent or cannot be rendered."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        message = f"Asset not found: {path}" if not reason else f"Asset unusable: {path} - {reason}"
        super().__init__(message)


class InvalidOption(StampError, ValueError):
    """An option value is out of range or malformed."""
