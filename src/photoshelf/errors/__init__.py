"""Custom exception hierarchy for photoshelf."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional


class PhotoshelfError(Exception):
    """Base class for all custom errors raised by photoshelf."""


# --- 3-layer hierarchy ---

class DomainError(PhotoshelfError):
    """Base class for domain-level errors."""


class InfrastructureError(PhotoshelfError):
    """Base class for infrastructure-level errors."""


class ApplicationError(PhotoshelfError):
    """Base class for application-level errors."""


# --- Domain errors ---

class MediaNotFoundError(DomainError):
    """Raised when the requested media record cannot be located."""


class InvalidVisualItemError(DomainError):
    """Raised when a visual item references neither a picture nor a video."""


# --- Infrastructure errors ---

class StorageError(InfrastructureError):
    """Raised when the catalog store cannot be read or written."""


class ConnectionPoolExhausted(StorageError):
    """Raised when no connections are available in the pool."""


class ExternalToolError(InfrastructureError):
    """Raised when an external tool such as exiftool or ffmpeg fails."""


# --- Application errors ---

class ScanErrorKind(str, Enum):
    IO_ERROR = "io_error"
    UNSUPPORTED_FORMAT = "unsupported_format"
    CORRUPT_METADATA = "corrupt_metadata"


class ScanError(ApplicationError):
    """Raised when a single file cannot be scanned."""

    def __init__(self, kind: ScanErrorKind, path: Path, message: str = "") -> None:
        self.kind = kind
        self.path = path
        super().__init__(message or f"{kind.value}: {path}")


class PreviewErrorKind(str, Enum):
    SOURCE_UNREADABLE = "source_unreadable"
    DECODE_FAILED = "decode_failed"
    CACHE_WRITE_FAILED = "cache_write_failed"


class PreviewError(ApplicationError):
    """Raised when a preview cannot be produced for a record."""

    def __init__(
        self,
        kind: PreviewErrorKind,
        path: Optional[Path] = None,
        message: str = "",
    ) -> None:
        self.kind = kind
        self.path = path
        super().__init__(message or f"{kind.value}: {path}")


# --- Library ---

class LibraryError(PhotoshelfError):
    """Base class for errors occurring while managing the library."""


class LibraryUnavailableError(LibraryError):
    """Raised when no library root is configured or it cannot be accessed."""


# --- Settings ---

class SettingsError(PhotoshelfError):
    """Base class for settings related failures."""


class SettingsLoadError(SettingsError):
    """Raised when the settings file cannot be parsed or loaded."""


class SettingsValidationError(SettingsError):
    """Raised when settings data fails schema validation."""


__all__ = [
    "ApplicationError",
    "ConnectionPoolExhausted",
    "DomainError",
    "ExternalToolError",
    "InfrastructureError",
    "InvalidVisualItemError",
    "LibraryError",
    "LibraryUnavailableError",
    "MediaNotFoundError",
    "PhotoshelfError",
    "PreviewError",
    "PreviewErrorKind",
    "ScanError",
    "ScanErrorKind",
    "SettingsError",
    "SettingsLoadError",
    "SettingsValidationError",
    "StorageError",
]
