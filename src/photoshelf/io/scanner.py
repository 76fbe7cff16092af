"""Directory scanner producing media records."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

from ..config import (
    DEFAULT_EXCLUDE,
    DEFAULT_INCLUDE,
    IMAGE_EXTENSIONS,
    SCAN_BATCH_SIZE,
    VIDEO_EXTENSIONS,
    WORK_DIR_NAME,
)
from ..domain.models import MediaKind, MediaRecord
from ..errors import ExternalToolError, ScanError, ScanErrorKind
from ..utils import exiftool
from ..utils.hashutils import compute_file_id
from ..utils.logging import get_logger
from ..utils.pathutils import should_include
from .metadata import read_image_meta, read_video_meta

LOGGER = get_logger(__name__)


def media_kind_for(path: Path) -> Optional[MediaKind]:
    """Return the media kind implied by the suffix of *path*, if any."""

    suffix = path.suffix.lower()
    if suffix in IMAGE_EXTENSIONS:
        return MediaKind.PHOTO
    if suffix in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    return None


@dataclass(frozen=True)
class ScanResult:
    """Outcome of scanning one discovered file.

    Exactly one of ``record`` and ``error`` is set.
    """

    path: Path
    record: Optional[MediaRecord] = None
    error: Optional[ScanError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _timestamp(value: Optional[float]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


class Scanner:
    """Characterise media files on disk.

    ``scan_one`` handles a single path; ``scan_tree`` walks a directory and
    yields one :class:`ScanResult` per media file, so a broken file shows up
    as a failed result instead of stopping the walk.
    """

    def __init__(
        self,
        include_globs: Optional[Iterable[str]] = None,
        exclude_globs: Optional[Iterable[str]] = None,
        *,
        use_exiftool: bool = True,
        batch_size: int = SCAN_BATCH_SIZE,
    ) -> None:
        self._include_globs = list(include_globs or DEFAULT_INCLUDE)
        self._exclude_globs = list(exclude_globs or DEFAULT_EXCLUDE)
        self._use_exiftool = use_exiftool
        self._batch_size = max(1, batch_size)

    @property
    def exiftool_enabled(self) -> bool:
        return self._use_exiftool and exiftool.is_available()

    # ------------------------------------------------------------------
    # Single file
    # ------------------------------------------------------------------
    def scan_one(self, path: Path, exiftool_meta: Optional[Dict[str, Any]] = None) -> MediaRecord:
        """Return a fresh, unsaved :class:`MediaRecord` for *path*.

        Raises
        ------
        ScanError
            ``UNSUPPORTED_FORMAT`` for suffixes outside the known image and
            video lists, ``IO_ERROR`` when the file cannot be read, and
            ``CORRUPT_METADATA`` when an image header cannot be parsed.
        """

        path = Path(path)
        kind = media_kind_for(path)
        if kind is None:
            raise ScanError(ScanErrorKind.UNSUPPORTED_FORMAT, path, f"Unsupported file type: {path}")

        try:
            source = path.resolve()
            stat = source.stat()
            fingerprint = compute_file_id(source)
        except OSError as exc:
            raise ScanError(ScanErrorKind.IO_ERROR, path, f"Cannot read {path}: {exc}") from exc

        if exiftool_meta is None and self.exiftool_enabled:
            exiftool_meta = self._query_exiftool([source]).get(source)

        if kind == MediaKind.PHOTO:
            metadata = read_image_meta(source, exiftool_meta)
        else:
            metadata = read_video_meta(source, exiftool_meta)

        # st_birthtime only exists on macOS and BSD
        created = getattr(stat, "st_birthtime", None) or stat.st_ctime
        return MediaRecord(
            kind=kind,
            source_path=source,
            fs_created_at=_timestamp(created),
            fs_modified_at=_timestamp(stat.st_mtime),
            size_bytes=stat.st_size,
            fingerprint=fingerprint,
            metadata=metadata,
        )

    # ------------------------------------------------------------------
    # Directory walk
    # ------------------------------------------------------------------
    def discover(self, root: Path) -> Iterator[Path]:
        """Yield media files under *root* in a stable, sorted order."""

        root = Path(root).resolve()
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(name for name in dirnames if name != WORK_DIR_NAME)
            for name in sorted(filenames):
                candidate = Path(dirpath) / name
                if media_kind_for(candidate) is None:
                    continue
                if not should_include(candidate, self._include_globs, self._exclude_globs, root=root):
                    continue
                yield candidate

    def scan_tree(self, root: Path) -> Iterator[ScanResult]:
        """Lazily scan every media file below *root*.

        Each call starts a new walk.  ExifTool, when enabled, is queried once
        per batch of ``batch_size`` files rather than once per file.
        """

        root = Path(root)
        if not root.is_dir():
            raise ScanError(ScanErrorKind.IO_ERROR, root, f"Not a directory: {root}")

        batch: List[Path] = []
        for candidate in self.discover(root):
            batch.append(candidate)
            if len(batch) >= self._batch_size:
                yield from self._scan_batch(batch)
                batch = []
        if batch:
            yield from self._scan_batch(batch)

    def _scan_batch(self, batch: List[Path]) -> Iterator[ScanResult]:
        lookup: Dict[Path, Dict[str, Any]] = {}
        if self.exiftool_enabled:
            lookup = self._query_exiftool(batch)

        for path in batch:
            try:
                record = self.scan_one(path, lookup.get(path, {}))
            except ScanError as exc:
                LOGGER.warning("Could not scan %s: %s", path, exc)
                yield ScanResult(path=path, error=exc)
                continue
            yield ScanResult(path=path, record=record)

    @staticmethod
    def _query_exiftool(paths: List[Path]) -> Dict[Path, Dict[str, Any]]:
        try:
            payloads = exiftool.get_metadata_batch(paths)
        except ExternalToolError as exc:
            LOGGER.warning("Batch ExifTool query failed for %s files: %s", len(paths), exc)
            return {}

        lookup: Dict[Path, Dict[str, Any]] = {}
        for payload in payloads:
            source = payload.get("SourceFile")
            if isinstance(source, str):
                lookup[Path(source).resolve()] = payload
        return lookup


__all__ = ["ScanResult", "Scanner", "media_kind_for"]
