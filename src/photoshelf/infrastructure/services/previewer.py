"""Square preview rendering for photos and videos."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError
from pillow_heif import register_heif_opener

from photoshelf.application.interfaces import IPreviewer
from photoshelf.config import PREVIEW_EDGE, PREVIEW_JPEG_QUALITY, VIDEO_PREVIEW_SEEK_SEC
from photoshelf.domain.models import MediaKind, MediaRecord, PictureMetadata
from photoshelf.errors import ExternalToolError, PreviewError, PreviewErrorKind
from photoshelf.infrastructure.services.preview_cache import PreviewCache
from photoshelf.utils.ffmpeg import extract_video_frame

register_heif_opener()

LOGGER = logging.getLogger(__name__)


class Previewer(IPreviewer):
    """
    Renders square JPEG previews using Pillow for images and FFmpeg for videos.
    """

    def __init__(
        self,
        cache: PreviewCache,
        edge: int = PREVIEW_EDGE,
        quality: int = PREVIEW_JPEG_QUALITY,
        video_seek: Optional[float] = VIDEO_PREVIEW_SEEK_SEC,
    ):
        self._cache = cache
        self._edge = edge
        self._quality = quality
        self._video_seek = video_seek

    @property
    def cache(self) -> PreviewCache:
        return self._cache

    def set_preview(self, record: MediaRecord) -> None:
        """
        Render the preview of ``record`` and point ``square_preview_path`` at it.
        The record is left untouched when a PreviewError is raised.
        """
        if record.id is None:
            raise ValueError(f"Record for {record.source_path} has no id yet")

        image, original_size = self._load(record)
        try:
            square = ImageOps.fit(
                image, (self._edge, self._edge), Image.Resampling.LANCZOS
            )
            buffer = io.BytesIO()
            square.save(buffer, "JPEG", quality=self._quality)
        finally:
            image.close()

        try:
            path = self._cache.put(record.id, buffer.getvalue())
        except OSError as e:
            raise PreviewError(
                PreviewErrorKind.CACHE_WRITE_FAILED,
                record.source_path,
                f"Cannot write preview for {record.source_path}: {e}",
            ) from e

        if isinstance(record.metadata, PictureMetadata) and record.metadata.width is None:
            record.metadata.width, record.metadata.height = original_size
        record.square_preview_path = path
        LOGGER.debug("Preview for id=%s written to %s", record.id, path)

    def _load(self, record: MediaRecord) -> Tuple[Image.Image, Tuple[int, int]]:
        if record.kind == MediaKind.VIDEO:
            return self._load_video_frame(record.source_path)
        return self._load_image(record.source_path)

    def _load_image(self, path: Path) -> Tuple[Image.Image, Tuple[int, int]]:
        try:
            with Image.open(path) as img:
                original_size = img.size
                # Honour the camera orientation before cropping to a square
                oriented = ImageOps.exif_transpose(img)
                return oriented.convert("RGB"), original_size
        except UnidentifiedImageError as e:
            raise PreviewError(
                PreviewErrorKind.DECODE_FAILED, path, f"Cannot identify image {path}"
            ) from e
        except (FileNotFoundError, PermissionError, IsADirectoryError) as e:
            raise PreviewError(
                PreviewErrorKind.SOURCE_UNREADABLE, path, f"Cannot open {path}: {e}"
            ) from e
        except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
            raise PreviewError(
                PreviewErrorKind.DECODE_FAILED, path, f"Cannot decode {path}: {e}"
            ) from e

    def _load_video_frame(self, path: Path) -> Tuple[Image.Image, Tuple[int, int]]:
        if not path.is_file():
            raise PreviewError(
                PreviewErrorKind.SOURCE_UNREADABLE, path, f"Video {path} does not exist"
            )
        bound = self._edge * 2
        try:
            data = extract_video_frame(path, at=self._video_seek, scale=(bound, bound))
        except (ExternalToolError, OSError) as e:
            raise PreviewError(PreviewErrorKind.DECODE_FAILED, path, str(e)) from e

        try:
            with Image.open(io.BytesIO(data)) as img:
                return img.convert("RGB"), img.size
        except (OSError, SyntaxError, ValueError) as e:
            raise PreviewError(
                PreviewErrorKind.DECODE_FAILED, path, f"Unreadable frame from {path}: {e}"
            ) from e
