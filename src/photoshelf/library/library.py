"""Read-side index of visual items built from the catalog."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from ..core.pairing import pair_live
from ..domain.models import MediaKind, MediaRecord, PictureMetadata, VideoMetadata, VisualItem
from ..domain.repositories import IMediaRepository
from ..errors import MediaNotFoundError
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)


class Library:
    """Visual items keyed by visual id.

    Live Photo halves collapse into a single ``PICTURE_WITH_VIDEO`` item; the
    motion clip of such a pair is not listed on its own.
    """

    def __init__(self, repository: IMediaRepository) -> None:
        self._repo = repository
        self._lock = threading.RLock()
        self._items: Dict[str, VisualItem] = {}
        self._records: Dict[int, MediaRecord] = {}

    def refresh(self) -> int:
        """Rebuild the index from the repository and return the item count."""

        records = self._repo.all()
        pairs = {pair.still.id: pair.motion for pair in pair_live(records)}
        paired_videos = {motion.id for motion in pairs.values()}

        items: Dict[str, VisualItem] = {}
        for record in records:
            if record.kind == MediaKind.PHOTO:
                motion = pairs.get(record.id)
                item = VisualItem.live(record, motion) if motion else VisualItem.picture(record)
            elif record.id in paired_videos:
                continue
            else:
                item = VisualItem.video(record)
            items[item.visual_id] = item

        with self._lock:
            self._items = items
            self._records = {record.id: record for record in records}
        LOGGER.debug("Library holds %d items (%d live)", len(items), len(pairs))
        return len(items)

    def items(self) -> List[VisualItem]:
        with self._lock:
            return list(self._items.values())

    def get(self, visual_id: str) -> Optional[VisualItem]:
        with self._lock:
            return self._items.get(visual_id)

    def record(self, media_id: Optional[int]) -> Optional[MediaRecord]:
        if media_id is None:
            return None
        with self._lock:
            return self._records.get(media_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


@dataclass(frozen=True)
class VisualDetails:
    """Raw property values of one visual item, unformatted."""

    visual_id: str
    path: Path
    folder_name: str
    fs_created_at: Optional[datetime] = None
    fs_modified_at: Optional[datetime] = None
    image_width: Optional[int] = None
    image_height: Optional[int] = None
    image_format: Optional[str] = None
    image_file_size: Optional[int] = None
    exif_created_at: Optional[datetime] = None
    exif_modified_at: Optional[datetime] = None
    video_duration: Optional[float] = None
    video_container_format: Optional[str] = None
    video_file_size: Optional[int] = None
    video_created_at: Optional[datetime] = None


def _file_times(path: Path, fallback: Optional[MediaRecord]):
    """Filesystem created/modified instants, read fresh from disk when possible."""

    try:
        stat = path.stat()
    except OSError as exc:
        LOGGER.debug("Cannot stat %s: %s", path, exc)
        if fallback is None:
            return None, None
        return fallback.fs_created_at, fallback.fs_modified_at
    created = getattr(stat, "st_birthtime", None) or stat.st_ctime
    return (
        datetime.fromtimestamp(created, tz=timezone.utc),
        datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
    )


def describe(item: VisualItem, library: Library) -> VisualDetails:
    """Collect the property values of *item* for display by a consumer.

    Raises
    ------
    MediaNotFoundError
        When the library no longer knows a record the item refers to.
    """

    picture = library.record(item.picture_id)
    video = library.record(item.video_id)
    if item.picture_id is not None and picture is None:
        raise MediaNotFoundError(f"Picture {item.picture_id} of {item.visual_id} is not in the library")
    if item.video_id is not None and video is None:
        raise MediaNotFoundError(f"Video {item.video_id} of {item.visual_id} is not in the library")

    primary = picture or video
    fs_created_at, fs_modified_at = _file_times(item.path, primary)
    values = dict(
        visual_id=item.visual_id,
        path=item.path,
        folder_name=item.parent_path.name,
        fs_created_at=fs_created_at,
        fs_modified_at=fs_modified_at,
    )

    if picture is not None and isinstance(picture.metadata, PictureMetadata):
        meta = picture.metadata
        values.update(
            image_width=meta.width,
            image_height=meta.height,
            image_format=meta.format_name,
            image_file_size=picture.size_bytes,
            exif_created_at=meta.exif_created_at,
            exif_modified_at=meta.exif_modified_at,
        )
    if video is not None and isinstance(video.metadata, VideoMetadata):
        meta = video.metadata
        values.update(
            video_duration=meta.duration,
            video_container_format=meta.container_format,
            video_file_size=video.size_bytes,
            video_created_at=meta.created_at,
        )
    return VisualDetails(**values)


__all__ = ["Library", "VisualDetails", "describe"]
