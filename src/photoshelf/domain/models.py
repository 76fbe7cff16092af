from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from photoshelf.errors import InvalidVisualItemError


class MediaKind(str, Enum):
    PHOTO = "photo"
    VIDEO = "video"


@dataclass
class PictureMetadata:
    width: Optional[int] = None
    height: Optional[int] = None
    format_name: Optional[str] = None
    # EXIF DateTimeOriginal / DateTime, always timezone-aware when present
    exif_created_at: Optional[datetime] = None
    exif_modified_at: Optional[datetime] = None
    make: Optional[str] = None
    model: Optional[str] = None
    content_id: Optional[str] = None


@dataclass
class VideoMetadata:
    container_format: Optional[str] = None
    duration: Optional[float] = None
    created_at: Optional[datetime] = None
    width: Optional[int] = None
    height: Optional[int] = None
    codec: Optional[str] = None
    content_id: Optional[str] = None


MediaMetadata = Union[PictureMetadata, VideoMetadata]


@dataclass
class MediaRecord:
    """One catalog entry for a discovered photo or video file.

    ``id`` stays ``None`` until the repository stores the record for the
    first time.  ``square_preview_path`` is only set once a preview has been
    rendered from the current content of ``source_path``.
    """

    kind: MediaKind
    source_path: Path
    id: Optional[int] = None
    square_preview_path: Optional[Path] = None
    fs_created_at: Optional[datetime] = None
    fs_modified_at: Optional[datetime] = None
    size_bytes: int = 0
    fingerprint: Optional[str] = None
    metadata: MediaMetadata = field(default_factory=PictureMetadata)

    def __post_init__(self) -> None:
        self.source_path = Path(self.source_path)
        if self.square_preview_path is not None:
            self.square_preview_path = Path(self.square_preview_path)
        if self.kind == MediaKind.VIDEO and isinstance(self.metadata, PictureMetadata):
            self.metadata = VideoMetadata()

    @property
    def parent_path(self) -> Path:
        return self.source_path.parent

    @property
    def has_preview(self) -> bool:
        return self.square_preview_path is not None

    @property
    def is_video(self) -> bool:
        return self.kind == MediaKind.VIDEO

    @property
    def content_id(self) -> Optional[str]:
        return self.metadata.content_id

    @property
    def captured_at(self) -> Optional[datetime]:
        """Best known capture instant: embedded metadata first, then the file."""

        if isinstance(self.metadata, PictureMetadata):
            embedded = self.metadata.exif_created_at
        else:
            embedded = self.metadata.created_at
        return embedded or self.fs_created_at or self.fs_modified_at


class VisualKind(str, Enum):
    PICTURE = "picture"
    VIDEO = "video"
    PICTURE_WITH_VIDEO = "picture_with_video"


@dataclass(frozen=True)
class VisualItem:
    """A photo, a video, or a Live Photo pair sharing one logical moment.

    This is a read-side projection built by :class:`photoshelf.library.Library`
    from one or two media records; it is never persisted.
    """

    visual_id: str
    kind: VisualKind
    parent_path: Path
    picture_id: Optional[int] = None
    picture_path: Optional[Path] = None
    video_id: Optional[int] = None
    video_path: Optional[Path] = None

    def __post_init__(self) -> None:
        has_picture = self.picture_id is not None
        has_video = self.video_id is not None
        if not has_picture and not has_video:
            raise InvalidVisualItemError("A visual item needs a picture or a video")

        expected = {
            (True, False): VisualKind.PICTURE,
            (False, True): VisualKind.VIDEO,
            (True, True): VisualKind.PICTURE_WITH_VIDEO,
        }[(has_picture, has_video)]
        if self.kind != expected:
            raise InvalidVisualItemError(
                f"Visual item {self.visual_id} declared as {self.kind.value} "
                f"but carries identities for {expected.value}"
            )
        if has_picture and self.picture_path is None:
            raise InvalidVisualItemError(f"Visual item {self.visual_id} lacks a picture path")
        if has_video and self.video_path is None:
            raise InvalidVisualItemError(f"Visual item {self.visual_id} lacks a video path")

    @classmethod
    def picture(cls, record: MediaRecord) -> VisualItem:
        return cls(
            visual_id=f"p{record.id}",
            kind=VisualKind.PICTURE,
            parent_path=record.parent_path,
            picture_id=record.id,
            picture_path=record.source_path,
        )

    @classmethod
    def video(cls, record: MediaRecord) -> VisualItem:
        return cls(
            visual_id=f"v{record.id}",
            kind=VisualKind.VIDEO,
            parent_path=record.parent_path,
            video_id=record.id,
            video_path=record.source_path,
        )

    @classmethod
    def live(cls, still: MediaRecord, motion: MediaRecord) -> VisualItem:
        return cls(
            visual_id=f"p{still.id}",
            kind=VisualKind.PICTURE_WITH_VIDEO,
            parent_path=still.parent_path,
            picture_id=still.id,
            picture_path=still.source_path,
            video_id=motion.id,
            video_path=motion.source_path,
        )

    @property
    def path(self) -> Path:
        """The picture path when there is one, otherwise the video path."""

        return self.picture_path if self.picture_path is not None else self.video_path  # type: ignore[return-value]

    @property
    def is_live(self) -> bool:
        return self.kind == VisualKind.PICTURE_WITH_VIDEO
