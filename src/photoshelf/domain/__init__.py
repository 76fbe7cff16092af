from .models import (
    MediaKind,
    MediaMetadata,
    MediaRecord,
    PictureMetadata,
    VideoMetadata,
    VisualItem,
    VisualKind,
)
from .repositories import IMediaRepository

__all__ = [
    "IMediaRepository",
    "MediaKind",
    "MediaMetadata",
    "MediaRecord",
    "PictureMetadata",
    "VideoMetadata",
    "VisualItem",
    "VisualKind",
]
