from dataclasses import dataclass

from .bus import Event


@dataclass(kw_only=True)
class PreviewReadyEvent(Event):
    media_id: int
    preview_path: str


@dataclass(kw_only=True)
class PreviewsGeneratedEvent(Event):
    attempted: int = 0
    generated: int = 0
    failed: int = 0


@dataclass(kw_only=True)
class LibraryScannedEvent(Event):
    root: str
    upserted_count: int = 0
    failed_count: int = 0
    removed_count: int = 0
