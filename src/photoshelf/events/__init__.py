from .bus import Event, EventBus, Subscription
from .pipeline_events import (
    LibraryScannedEvent,
    PreviewReadyEvent,
    PreviewsGeneratedEvent,
)

__all__ = [
    "Event",
    "EventBus",
    "LibraryScannedEvent",
    "PreviewReadyEvent",
    "PreviewsGeneratedEvent",
    "Subscription",
]
