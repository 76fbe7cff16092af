from abc import ABC, abstractmethod

from photoshelf.core.progress import ProgressMessage
from photoshelf.domain.models import MediaRecord


class IPreviewer(ABC):
    """Interface for rendering cached preview images."""

    @abstractmethod
    def set_preview(self, record: MediaRecord) -> None:
        """
        Render a preview for ``record`` and set its ``square_preview_path``.
        Raises PreviewError and leaves the record untouched on failure.
        """
        pass


class IProgressSink(ABC):
    """Receiver of progress messages from a long running task."""

    @abstractmethod
    def reduce(self, message: ProgressMessage) -> bool:
        """Apply ``message``; return True when the observable state changed."""
        pass
