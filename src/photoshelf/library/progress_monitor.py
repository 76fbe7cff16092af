"""Observable progress of the task currently running in the background."""

from __future__ import annotations

import threading

from PySide6.QtCore import QObject, Signal

from ..core.progress import ProgressMessage, ProgressState, reduce
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)


class ProgressMonitor(QObject):
    """Thread-safe holder of one :class:`ProgressState`.

    Workers feed it ``Start``/``Advance``/``Complete``/``Idle`` messages
    through :meth:`reduce`; ``progressChanged`` fires only when the state
    actually moved, so a flood of redundant advances costs observers nothing.
    """

    progressChanged = Signal(object)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._lock = threading.Lock()
        self._state = ProgressState.idle()

    @property
    def state(self) -> ProgressState:
        with self._lock:
            return self._state

    def fraction(self) -> float:
        return self.state.fraction()

    def reduce(self, message: ProgressMessage) -> bool:
        """Apply *message* and notify observers if the state changed."""

        with self._lock:
            state, changed = reduce(self._state, message)
            self._state = state
        if changed:
            LOGGER.debug(
                "Progress %s %d/%d", state.task_name.value, state.current_count, state.end_count
            )
            self.progressChanged.emit(state)
        return changed


__all__ = ["ProgressMonitor"]
