"""Background worker that renders missing previews."""

from __future__ import annotations

import threading
from enum import Enum
from typing import Callable, Optional

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal

from ...application.use_cases.generate_previews import GeneratePreviewsUseCase
from ...errors import StorageError
from ...utils.logging import get_logger

LOGGER = get_logger(__name__)


class GeneratePreviewsSignals(QObject):
    """Signals emitted by :class:`GeneratePreviewsWorker`."""

    finished = Signal(object)
    failed = Signal(str)


class GeneratePreviewsWorker(QRunnable):
    """Run the preview use case on a pool thread.

    ``rerun`` is asked after every run whether another one was requested in
    the meantime; the worker keeps going while it answers ``True``.
    """

    def __init__(
        self,
        use_case: GeneratePreviewsUseCase,
        signals: GeneratePreviewsSignals,
        rerun: Optional[Callable[[], bool]] = None,
    ) -> None:
        super().__init__()
        self.setAutoDelete(False)
        self._use_case = use_case
        self._signals = signals
        self._rerun = rerun

    @property
    def signals(self) -> GeneratePreviewsSignals:
        return self._signals

    def run(self) -> None:
        while True:
            try:
                response = self._use_case.execute()
            except StorageError as exc:
                LOGGER.error("Preview run aborted, catalog unreadable: %s", exc)
                self._signals.failed.emit(str(exc))
            except Exception as exc:  # pragma: no cover - best-effort error propagation
                LOGGER.exception("Preview run crashed")
                self._signals.failed.emit(str(exc))
            else:
                self._signals.finished.emit(response)

            if self._rerun is None or not self._rerun():
                break


class PipelineState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class GeneratePreviews(QObject):
    """Idle/running controller around :class:`GeneratePreviewsWorker`.

    ``generate()`` starts a run on the thread pool.  A trigger that arrives
    while a run is in flight is coalesced: exactly one follow-up run happens
    after the current one, however many triggers arrived.
    """

    previewsGenerated = Signal(object)
    failed = Signal(str)

    def __init__(
        self,
        use_case: GeneratePreviewsUseCase,
        thread_pool: Optional[QThreadPool] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._use_case = use_case
        self._pool = thread_pool or QThreadPool.globalInstance()
        self._lock = threading.Lock()
        self._state = PipelineState.IDLE
        self._pending = False
        self._idle = threading.Event()
        self._idle.set()
        self._worker: Optional[GeneratePreviewsWorker] = None

        self._signals = GeneratePreviewsSignals()
        self._signals.finished.connect(self.previewsGenerated)
        self._signals.failed.connect(self.failed)

    @property
    def state(self) -> PipelineState:
        with self._lock:
            return self._state

    def generate(self) -> bool:
        """Request a run; return ``False`` when it was folded into a pending one."""

        with self._lock:
            if self._state == PipelineState.RUNNING:
                if not self._pending:
                    LOGGER.debug("Preview run in progress; queueing one follow-up run")
                self._pending = True
                return False
            self._state = PipelineState.RUNNING
            self._idle.clear()

        self._worker = GeneratePreviewsWorker(self._use_case, self._signals, self._take_pending)
        self._pool.start(self._worker)
        return True

    def wait_for_done(self, timeout: Optional[float] = None) -> bool:
        """Block until the controller is idle again; ``False`` on timeout."""

        return self._idle.wait(timeout)

    def _take_pending(self) -> bool:
        with self._lock:
            if self._pending:
                self._pending = False
                return True
            self._state = PipelineState.IDLE
            self._idle.set()
            return False


__all__ = [
    "GeneratePreviews",
    "GeneratePreviewsSignals",
    "GeneratePreviewsWorker",
    "PipelineState",
]
