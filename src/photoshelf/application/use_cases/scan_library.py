import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from .base import UseCase, UseCaseRequest, UseCaseResponse
from photoshelf.domain.repositories import IMediaRepository
from photoshelf.errors import StorageError
from photoshelf.errors.handler import ErrorHandler, ErrorSeverity
from photoshelf.events.bus import EventBus
from photoshelf.events.pipeline_events import LibraryScannedEvent
from photoshelf.io.scanner import Scanner


@dataclass(frozen=True)
class ScanLibraryRequest(UseCaseRequest):
    root: Path = Path(".")
    prune_missing: bool = True


@dataclass(frozen=True)
class ScanLibraryResponse(UseCaseResponse):
    scanned: int = 0
    upserted: int = 0
    removed: int = 0
    failures: Tuple[Tuple[Path, str], ...] = ()


class ScanLibraryUseCase(UseCase):
    """Walk a library root and bring the catalog in line with the disk.

    Each file is upserted on its own, so the repository lock is never held
    across the walk.  Records whose source file disappeared are removed
    together with their cached preview.
    """

    def __init__(
        self,
        repository: IMediaRepository,
        scanner: Scanner,
        event_bus: EventBus,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self._repo = repository
        self._scanner = scanner
        self._events = event_bus
        self._logger = logging.getLogger(__name__)
        self._errors = error_handler or ErrorHandler(self._logger, event_bus)

    def execute(self, request: ScanLibraryRequest) -> ScanLibraryResponse:
        root = Path(request.root).resolve()
        self._logger.info("Scanning library %s", root)

        scanned = upserted = 0
        failures = []
        for result in self._scanner.scan_tree(root):
            scanned += 1
            if result.error is not None:
                failures.append((result.path, str(result.error)))
                continue
            try:
                self._repo.upsert(result.record)
            except StorageError as exc:
                self._errors.handle(exc, ErrorSeverity.ERROR, {"path": result.path})
                failures.append((result.path, str(exc)))
                continue
            upserted += 1

        removed = self._prune(root) if request.prune_missing else 0

        self._logger.info(
            "Scan of %s finished: %d stored, %d failed, %d removed",
            root, upserted, len(failures), removed,
        )
        self._events.publish(LibraryScannedEvent(
            root=str(root),
            upserted_count=upserted,
            failed_count=len(failures),
            removed_count=removed,
        ))
        return ScanLibraryResponse(
            scanned=scanned,
            upserted=upserted,
            failed=len(failures),
            removed=removed,
            failures=tuple(failures),
        )

    def _prune(self, root: Path) -> int:
        removed = 0
        for record in self._repo.all():
            if not record.source_path.is_relative_to(root) or record.source_path.exists():
                continue
            self._repo.delete(record.id)
            if record.square_preview_path is not None:
                record.square_preview_path.unlink(missing_ok=True)
            self._logger.debug("Removed missing %s (id=%s)", record.source_path, record.id)
            removed += 1
        return removed
