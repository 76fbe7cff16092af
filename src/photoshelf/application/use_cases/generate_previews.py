import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from .base import UseCase, UseCaseRequest, UseCaseResponse
from photoshelf.application.interfaces import IPreviewer, IProgressSink
from photoshelf.core.progress import Advance, Complete, Idle, Start, TaskName
from photoshelf.domain.models import MediaKind, MediaRecord
from photoshelf.domain.repositories import IMediaRepository
from photoshelf.errors import PreviewError, StorageError
from photoshelf.errors.handler import ErrorHandler, ErrorSeverity
from photoshelf.events.bus import EventBus
from photoshelf.events.pipeline_events import PreviewReadyEvent, PreviewsGeneratedEvent

# Photos first: they are the bulk of a library and the cheapest to render.
_KIND_ORDER = (MediaKind.PHOTO, MediaKind.VIDEO)


@dataclass(frozen=True)
class PreviewOutcome:
    media_id: int
    source_path: Path
    preview_path: Optional[Path] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class GeneratePreviewsRequest(UseCaseRequest):
    pass


@dataclass(frozen=True)
class GeneratePreviewsResponse(UseCaseResponse):
    attempted: int = 0
    generated: int = 0
    outcomes: Tuple[PreviewOutcome, ...] = ()


class GeneratePreviewsUseCase(UseCase):
    """Render a preview for every catalog record that lacks one.

    Reading the catalog is the only step allowed to fail the whole run; a
    ``StorageError`` from ``all()`` propagates to the caller.  Everything
    after that is per item: a record whose preview cannot be rendered or
    stored is reported through the error handler and the batch moves on.
    """

    def __init__(
        self,
        repository: IMediaRepository,
        previewer: IPreviewer,
        progress: IProgressSink,
        event_bus: EventBus,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self._repo = repository
        self._previewer = previewer
        self._progress = progress
        self._events = event_bus
        self._logger = logging.getLogger(__name__)
        self._errors = error_handler or ErrorHandler(self._logger, event_bus)

    def execute(
        self, request: GeneratePreviewsRequest = GeneratePreviewsRequest()
    ) -> GeneratePreviewsResponse:
        records = self._repo.all()
        pending = [record for record in records if record.square_preview_path is None]
        self._logger.info(
            "Generating previews for %d of %d records", len(pending), len(records)
        )

        outcomes: List[PreviewOutcome] = []
        try:
            for kind in _KIND_ORDER:
                batch = [record for record in pending if record.kind == kind]
                if not batch:
                    continue
                self._progress.reduce(Start(TaskName.thumbnail(kind), len(batch)))
                for record in batch:
                    outcomes.append(self._generate_one(record))
                    self._progress.reduce(Advance())
                self._progress.reduce(Complete())
        finally:
            self._progress.reduce(Idle())

        generated = sum(1 for outcome in outcomes if outcome.ok)
        response = GeneratePreviewsResponse(
            attempted=len(outcomes),
            generated=generated,
            failed=len(outcomes) - generated,
            outcomes=tuple(outcomes),
        )
        self._logger.info(
            "Preview run finished: %d generated, %d failed",
            response.generated,
            response.failed,
        )
        self._events.publish(PreviewsGeneratedEvent(
            attempted=response.attempted,
            generated=response.generated,
            failed=response.failed,
        ))
        return response

    def _generate_one(self, record: MediaRecord) -> PreviewOutcome:
        try:
            self._previewer.set_preview(record)
        except PreviewError as exc:
            self._errors.handle(
                exc,
                ErrorSeverity.WARNING,
                {"media_id": record.id, "kind": exc.kind.value},
            )
            return PreviewOutcome(record.id, record.source_path, error=str(exc))

        try:
            self._repo.add_preview(record)
        except StorageError as exc:
            self._errors.handle(exc, ErrorSeverity.ERROR, {"media_id": record.id})
            return PreviewOutcome(record.id, record.source_path, error=str(exc))

        self._events.publish(PreviewReadyEvent(
            media_id=record.id,
            preview_path=str(record.square_preview_path),
        ))
        return PreviewOutcome(record.id, record.source_path, record.square_preview_path)
