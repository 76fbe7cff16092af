"""Application-wide context wiring the pipeline together."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .application.use_cases.generate_previews import (
    GeneratePreviewsResponse,
    GeneratePreviewsUseCase,
)
from .application.use_cases.scan_library import (
    ScanLibraryRequest,
    ScanLibraryResponse,
    ScanLibraryUseCase,
)
from .config import DATABASE_NAME, DB_POOL_SIZE, DB_TIMEOUT_SEC, PREVIEW_DIR_NAME, WORK_DIR_NAME
from .errors import LibraryUnavailableError
from .errors.handler import ErrorHandler
from .events.bus import EventBus
from .infrastructure.db.pool import ConnectionPool
from .infrastructure.repositories.sqlite_media_repository import SQLiteMediaRepository
from .infrastructure.services.preview_cache import PreviewCache
from .infrastructure.services.previewer import Previewer
from .io.scanner import Scanner
from .library.library import Library
from .library.progress_monitor import ProgressMonitor
from .library.workers.preview_worker import GeneratePreviews
from .settings.manager import SettingsManager
from .utils.logging import get_logger

LOGGER = get_logger(__name__)


def _resolve_root(root: Optional[Path], settings: SettingsManager) -> Path:
    if root is None:
        configured = settings.get("library_path")
        if not configured:
            raise LibraryUnavailableError(
                "No library path given and none configured in the settings"
            )
        root = Path(configured)
    root = Path(root).expanduser()
    if not root.is_dir():
        raise LibraryUnavailableError(f"Library path is unavailable: {root}")
    return root.resolve()


@dataclass
class AppContext:
    """Container of the collaborators shared by the CLI and a GUI shell.

    Build it with :meth:`create`; the dataclass fields are the wired
    components so callers can reach any of them directly.
    """

    root: Path
    settings: SettingsManager
    event_bus: EventBus
    error_handler: ErrorHandler
    pool: ConnectionPool
    repository: SQLiteMediaRepository
    scanner: Scanner
    previewer: Previewer
    progress: ProgressMonitor
    library: Library
    scan_use_case: ScanLibraryUseCase = field(init=False)
    previews_use_case: GeneratePreviewsUseCase = field(init=False)
    generate_previews: GeneratePreviews = field(init=False)

    def __post_init__(self) -> None:
        self.scan_use_case = ScanLibraryUseCase(
            self.repository, self.scanner, self.event_bus, self.error_handler
        )
        self.previews_use_case = GeneratePreviewsUseCase(
            self.repository, self.previewer, self.progress, self.event_bus, self.error_handler
        )
        self.generate_previews = GeneratePreviews(self.previews_use_case)

    @classmethod
    def create(
        cls,
        root: Optional[Path] = None,
        settings: Optional[SettingsManager] = None,
    ) -> "AppContext":
        """Wire every component for the library at *root*.

        *root* falls back to the ``library_path`` setting.  The catalog lives
        in ``<root>/.photoshelf``; previews go to the ``cache_dir`` setting
        when set, otherwise next to the catalog.
        """

        if settings is None:
            settings = SettingsManager()
            settings.load()
        root = _resolve_root(root, settings)

        work_dir = root / WORK_DIR_NAME
        cache_setting = settings.get("cache_dir")
        cache_dir = Path(cache_setting).expanduser() if cache_setting else work_dir

        event_bus = EventBus(logger=get_logger("events"))
        error_handler = ErrorHandler(get_logger("errors"), event_bus)
        pool = ConnectionPool(work_dir / DATABASE_NAME, pool_size=DB_POOL_SIZE, timeout=DB_TIMEOUT_SEC)
        repository = SQLiteMediaRepository(pool)
        scanner = Scanner(
            settings.get("scanner.include"),
            settings.get("scanner.exclude"),
            use_exiftool=bool(settings.get("scanner.use_exiftool", True)),
            batch_size=int(settings.get("scanner.batch_size")),
        )
        previewer = Previewer(
            PreviewCache(cache_dir / PREVIEW_DIR_NAME),
            edge=int(settings.get("preview.size")),
            quality=int(settings.get("preview.jpeg_quality")),
            video_seek=settings.get("preview.video_seek"),
        )
        LOGGER.debug("Library %s wired, previews in %s", root, previewer.cache.root)
        return cls(
            root=root,
            settings=settings,
            event_bus=event_bus,
            error_handler=error_handler,
            pool=pool,
            repository=repository,
            scanner=scanner,
            previewer=previewer,
            progress=ProgressMonitor(),
            library=Library(repository),
        )

    def scan(self, prune_missing: bool = True) -> ScanLibraryResponse:
        """Scan the library root synchronously and refresh the library index."""

        response = self.scan_use_case.execute(
            ScanLibraryRequest(root=self.root, prune_missing=prune_missing)
        )
        self.library.refresh()
        return response

    def render_previews(self) -> GeneratePreviewsResponse:
        """Render missing previews on the calling thread."""

        return self.previews_use_case.execute()

    def close(self) -> None:
        self.generate_previews.wait_for_done()
        self.event_bus.shutdown()
        self.pool.close_all()


__all__ = ["AppContext"]
