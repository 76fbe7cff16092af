"""Default configuration values for photoshelf."""

from __future__ import annotations

from typing import Final

# Name of the hidden directory created under the library root that holds the
# catalog database and the preview cache.  The scanner never descends into it.
WORK_DIR_NAME: Final[str] = ".photoshelf"
DATABASE_NAME: Final[str] = "catalog.db"
PREVIEW_DIR_NAME: Final[str] = "previews"

# The scanner filters on its own extension lists, so the include globs accept
# everything and the exclude globs only hide bookkeeping files.
DEFAULT_INCLUDE: Final[list[str]] = ["**/*"]
DEFAULT_EXCLUDE: Final[list[str]] = [
    f"**/{WORK_DIR_NAME}/**",
    "**/.DS_Store",
    "**/._*",
    "**/.Trash/**",
]

IMAGE_EXTENSIONS: Final[frozenset[str]] = frozenset({
    ".jpg",
    ".jpeg",
    ".png",
    ".tif",
    ".tiff",
    ".webp",
    ".heic",
    ".heif",
})

VIDEO_EXTENSIONS: Final[frozenset[str]] = frozenset({
    ".mov",
    ".mp4",
    ".m4v",
    ".qt",
    ".avi",
    ".mkv",
    ".webm",
})

# Extensions treated as the motion half of a Live Photo.
LIVE_MOTION_EXTENSIONS: Final[frozenset[str]] = frozenset({".mov", ".qt"})

# Edge length in pixels of the square preview written to the cache.
PREVIEW_EDGE: Final[int] = 360
PREVIEW_JPEG_QUALITY: Final[int] = 85

# Offset, in seconds, used when grabbing a representative frame from a video.
# Many clips start on a black frame, so sampling slightly later looks better.
VIDEO_PREVIEW_SEEK_SEC: Final[float] = 1.0

SCAN_BATCH_SIZE: Final[int] = 50

PAIR_TIME_DELTA_SEC: Final[float] = 3.0
LIVE_DURATION_PREFERRED: Final[tuple[float, float]] = (1.0, 3.5)

DB_POOL_SIZE: Final[int] = 4
DB_TIMEOUT_SEC: Final[float] = 30.0
