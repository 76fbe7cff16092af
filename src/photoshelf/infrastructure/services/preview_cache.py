"""Disk-based preview cache with MD5 hash bucketing."""

from __future__ import annotations

import hashlib
import os
import tempfile
from pathlib import Path


class PreviewCache:
    """Square preview files addressed by media id.

    Layout: ``<root>/<bucket>/<id>.jpg`` where ``bucket`` is the first two
    hex digits of the MD5 of the id, keeping directories small.
    """

    def __init__(self, root: Path):
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, media_id: int) -> Path:
        # MD5 only spreads files across buckets; it is not a security measure.
        bucket = hashlib.md5(str(media_id).encode()).hexdigest()[:2]  # noqa: S324
        return self._root / bucket / f"{media_id}.jpg"

    def put(self, media_id: int, data: bytes) -> Path:
        """Store *data* for *media_id*, replacing any previous preview atomically."""

        path = self.path_for(media_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{media_id}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return path
