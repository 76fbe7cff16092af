"""Content fingerprints used to detect stale previews."""

from __future__ import annotations

import os
from pathlib import Path

import xxhash

# Files up to this size are hashed in full; larger ones are sampled.
_FULL_HASH_LIMIT = 2 * 1024 * 1024
_SAMPLE_SIZE = 256 * 1024


def compute_file_id(path: Path) -> str:
    """Return an XXH3-128 fingerprint of *path*.

    Small files are hashed completely.  For large files the size plus the
    head, middle and tail samples are hashed, which is enough to notice an
    edited or replaced file without reading gigabytes of video.
    """

    hasher = xxhash.xxh3_128()
    with path.open("rb") as handle:
        # fstat on the open handle so size and content come from the same file
        file_size = os.fstat(handle.fileno()).st_size

        if file_size <= _FULL_HASH_LIMIT:
            for chunk in iter(lambda: handle.read(1024 * 1024), b""):
                hasher.update(chunk)
            return hasher.hexdigest()

        hasher.update(file_size.to_bytes(8, "little"))
        hasher.update(handle.read(_SAMPLE_SIZE))

        if file_size > _SAMPLE_SIZE * 2:
            handle.seek(file_size // 2 - _SAMPLE_SIZE // 2)
            hasher.update(handle.read(_SAMPLE_SIZE))

        handle.seek(max(0, file_size - _SAMPLE_SIZE))
        hasher.update(handle.read(_SAMPLE_SIZE))

    return hasher.hexdigest()


__all__ = ["compute_file_id"]
