from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from photoshelf.core.pairing import pair_live
from photoshelf.domain.models import MediaKind, MediaRecord, PictureMetadata, VideoMetadata

_T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def _photo(path: str, id: int, cid: Optional[str] = None, at: datetime = _T0) -> MediaRecord:
    return MediaRecord(
        kind=MediaKind.PHOTO,
        source_path=Path(path),
        id=id,
        metadata=PictureMetadata(exif_created_at=at, content_id=cid),
    )


def _video(
    path: str,
    id: int,
    cid: Optional[str] = None,
    at: datetime = _T0,
    duration: Optional[float] = None,
) -> MediaRecord:
    return MediaRecord(
        kind=MediaKind.VIDEO,
        source_path=Path(path),
        id=id,
        metadata=VideoMetadata(created_at=at, content_id=cid, duration=duration),
    )


def test_pairing_prefers_content_id() -> None:
    still = _photo("/lib/IMG_0001.HEIC", 1, cid="CID1")
    motion = _video("/lib/other_name.MOV", 2, cid="CID1", duration=1.5)

    pairs = pair_live([still, motion])

    assert len(pairs) == 1
    assert pairs[0].still is still
    assert pairs[0].motion is motion
    assert pairs[0].confidence == 1.0


def test_pairing_by_stem_and_time() -> None:
    still = _photo("/lib/IMG_0002.JPG", 1)
    motion = _video("/lib/IMG_0002.MOV", 2, at=_T0 + timedelta(seconds=1))

    pairs = pair_live([still, motion])

    assert [(p.still.id, p.motion.id, p.confidence) for p in pairs] == [(1, 2, 0.7)]


def test_no_pair_when_capture_times_drift() -> None:
    still = _photo("/lib/IMG_0003.JPG", 1)
    motion = _video("/lib/IMG_0003.MOV", 2, at=_T0 + timedelta(seconds=30))

    assert pair_live([still, motion]) == []


def test_no_pair_across_folders() -> None:
    still = _photo("/lib/a/IMG_0004.JPG", 1)
    motion = _video("/lib/b/IMG_0004.MOV", 2)

    assert pair_live([still, motion]) == []


def test_mp4_is_never_a_motion_clip() -> None:
    still = _photo("/lib/IMG_0005.JPG", 1, cid="CID5")
    clip = _video("/lib/IMG_0005.MP4", 2, cid="CID5")

    assert pair_live([still, clip]) == []


def test_duplicate_content_id_prefers_live_length_clip() -> None:
    still = _photo("/lib/IMG_0006.HEIC", 1, cid="CID6")
    long_clip = _video("/lib/IMG_0006_long.MOV", 2, cid="CID6", duration=12.0)
    live_clip = _video("/lib/IMG_0006.MOV", 3, cid="CID6", duration=2.0)

    pairs = pair_live([still, long_clip, live_clip])

    assert len(pairs) == 1
    assert pairs[0].motion is live_clip


def test_each_clip_pairs_once() -> None:
    first = _photo("/lib/IMG_0007.JPG", 1, cid="CID7")
    second = _photo("/lib/IMG_0007 copy.JPG", 2, cid="CID7")
    motion = _video("/lib/IMG_0007.MOV", 3, cid="CID7")

    pairs = pair_live([first, second, motion])

    assert len(pairs) == 1
    assert pairs[0].still is first
