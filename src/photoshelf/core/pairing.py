"""Live Photo pairing logic."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from ..config import LIVE_DURATION_PREFERRED, LIVE_MOTION_EXTENSIONS, PAIR_TIME_DELTA_SEC
from ..domain.models import MediaKind, MediaRecord, VideoMetadata


@dataclass(frozen=True)
class LivePair:
    still: MediaRecord
    motion: MediaRecord
    confidence: float


def _is_motion_clip(record: MediaRecord) -> bool:
    # Only QuickTime movies can be the motion half; a stray MP4 next to a
    # photo stays a standalone video.
    return record.is_video and record.source_path.suffix.lower() in LIVE_MOTION_EXTENSIONS


def pair_live(records: Iterable[MediaRecord]) -> List[LivePair]:
    """Pair still and motion records into :class:`LivePair` objects.

    Apple's content identifier is trusted first.  Records without one are
    paired when they share a folder and file stem and were captured within
    ``PAIR_TIME_DELTA_SEC`` of each other.
    """

    photos: List[MediaRecord] = []
    videos: List[MediaRecord] = []
    for record in records:
        if record.kind == MediaKind.PHOTO:
            photos.append(record)
        elif _is_motion_clip(record):
            videos.append(record)

    matched: Dict[str, LivePair] = {}
    used_videos: set[str] = set()

    # 1) strong match by content_id
    video_by_cid: Dict[str, List[MediaRecord]] = defaultdict(list)
    for video in videos:
        if video.content_id:
            video_by_cid[video.content_id].append(video)
    for photo in photos:
        cid = photo.content_id
        if not cid or cid not in video_by_cid:
            continue
        candidates = [v for v in video_by_cid[cid] if str(v.source_path) not in used_videos]
        chosen = _select_best_video(candidates)
        if chosen is not None:
            matched[str(photo.source_path)] = LivePair(photo, chosen, confidence=1.0)
            used_videos.add(str(chosen.source_path))

    # 2) same folder, same stem, close capture times
    for photo in photos:
        if str(photo.source_path) in matched:
            continue
        candidates = [
            v
            for v in videos
            if v.parent_path == photo.parent_path and v.source_path.stem == photo.source_path.stem
        ]
        chosen = _match_by_time(photo, candidates, used_videos)
        if chosen is not None:
            used_videos.add(str(chosen.source_path))
            matched[str(photo.source_path)] = LivePair(photo, chosen, confidence=0.7)

    return list(matched.values())


def _match_by_time(
    photo: MediaRecord,
    candidates: Iterable[MediaRecord],
    used_videos: set[str],
) -> Optional[MediaRecord]:
    photo_dt = photo.captured_at
    best: Optional[Tuple[float, MediaRecord]] = None
    for candidate in candidates:
        if str(candidate.source_path) in used_videos:
            continue
        video_dt = candidate.captured_at
        if not photo_dt or not video_dt:
            continue
        delta = abs((photo_dt - video_dt).total_seconds())
        if delta > PAIR_TIME_DELTA_SEC:
            continue
        if best is None or delta < best[0]:
            best = (delta, candidate)
    return best[1] if best else None


def _duration(record: MediaRecord) -> Optional[float]:
    if isinstance(record.metadata, VideoMetadata):
        return record.metadata.duration
    return None


def _select_best_video(candidates: Iterable[MediaRecord]) -> Optional[MediaRecord]:
    best: Optional[MediaRecord] = None
    preferred_min, preferred_max = LIVE_DURATION_PREFERRED
    for candidate in candidates:
        if best is None:
            best = candidate
            continue
        dur, best_dur = _duration(candidate), _duration(best)
        if dur is None or best_dur is None:
            continue
        if _duration_score(dur, preferred_min, preferred_max) > _duration_score(
            best_dur, preferred_min, preferred_max
        ):
            best = candidate
    return best


def _duration_score(duration: float, preferred_min: float, preferred_max: float) -> float:
    if duration < preferred_min:
        return -preferred_min + duration
    if duration > preferred_max:
        return -duration
    midpoint = (preferred_min + preferred_max) / 2
    return preferred_max - abs(midpoint - duration)


__all__ = ["LivePair", "pair_live"]
