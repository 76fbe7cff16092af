"""Metadata readers for still images and video clips."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from dateutil.parser import isoparse
from dateutil.tz import gettz
from PIL import ExifTags, Image, UnidentifiedImageError
from pillow_heif import register_heif_opener

from ..domain.models import PictureMetadata, VideoMetadata
from ..errors import ExternalToolError, ScanError, ScanErrorKind
from ..utils.ffmpeg import probe_media
from ..utils.logging import get_logger

register_heif_opener()

LOGGER = get_logger(__name__)

_EXIF_FORMAT = "%Y:%m:%d %H:%M:%S"

# Pillow tag ids
_TAG_MAKE = 271
_TAG_MODEL = 272
_TAG_DATETIME = 306
_TAG_DATETIME_ORIGINAL = 36867
_TAG_OFFSET_TIME = 36880
_TAG_OFFSET_TIME_ORIGINAL = 36881
_TAG_OFFSET_TIME_DIGITIZED = 36882


def _local_tz():
    return gettz() or datetime.now().astimezone().tzinfo or timezone.utc


def _parse_exif_datetime(value: Any, offset: Any = None) -> Optional[datetime]:
    """Turn an EXIF ``YYYY:MM:DD HH:MM:SS`` string into an aware UTC datetime.

    The ``OffsetTime*`` tag is honoured when present; otherwise the capture
    is assumed to be in the local timezone, as cameras write wall-clock time.
    """

    if isinstance(value, bytes):
        value = value.decode("ascii", "ignore")
    if not isinstance(value, str):
        return None
    value = value.strip().rstrip("\x00")
    if not value or value.startswith("0000"):
        return None

    if isinstance(offset, bytes):
        offset = offset.decode("ascii", "ignore")
    if isinstance(offset, str):
        offset = offset.strip().rstrip("\x00")
        if len(offset) == 5 and offset[0] in "+-":
            offset = f"{offset[:3]}:{offset[3:]}"
        try:
            captured = datetime.strptime(f"{value}{offset}", f"{_EXIF_FORMAT}%z")
            return captured.astimezone(timezone.utc)
        except ValueError:
            pass

    try:
        naive = datetime.strptime(value[:19], _EXIF_FORMAT)
    except ValueError:
        LOGGER.debug("Ignoring malformed EXIF datetime %r", value)
        return None
    return naive.replace(tzinfo=_local_tz()).astimezone(timezone.utc)


def _parse_iso_datetime(value: Any) -> Optional[datetime]:
    """Parse ffprobe/QuickTime style timestamps into aware UTC datetimes."""

    if not isinstance(value, str) or not value.strip() or value.startswith("0000"):
        return None
    candidate = value.strip()
    parts = candidate.split(" ")
    # ExifTool prints dates with colons: 2024:01:01 12:00:00
    if len(parts) > 1 and parts[0].count(":") == 2:
        parts[0] = parts[0].replace(":", "-")
        candidate = "T".join(parts[:2])
    try:
        parsed = isoparse(candidate)
    except (ValueError, TypeError):
        LOGGER.debug("Ignoring malformed timestamp %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=_local_tz())
    return parsed.astimezone(timezone.utc)


def _pick_string(*candidates: Any) -> Optional[str]:
    """Return the first non-empty string from ``candidates``."""

    for candidate in candidates:
        if isinstance(candidate, str):
            normalized = candidate.strip().rstrip("\x00")
            if normalized:
                return normalized
    return None


def _extract_group(metadata: Optional[Dict[str, Any]], group_name: str) -> Dict[str, Any]:
    """Return an ExifTool group from either nested or ``Group:Tag`` layouts."""

    if not isinstance(metadata, dict):
        return {}
    group = metadata.get(group_name)
    if isinstance(group, dict):
        return group

    prefix = f"{group_name}:"
    return {
        key[len(prefix) :]: value
        for key, value in metadata.items()
        if isinstance(key, str) and key.startswith(prefix)
    }


def _content_id_from_exiftool(meta: Optional[Dict[str, Any]]) -> Optional[str]:
    """Apple ``ContentIdentifier`` shared by both halves of a Live Photo."""

    return _pick_string(
        _extract_group(meta, "Apple").get("ContentIdentifier"),
        _extract_group(meta, "QuickTime").get("ContentIdentifier"),
        _extract_group(meta, "Keys").get("ContentIdentifier"),
    )


_WANTED_TAGS = (
    _TAG_MAKE,
    _TAG_MODEL,
    _TAG_DATETIME,
    _TAG_DATETIME_ORIGINAL,
    _TAG_OFFSET_TIME,
    _TAG_OFFSET_TIME_ORIGINAL,
    _TAG_OFFSET_TIME_DIGITIZED,
)


def _collect_exif_tags(img: Image.Image, path: Path) -> Dict[int, Any]:
    """Copy the tags this module needs out of *img* while its file is open.

    Values from the Exif sub-IFD win over the same tag in IFD0.
    """

    try:
        exif = img.getexif()
    except Exception as exc:  # Pillow raises assorted errors on broken EXIF blocks
        LOGGER.warning("Unreadable EXIF block in %s: %s", path, exc)
        return {}
    if not exif:
        return {}

    try:
        exif_ifd = dict(exif.get_ifd(ExifTags.IFD.Exif))
    except Exception as exc:
        LOGGER.debug("No Exif sub-IFD in %s: %s", path, exc)
        exif_ifd = {}

    tags: Dict[int, Any] = {}
    for tag_id in _WANTED_TAGS:
        value = exif_ifd.get(tag_id) or exif.get(tag_id)
        if value:
            tags[tag_id] = value
    return tags


def read_image_meta(path: Path, exiftool_meta: Optional[Dict[str, Any]] = None) -> PictureMetadata:
    """Read header-level metadata of the still image at *path*.

    Pillow supplies the pixel size, the format and the EXIF block.  An
    optional ExifTool payload fills whatever Pillow could not see (maker
    notes, the Live Photo content identifier).  A file without EXIF simply
    yields ``None`` for the EXIF-derived fields.

    Raises
    ------
    ScanError
        ``IO_ERROR`` when the file cannot be opened, ``CORRUPT_METADATA``
        when Pillow cannot identify the image header.
    """

    info = PictureMetadata()
    tags: Dict[int, Any] = {}
    try:
        with Image.open(path) as img:
            info.width, info.height = img.size
            info.format_name = img.format
            # TIFF sub-IFDs are read lazily from the open file, so every
            # lookup has to happen before it closes.
            tags = _collect_exif_tags(img, path)
    except UnidentifiedImageError as exc:
        raise ScanError(ScanErrorKind.CORRUPT_METADATA, path, f"Cannot identify image {path}") from exc
    except Image.DecompressionBombError as exc:
        raise ScanError(ScanErrorKind.CORRUPT_METADATA, path, str(exc)) from exc
    except (OSError, SyntaxError, ValueError) as exc:
        kind = ScanErrorKind.IO_ERROR if isinstance(exc, OSError) else ScanErrorKind.CORRUPT_METADATA
        raise ScanError(kind, path, f"Cannot read {path}: {exc}") from exc

    if tags:
        def _tag(*tag_ids: int) -> Any:
            for tag_id in tag_ids:
                value = tags.get(tag_id)
                if value:
                    return value
            return None

        info.exif_created_at = _parse_exif_datetime(
            _tag(_TAG_DATETIME_ORIGINAL),
            _tag(_TAG_OFFSET_TIME_ORIGINAL, _TAG_OFFSET_TIME, _TAG_OFFSET_TIME_DIGITIZED),
        )
        info.exif_modified_at = _parse_exif_datetime(
            _tag(_TAG_DATETIME),
            _tag(_TAG_OFFSET_TIME, _TAG_OFFSET_TIME_ORIGINAL),
        )
        info.make = _pick_string(_tag(_TAG_MAKE))
        info.model = _pick_string(_tag(_TAG_MODEL))

    if exiftool_meta:
        exif_ifd_group = _extract_group(exiftool_meta, "ExifIFD")
        ifd0_group = _extract_group(exiftool_meta, "IFD0")
        if info.exif_created_at is None:
            info.exif_created_at = _parse_exif_datetime(
                exif_ifd_group.get("DateTimeOriginal"),
                exif_ifd_group.get("OffsetTimeOriginal"),
            )
        if info.exif_modified_at is None:
            info.exif_modified_at = _parse_exif_datetime(
                ifd0_group.get("ModifyDate"),
                exif_ifd_group.get("OffsetTime"),
            )
        info.make = info.make or _pick_string(ifd0_group.get("Make"))
        info.model = info.model or _pick_string(ifd0_group.get("Model"))
        info.content_id = _content_id_from_exiftool(exiftool_meta)

    return info


def read_video_meta(path: Path, exiftool_meta: Optional[Dict[str, Any]] = None) -> VideoMetadata:
    """Read container-level metadata of the video at *path*.

    An unreadable container is not an error: the failure is logged and the
    returned metadata keeps ``None`` for everything ffprobe would have found.
    """

    info = VideoMetadata()

    quicktime = _extract_group(exiftool_meta, "QuickTime")
    if quicktime:
        info.created_at = _parse_iso_datetime(quicktime.get("CreateDate"))
        info.content_id = _content_id_from_exiftool(exiftool_meta)

    try:
        probe = probe_media(path)
    except ExternalToolError as exc:
        LOGGER.warning("Could not read video container %s: %s", path, exc)
        return info

    fmt = probe.get("format") if isinstance(probe, dict) else None
    if isinstance(fmt, dict):
        info.container_format = _pick_string(fmt.get("format_long_name"), fmt.get("format_name"))

        duration = fmt.get("duration")
        try:
            info.duration = float(duration) if duration is not None else None
        except (TypeError, ValueError):
            info.duration = None

        tags = fmt.get("tags") if isinstance(fmt.get("tags"), dict) else {}
        if info.created_at is None:
            info.created_at = _parse_iso_datetime(
                tags.get("com.apple.quicktime.creationdate") or tags.get("creation_time")
            )
        if info.content_id is None:
            info.content_id = _pick_string(tags.get("com.apple.quicktime.content.identifier"))

    streams = probe.get("streams", []) if isinstance(probe, dict) else []
    for stream in streams if isinstance(streams, list) else []:
        if not isinstance(stream, dict) or stream.get("codec_type") != "video":
            continue
        info.codec = _pick_string(stream.get("codec_name"), stream.get("codec_long_name"))
        width, height = stream.get("width"), stream.get("height")
        if isinstance(width, int) and isinstance(height, int):
            info.width, info.height = width, height
        break

    return info


__all__ = ["read_image_meta", "read_video_meta"]
