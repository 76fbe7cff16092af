from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from photoshelf.errors import ExternalToolError, ScanError, ScanErrorKind
from photoshelf.io import metadata
from photoshelf.io.metadata import read_image_meta, read_video_meta


def test_exif_original_with_offset_is_timezone_aware(tmp_path, make_image):
    photo = make_image(
        tmp_path / "offset.jpg",
        exif_tags={36867: "2024:01:01 12:00:00", 36881: "+02:00", 306: "2024:01:02 08:00:00"},
    )

    info = read_image_meta(photo)

    assert info.exif_created_at == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
    assert info.exif_created_at.tzinfo is not None
    # OffsetTimeOriginal also serves the modified stamp when OffsetTime is absent
    assert info.exif_modified_at == datetime(2024, 1, 2, 6, 0, tzinfo=timezone.utc)
    assert (info.width, info.height, info.format_name) == (64, 48, "JPEG")


def test_exif_without_offset_uses_local_timezone(tmp_path, make_image, monkeypatch):
    photo = make_image(tmp_path / "local.jpg", exif_tags={36867: "2024:06:10 09:30:00"})
    monkeypatch.setattr(metadata, "gettz", lambda: timezone(timedelta(hours=2)))

    info = read_image_meta(photo)

    assert info.exif_created_at == datetime(2024, 6, 10, 7, 30, tzinfo=timezone.utc)


def test_missing_exif_yields_none_fields(tmp_path, make_image):
    photo = make_image(tmp_path / "plain.png", size=(10, 12), format="PNG")

    info = read_image_meta(photo)

    assert info.exif_created_at is None
    assert info.exif_modified_at is None
    assert info.make is None
    assert (info.width, info.height, info.format_name) == (10, 12, "PNG")


def test_zeroed_exif_date_is_ignored(tmp_path, make_image):
    photo = make_image(tmp_path / "zero.jpg", exif_tags={36867: "0000:00:00 00:00:00"})

    assert read_image_meta(photo).exif_created_at is None


def test_tiff_exif_sub_ifd_is_read_before_file_closes(tmp_path, make_image):
    photo = make_image(
        tmp_path / "scan.tif",
        format="TIFF",
        exif_tags={
            306: "2024:05:07 10:00:00",
            0x8769: {36867: "2024:05:06 07:08:09", 36881: "+02:00"},
        },
    )

    info = read_image_meta(photo)

    assert info.format_name == "TIFF"
    assert info.exif_created_at == datetime(2024, 5, 6, 5, 8, 9, tzinfo=timezone.utc)
    assert info.exif_modified_at == datetime(2024, 5, 7, 8, 0, tzinfo=timezone.utc)


def test_exiftool_payload_fills_gaps(tmp_path, make_image):
    photo = make_image(tmp_path / "live.jpg")
    payload = {
        "SourceFile": str(photo),
        "ExifIFD": {"DateTimeOriginal": "2023:03:04 05:06:07", "OffsetTimeOriginal": "+00:00"},
        "IFD0": {"Make": "Apple", "Model": "iPhone 15"},
        "Apple": {"ContentIdentifier": "ABC-123"},
    }

    info = read_image_meta(photo, payload)

    assert info.exif_created_at == datetime(2023, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
    assert (info.make, info.model) == ("Apple", "iPhone 15")
    assert info.content_id == "ABC-123"


def test_unidentified_image_is_corrupt_metadata(tmp_path):
    broken = tmp_path / "broken.jpg"
    broken.write_bytes(b"definitely not an image")

    with pytest.raises(ScanError) as excinfo:
        read_image_meta(broken)

    assert excinfo.value.kind is ScanErrorKind.CORRUPT_METADATA


def test_missing_image_is_io_error(tmp_path):
    with pytest.raises(ScanError) as excinfo:
        read_image_meta(tmp_path / "missing.jpg")

    assert excinfo.value.kind is ScanErrorKind.IO_ERROR


def test_video_meta_from_ffprobe(tmp_path, monkeypatch):
    clip = tmp_path / "clip.mov"
    clip.write_bytes(b"")

    def fake_probe(path: Path):
        return {
            "format": {
                "format_name": "mov,mp4,m4a,3gp,3g2,mj2",
                "format_long_name": "QuickTime / MOV",
                "duration": "2.500000",
                "tags": {
                    "creation_time": "2024-05-01T10:00:00.000000Z",
                    "com.apple.quicktime.content.identifier": "ABC-123",
                },
            },
            "streams": [
                {"codec_type": "audio", "codec_name": "aac"},
                {"codec_type": "video", "codec_name": "hevc", "width": 1920, "height": 1080},
            ],
        }

    monkeypatch.setattr(metadata, "probe_media", fake_probe)

    info = read_video_meta(clip)

    assert info.container_format == "QuickTime / MOV"
    assert info.duration == pytest.approx(2.5)
    assert info.created_at == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
    assert (info.width, info.height, info.codec) == (1920, 1080, "hevc")
    assert info.content_id == "ABC-123"


def test_unreadable_video_container_logs_and_returns_empty(tmp_path, monkeypatch, caplog):
    clip = tmp_path / "broken.mp4"
    clip.write_bytes(b"junk")

    def failing_probe(path: Path):
        raise ExternalToolError("ffprobe failed to inspect broken.mp4")

    monkeypatch.setattr(metadata, "probe_media", failing_probe)

    with caplog.at_level("WARNING"):
        info = read_video_meta(clip)

    assert info.container_format is None
    assert info.duration is None
    assert info.created_at is None
    assert "Could not read video container" in caplog.text
