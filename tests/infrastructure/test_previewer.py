import hashlib
import io

import pytest
from PIL import Image

from photoshelf.domain.models import MediaKind, MediaRecord, PictureMetadata
from photoshelf.errors import ExternalToolError, PreviewError, PreviewErrorKind
from photoshelf.infrastructure.services import previewer as previewer_module
from photoshelf.infrastructure.services.preview_cache import PreviewCache
from photoshelf.infrastructure.services.previewer import Previewer


@pytest.fixture
def cache(tmp_path):
    return PreviewCache(tmp_path / "cache" / "previews")


def _record(path, media_id=7, kind=MediaKind.PHOTO) -> MediaRecord:
    return MediaRecord(kind=kind, source_path=path, id=media_id)


def test_cache_path_is_bucketed_by_id(cache):
    bucket = hashlib.md5(b"42").hexdigest()[:2]
    assert cache.path_for(42) == cache.root / bucket / "42.jpg"


def test_cache_put_replaces_atomically(cache):
    first = cache.put(3, b"one")
    second = cache.put(3, b"two")

    assert first == second
    assert second.read_bytes() == b"two"
    assert [p.name for p in first.parent.iterdir()] == ["3.jpg"]


def test_set_preview_renders_square_jpeg(tmp_path, cache, make_image):
    source = make_image(tmp_path / "wide.jpg", size=(200, 100), color="red")
    record = _record(source)

    Previewer(cache, edge=64).set_preview(record)

    assert record.square_preview_path == cache.path_for(7)
    with Image.open(record.square_preview_path) as preview:
        assert preview.format == "JPEG"
        assert preview.size == (64, 64)


def test_set_preview_honours_exif_orientation(tmp_path, cache, make_image):
    # Orientation 6: the stored pixels must be rotated 90 degrees for display
    source = make_image(tmp_path / "rotated.jpg", size=(120, 40), exif_tags={0x0112: 6})
    record = _record(source)

    previewer = Previewer(cache, edge=32)
    image, original_size = previewer._load_image(source)
    assert original_size == (120, 40)
    assert image.size == (40, 120)

    previewer.set_preview(record)
    assert record.has_preview


def test_set_preview_backfills_missing_dimensions(tmp_path, cache, make_image):
    source = make_image(tmp_path / "a.png", size=(30, 20), format="PNG")
    record = _record(source)
    record.metadata = PictureMetadata()

    Previewer(cache, edge=16).set_preview(record)

    assert (record.metadata.width, record.metadata.height) == (30, 20)


def test_rerender_overwrites_existing_preview(tmp_path, cache, make_image):
    source = make_image(tmp_path / "a.jpg", color="red")
    record = _record(source)
    previewer = Previewer(cache, edge=16)
    previewer.set_preview(record)
    first = record.square_preview_path.read_bytes()

    make_image(source, color="blue")
    previewer.set_preview(record)

    assert record.square_preview_path.read_bytes() != first


def test_missing_source_is_unreadable(tmp_path, cache):
    record = _record(tmp_path / "gone.jpg")

    with pytest.raises(PreviewError) as excinfo:
        Previewer(cache).set_preview(record)

    assert excinfo.value.kind is PreviewErrorKind.SOURCE_UNREADABLE
    assert record.square_preview_path is None


def test_garbage_file_fails_to_decode_and_leaves_record(tmp_path, cache):
    source = tmp_path / "broken.jpg"
    source.write_bytes(b"this is not a jpeg")
    record = _record(source)
    record.square_preview_path = None

    with pytest.raises(PreviewError) as excinfo:
        Previewer(cache).set_preview(record)

    assert excinfo.value.kind is PreviewErrorKind.DECODE_FAILED
    assert record.square_preview_path is None
    assert not cache.path_for(7).exists()


def test_cache_write_failure(tmp_path, make_image, monkeypatch):
    source = make_image(tmp_path / "a.jpg")
    cache = PreviewCache(tmp_path / "previews")
    record = _record(source)

    def refuse(media_id, data):
        raise PermissionError("read-only cache")

    monkeypatch.setattr(cache, "put", refuse)

    with pytest.raises(PreviewError) as excinfo:
        Previewer(cache).set_preview(record)

    assert excinfo.value.kind is PreviewErrorKind.CACHE_WRITE_FAILED
    assert record.square_preview_path is None


def test_record_without_id_is_rejected(tmp_path, cache, make_image):
    record = MediaRecord(kind=MediaKind.PHOTO, source_path=make_image(tmp_path / "a.jpg"))

    with pytest.raises(ValueError):
        Previewer(cache).set_preview(record)


def test_video_preview_uses_extracted_frame(tmp_path, cache, monkeypatch):
    clip = tmp_path / "clip.mp4"
    clip.write_bytes(b"fake video")
    calls = []

    def fake_extract(source, *, at=None, scale=None):
        calls.append((source, at, scale))
        buffer = io.BytesIO()
        Image.new("RGB", (160, 90), "green").save(buffer, "JPEG")
        return buffer.getvalue()

    monkeypatch.setattr(previewer_module, "extract_video_frame", fake_extract)
    record = _record(clip, media_id=11, kind=MediaKind.VIDEO)

    Previewer(cache, edge=48, video_seek=1.0).set_preview(record)

    assert calls == [(clip, 1.0, (96, 96))]
    with Image.open(record.square_preview_path) as preview:
        assert preview.size == (48, 48)


def test_video_tool_failure_is_decode_failure(tmp_path, cache, monkeypatch):
    clip = tmp_path / "clip.mov"
    clip.write_bytes(b"fake video")

    def failing_extract(source, *, at=None, scale=None):
        raise ExternalToolError("ffmpeg executable not found on PATH")

    monkeypatch.setattr(previewer_module, "extract_video_frame", failing_extract)
    record = _record(clip, kind=MediaKind.VIDEO)

    with pytest.raises(PreviewError) as excinfo:
        Previewer(cache).set_preview(record)

    assert excinfo.value.kind is PreviewErrorKind.DECODE_FAILED
    assert record.square_preview_path is None
