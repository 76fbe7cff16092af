import os
import sys
from pathlib import Path
from typing import Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session")
def qapp():
    """Qt core application instance for signal processing."""
    QtCore = pytest.importorskip("PySide6.QtCore", reason="Qt core not available", exc_type=ImportError)
    app = QtCore.QCoreApplication.instance()
    if app is None:
        app = QtCore.QCoreApplication([])
    yield app


@pytest.fixture
def make_image():
    """Factory writing a small real image, optionally carrying EXIF tags."""
    Image = pytest.importorskip("PIL.Image", reason="Pillow is required to generate test images")

    def _make(
        path: Path,
        size=(64, 48),
        color="white",
        exif_tags: Optional[dict] = None,
        format: str = "JPEG",
    ) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        image = Image.new("RGB", size, color=color)
        if exif_tags:
            exif = Image.Exif()
            for tag, value in exif_tags.items():
                exif[tag] = value
            image.save(path, format=format, exif=exif)
        else:
            image.save(path, format=format)
        return path

    return _make


@pytest.fixture
def library_root(tmp_path, make_image):
    """A small library: two photos at the top, one in a sub folder, one video."""
    root = tmp_path / "Library"
    make_image(root / "a.jpg", color="red")
    make_image(root / "b.png", color="green", format="PNG")
    make_image(root / "trip" / "c.jpg", color="blue")
    (root / "trip" / "clip.mp4").write_bytes(b"\x00\x00\x00\x18ftypmp42")
    (root / "notes.txt").write_text("not media")
    return root
