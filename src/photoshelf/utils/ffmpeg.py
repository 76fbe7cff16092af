"""Lightweight wrappers around the ``ffmpeg`` toolchain."""

from __future__ import annotations

import json
import os
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from ..errors import ExternalToolError

_FFMPEG_LOG_LEVEL = "error"


def _run_command(command: Sequence[str]) -> subprocess.CompletedProcess[bytes]:
    """Execute *command* and return the completed process."""

    creationflags = getattr(subprocess, "CREATE_NO_WINDOW", 0) if os.name == "nt" else 0
    try:
        return subprocess.run(
            list(command),
            check=False,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            creationflags=creationflags,
        )
    except FileNotFoundError as exc:  # pragma: no cover - depends on environment
        raise ExternalToolError(f"{command[0]} executable not found on PATH") from exc


def probe_media(source: Path) -> Dict[str, Any]:
    """Return ffprobe metadata for *source*.

    The mapping mirrors ffprobe's ``-show_format -show_streams`` JSON.
    ``ExternalToolError`` is raised when the toolchain is unavailable or the
    container cannot be read.
    """

    command = [
        "ffprobe",
        "-hide_banner",
        "-loglevel",
        _FFMPEG_LOG_LEVEL,
        "-print_format",
        "json",
        "-show_format",
        "-show_streams",
        str(source),
    ]

    process = _run_command(command)
    if process.returncode != 0 or not process.stdout:
        stderr = process.stderr.decode("utf-8", "ignore").strip()
        raise ExternalToolError(
            f"ffprobe failed to inspect {source}: {stderr or 'unknown error'}"
        )
    try:
        return json.loads(process.stdout.decode("utf-8"))
    except json.JSONDecodeError as exc:
        raise ExternalToolError("ffprobe returned invalid JSON output") from exc


def extract_video_frame(
    source: Path,
    *,
    at: Optional[float] = None,
    scale: Optional[tuple[int, int]] = None,
) -> bytes:
    """Return one frame of *source* encoded as JPEG.

    Parameters
    ----------
    source:
        Path to the input video file.
    at:
        Timestamp in seconds to sample.  ``None`` grabs the first frame.
        When the clip is shorter than *at*, ffmpeg produces no frame and the
        extraction is retried from the start.
    scale:
        Optional ``(width, height)`` bound; the frame is shrunk to fit while
        keeping its aspect ratio.
    """

    try:
        return _extract_with_ffmpeg(source, at=at, scale=scale)
    except ExternalToolError:
        if not at:
            raise
        return _extract_with_ffmpeg(source, at=None, scale=scale)


def _extract_with_ffmpeg(
    source: Path,
    *,
    at: Optional[float],
    scale: Optional[tuple[int, int]],
) -> bytes:
    command: list[str] = [
        "ffmpeg",
        "-hide_banner",
        "-loglevel",
        _FFMPEG_LOG_LEVEL,
        "-nostdin",
        "-y",
    ]
    if at is not None:
        command += ["-ss", f"{max(at, 0):.3f}"]
    command += ["-i", str(source), "-an", "-frames:v", "1"]

    filters: list[str] = []
    if scale is not None:
        width, height = scale
        if width > 0 and height > 0:
            filters.append(
                f"scale=min({width},iw):min({height},ih):force_original_aspect_ratio=decrease"
            )
    # mjpeg wants even dimensions and a yuv420p pixel format
    filters.append("scale=max(2,trunc(iw/2)*2):max(2,trunc(ih/2)*2)")
    filters.append("format=yuvj420p")
    command += ["-vf", ",".join(filters), "-f", "image2", "-vcodec", "mjpeg", "-q:v", "2"]

    try:
        fd, tmp_name = tempfile.mkstemp(suffix=".jpg")
    except OSError as exc:
        raise ExternalToolError(f"Cannot create a temporary frame file: {exc}") from exc
    tmp_path = Path(tmp_name)
    try:
        os.close(fd)
        command.append(str(tmp_path))
        process = _run_command(command)
        if process.returncode != 0 or not tmp_path.exists() or tmp_path.stat().st_size == 0:
            stderr = process.stderr.decode("utf-8", "ignore").strip()
            raise ExternalToolError(
                f"ffmpeg failed to extract frame from {source}: {stderr or 'unknown error'}"
            )
        return tmp_path.read_bytes()
    except OSError as exc:
        raise ExternalToolError(f"Frame extraction from {source} failed: {exc}") from exc
    finally:
        tmp_path.unlink(missing_ok=True)


__all__ = ["extract_video_frame", "probe_media"]
