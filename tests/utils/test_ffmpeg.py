"""Tests for the lightweight ffmpeg helpers."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path

import pytest

from photoshelf.errors import ExternalToolError
from photoshelf.utils import ffmpeg


def _completed(command, returncode=0, stdout=b"", stderr=b""):
    return subprocess.CompletedProcess(command, returncode, stdout=stdout, stderr=stderr)


def test_probe_media_parses_json(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    payload = {"format": {"format_name": "mov,mp4"}, "streams": []}
    monkeypatch.setattr(
        ffmpeg, "_run_command", lambda cmd: _completed(cmd, stdout=json.dumps(payload).encode())
    )

    assert ffmpeg.probe_media(tmp_path / "clip.mov") == payload


def test_probe_media_failure(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(
        ffmpeg, "_run_command", lambda cmd: _completed(cmd, returncode=1, stderr=b"moov atom not found")
    )

    with pytest.raises(ExternalToolError, match="moov atom not found"):
        ffmpeg.probe_media(tmp_path / "clip.mov")


def test_extract_video_frame_builds_jpeg_command(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    captured: dict[str, list[str]] = {}

    def fake_run(command):
        captured["cmd"] = command
        Path(command[-1]).write_bytes(b"jpeg")
        return _completed(command)

    monkeypatch.setattr(ffmpeg, "_run_command", fake_run)

    data = ffmpeg.extract_video_frame(tmp_path / "movie.mp4", at=0.5, scale=(320, 240))

    assert data == b"jpeg"
    command = captured["cmd"]
    assert command[command.index("-ss") + 1] == "0.500"
    vf_expression = command[command.index("-vf") + 1]
    assert "scale=min(320,iw):min(240,ih):force_original_aspect_ratio=decrease" in vf_expression
    assert "format=yuvj420p" in vf_expression
    assert not Path(command[-1]).exists()


def test_extract_video_frame_retries_from_start(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    commands: list[list[str]] = []

    def fake_run(command):
        commands.append(command)
        if "-ss" in command:
            return _completed(command, returncode=1, stderr=b"no frame")
        Path(command[-1]).write_bytes(b"first")
        return _completed(command)

    monkeypatch.setattr(ffmpeg, "_run_command", fake_run)

    assert ffmpeg.extract_video_frame(tmp_path / "short.mov", at=1.0) == b"first"
    assert len(commands) == 2


def test_extract_video_frame_reports_failure(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(
        ffmpeg, "_run_command", lambda cmd: _completed(cmd, returncode=1, stderr=b"broken")
    )

    with pytest.raises(ExternalToolError, match="broken"):
        ffmpeg.extract_video_frame(tmp_path / "movie.mp4")


def test_extract_video_frame_without_temp_space(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def no_space(*args, **kwargs):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(ffmpeg.tempfile, "mkstemp", no_space)
    monkeypatch.setattr(ffmpeg, "_run_command", lambda cmd: pytest.fail("ffmpeg must not run"))

    with pytest.raises(ExternalToolError, match="No space left on device"):
        ffmpeg.extract_video_frame(tmp_path / "movie.mp4", at=1.0)
