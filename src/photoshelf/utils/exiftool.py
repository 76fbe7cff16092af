"""Batch-oriented helpers for invoking the :command:`exiftool` CLI."""

from __future__ import annotations

import json
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Dict, List

from ..errors import ExternalToolError


def is_available() -> bool:
    """Return ``True`` when an ``exiftool`` executable is on ``PATH``."""

    return shutil.which("exiftool") is not None


def get_metadata_batch(paths: List[Path]) -> List[Dict[str, Any]]:
    """Return ExifTool metadata for *paths* using a single process.

    The file list travels through an argument file (``-@``) so long batches
    never hit command-line limits and non-ASCII names survive intact.  Each
    returned mapping carries a ``SourceFile`` key naming the file it belongs
    to; the order is not guaranteed to match *paths*.

    Raises
    ------
    ExternalToolError
        When the executable is missing, exits with an error, or prints
        something other than JSON.
    """

    executable = shutil.which("exiftool")
    if executable is None:
        raise ExternalToolError(
            "exiftool executable not found. Install it from https://exiftool.org/ "
            "and ensure it is available on PATH."
        )

    if not paths:
        return []

    with tempfile.NamedTemporaryFile(mode="w", encoding="utf-8", delete=False) as arg_file:
        for path in paths:
            # ExifTool may treat backslashes in argument files as escapes
            arg_file.write(path.as_posix() + "\n")
        arg_path = arg_file.name

    cmd = [
        executable,
        "-n",  # numeric values, e.g. decimal GPS
        "-g1",  # group tags by family 1 (ExifIFD, IFD0, QuickTime, ...)
        "-json",
        "-charset",
        "filename=utf8",
        "-@",
        arg_path,
    ]

    creationflags = getattr(subprocess, "CREATE_NO_WINDOW", 0) if os.name == "nt" else 0
    try:
        process = subprocess.run(
            cmd,
            capture_output=True,
            check=False,
            encoding="utf-8",
            errors="replace",
            creationflags=creationflags,
        )
    except OSError as exc:
        raise ExternalToolError(f"Failed to execute exiftool: {exc}") from exc
    finally:
        try:
            os.remove(arg_path)
        except OSError:
            pass

    # ExifTool exits non-zero when any file in the batch is unreadable, yet
    # still prints JSON for the rest.  Only treat an empty payload as fatal.
    if not process.stdout.strip():
        stderr = process.stderr.strip() if process.stderr else "unknown error"
        raise ExternalToolError(f"ExifTool failed with an error: {stderr}")

    try:
        payload = json.loads(process.stdout)
    except json.JSONDecodeError as exc:
        raise ExternalToolError(f"Failed to parse JSON output from ExifTool: {exc}") from exc

    if not isinstance(payload, list):
        raise ExternalToolError("ExifTool returned an unexpected JSON document")
    return [entry for entry in payload if isinstance(entry, dict)]


__all__ = ["get_metadata_batch", "is_available"]
