"""Schema helpers for the photoshelf settings file."""

from __future__ import annotations

import os
from copy import deepcopy
from typing import Any

from jsonschema import Draft202012Validator

from ..config import (
    DEFAULT_EXCLUDE,
    DEFAULT_INCLUDE,
    PREVIEW_EDGE,
    PREVIEW_JPEG_QUALITY,
    SCAN_BATCH_SIZE,
    VIDEO_PREVIEW_SEEK_SEC,
)

SETTINGS_SCHEMA: dict[str, Any] = {
    "$id": "photoshelf/settings.schema.json",
    "type": "object",
    "required": ["schema", "preview", "scanner"],
    "properties": {
        "schema": {"const": "photoshelf/settings@1"},
        "library_path": {"type": ["string", "null"]},
        "cache_dir": {"type": ["string", "null"]},
        "preview": {
            "type": "object",
            "properties": {
                "size": {"type": "integer", "minimum": 16, "maximum": 4096},
                "jpeg_quality": {"type": "integer", "minimum": 1, "maximum": 95},
                "video_seek": {"type": "number", "minimum": 0},
            },
            "additionalProperties": True,
        },
        "scanner": {
            "type": "object",
            "properties": {
                "use_exiftool": {"type": "boolean"},
                "batch_size": {"type": "integer", "minimum": 1},
                "include": {"type": "array", "items": {"type": "string"}},
                "exclude": {"type": "array", "items": {"type": "string"}},
            },
            "additionalProperties": True,
        },
    },
    "additionalProperties": True,
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "schema": "photoshelf/settings@1",
    "library_path": None,
    "cache_dir": None,
    "preview": {
        "size": PREVIEW_EDGE,
        "jpeg_quality": PREVIEW_JPEG_QUALITY,
        "video_seek": VIDEO_PREVIEW_SEEK_SEC,
    },
    "scanner": {
        "use_exiftool": True,
        "batch_size": SCAN_BATCH_SIZE,
        "include": list(DEFAULT_INCLUDE),
        "exclude": list(DEFAULT_EXCLUDE),
    },
}

_validator = Draft202012Validator(SETTINGS_SCHEMA)

_SECTIONS = ("preview", "scanner")
_PATH_KEYS = ("library_path", "cache_dir")


def merge_with_defaults(data: dict[str, Any] | None) -> dict[str, Any]:
    """Merge *data* with :data:`DEFAULT_SETTINGS` and validate the result."""

    merged = deepcopy(DEFAULT_SETTINGS)
    if data:
        for key, value in data.items():
            if key in _SECTIONS and isinstance(value, dict):
                target = merged.setdefault(key, {})
                for sub_key, sub_value in value.items():
                    target[sub_key] = sub_value
                continue
            if key in _PATH_KEYS:
                if value in {None, ""}:
                    merged[key] = None
                    continue
                try:
                    merged[key] = os.fspath(value)
                except TypeError:
                    continue
                continue
            merged[key] = value
    _validator.validate(merged)
    return merged


def validate_settings(data: dict[str, Any]) -> None:
    """Validate *data* against the settings schema."""

    _validator.validate(data)


__all__ = ["DEFAULT_SETTINGS", "SETTINGS_SCHEMA", "merge_with_defaults", "validate_settings"]
