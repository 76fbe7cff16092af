"""Progress state machine for long running library tasks.

The reducer is a pure function so it can be tested without Qt; the
observable wrapper lives in :mod:`photoshelf.library.progress_monitor`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Tuple, Union

from ..domain.models import MediaKind


class TaskName(str, Enum):
    THUMBNAIL_PHOTO = "thumbnail_photo"
    THUMBNAIL_VIDEO = "thumbnail_video"
    TRANSCODE = "transcode"
    IDLE = "idle"

    @classmethod
    def thumbnail(cls, kind: MediaKind) -> "TaskName":
        return cls.THUMBNAIL_VIDEO if kind == MediaKind.VIDEO else cls.THUMBNAIL_PHOTO


@dataclass(frozen=True)
class ProgressState:
    task_name: TaskName = TaskName.IDLE
    current_count: int = 0
    end_count: int = 0

    @classmethod
    def idle(cls) -> "ProgressState":
        return cls()

    @property
    def is_idle(self) -> bool:
        return self.task_name == TaskName.IDLE

    def fraction(self) -> float:
        """Completed share of the task in ``[0, 1]``; ``0.0`` when nothing is queued."""

        if self.end_count == 0:
            return 0.0
        return min(self.current_count / self.end_count, 1.0)


@dataclass(frozen=True)
class Start:
    task_name: TaskName
    end_count: int


@dataclass(frozen=True)
class Advance:
    pass


@dataclass(frozen=True)
class Complete:
    pass


@dataclass(frozen=True)
class Idle:
    pass


ProgressMessage = Union[Start, Advance, Complete, Idle]


def reduce(state: ProgressState, message: ProgressMessage) -> Tuple[ProgressState, bool]:
    """Apply *message* to *state* and report whether observers should hear about it.

    ``Advance`` stops at ``end_count``; an advance past the end leaves the
    state untouched and reports no change.
    """

    if isinstance(message, Start):
        if message.end_count < 0:
            raise ValueError(f"end_count must not be negative: {message.end_count}")
        return ProgressState(message.task_name, 0, message.end_count), True
    if isinstance(message, Advance):
        if state.current_count >= state.end_count:
            return state, False
        return replace(state, current_count=state.current_count + 1), True
    if isinstance(message, Complete):
        return replace(state, current_count=state.end_count), True
    if isinstance(message, Idle):
        return ProgressState.idle(), True
    raise TypeError(f"Unknown progress message: {message!r}")


__all__ = [
    "Advance",
    "Complete",
    "Idle",
    "ProgressMessage",
    "ProgressState",
    "Start",
    "TaskName",
    "reduce",
]
