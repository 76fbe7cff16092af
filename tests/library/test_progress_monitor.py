import pytest

pytest.importorskip("PySide6.QtCore", reason="Qt core not available", exc_type=ImportError)

from photoshelf.core.progress import Advance, Complete, Idle, ProgressState, Start, TaskName
from photoshelf.library.progress_monitor import ProgressMonitor


@pytest.fixture
def monitor(qapp):
    return ProgressMonitor()


def test_monitor_starts_idle(monitor):
    assert monitor.state.is_idle
    assert monitor.fraction() == 0.0


def test_monitor_emits_each_change(monitor):
    received = []
    monitor.progressChanged.connect(received.append)

    assert monitor.reduce(Start(TaskName.THUMBNAIL_PHOTO, 10))
    for _ in range(10):
        assert monitor.reduce(Advance())

    assert monitor.state.current_count == 10
    assert monitor.fraction() == 1.0
    assert len(received) == 11
    assert received[-1] == ProgressState(TaskName.THUMBNAIL_PHOTO, 10, 10)

    assert monitor.reduce(Idle())
    assert monitor.state == ProgressState(TaskName.IDLE, 0, 0)
    assert len(received) == 12


def test_monitor_is_silent_when_nothing_changes(monitor):
    received = []
    monitor.progressChanged.connect(received.append)
    monitor.reduce(Start(TaskName.THUMBNAIL_VIDEO, 1))
    monitor.reduce(Complete())

    assert not monitor.reduce(Advance())
    assert len(received) == 2
