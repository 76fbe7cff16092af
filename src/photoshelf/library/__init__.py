"""Library index and the Qt-facing background pipeline."""

from .library import Library, VisualDetails, describe
from .progress_monitor import ProgressMonitor

__all__ = ["Library", "ProgressMonitor", "VisualDetails", "describe"]
