"""Step accounting and terminal progress rendering."""

from .display import ProgressConfig, ProgressDisplay
from .tracker import StepTracker, TrackerMessage, TrackerSnapshot

__all__ = [
    "ProgressConfig",
    "ProgressDisplay",
    "StepTracker",
    "TrackerMessage",
    "TrackerSnapshot",
]
