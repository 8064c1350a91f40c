"""Step accounting for a single update run.

The orchestrator computes the total number of steps before any driver
runs; drivers then announce each unit of work with ``set_label()`` and
report it finished with ``increment()``. The render loop only ever reads
``snapshot()``.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from uupd.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class TrackerMessage:
    """Label of the unit of work in flight."""

    title: str
    description: str

    def __str__(self) -> str:
        """Return "Title: Description"."""
        return f"{self.title}: {self.description}"


@dataclass(frozen=True, slots=True)
class TrackerSnapshot:
    """Consistent copy of the tracker state for rendering."""

    total: int
    completed: int
    label: TrackerMessage | None

    @property
    def percent(self) -> float:
        """Completion percentage in the 0-100 range."""
        if self.total <= 0:
            return 100.0
        return min(100.0, self.completed * 100.0 / self.total)

    @property
    def finished(self) -> bool:
        """Whether every step has been accounted for."""
        return self.completed >= self.total


class StepTracker:
    """Thread-safe progress counters shared with the render loop.

    ``completed`` never decreases and never exceeds ``total``. When
    progress rendering is disabled, label changes are logged instead so
    headless runs still show what is happening.
    """

    def __init__(self, total: int, *, progress_enabled: bool = True) -> None:
        """Initialize tracker.

        Args:
            total: Number of steps the run will perform
            progress_enabled: False when no progress bar is rendered

        """
        if total < 0:
            msg = "total must be >= 0"
            raise ValueError(msg)
        self._total = total
        self._completed = 0
        self._label: TrackerMessage | None = None
        self._lock = threading.Lock()
        self.progress_enabled = progress_enabled

    @property
    def total(self) -> int:
        """Total number of steps, fixed at construction."""
        return self._total

    @property
    def completed(self) -> int:
        """Number of steps finished so far."""
        with self._lock:
            return self._completed

    @property
    def label(self) -> TrackerMessage | None:
        """Label of the unit of work in flight."""
        with self._lock:
            return self._label

    def set_label(self, message: TrackerMessage) -> None:
        """Announce the unit of work about to start."""
        with self._lock:
            self._label = message
            completed = self._completed
        if not self.progress_enabled:
            logger.info(
                "Updating %s (%d/%d)",
                message,
                min(completed + 1, self._total),
                self._total,
                extra={
                    "title": message.title,
                    "description": message.description,
                },
            )

    def increment(self) -> None:
        """Mark one unit of work as finished, successful or not."""
        with self._lock:
            if self._completed < self._total:
                self._completed += 1

    def advance_to(self, target: int) -> None:
        """Move ``completed`` forward to *target*, capped at ``total``."""
        with self._lock:
            self._completed = max(self._completed, min(target, self._total))

    def snapshot(self) -> TrackerSnapshot:
        """Return a consistent copy of the counters and label."""
        with self._lock:
            return TrackerSnapshot(self._total, self._completed, self._label)
