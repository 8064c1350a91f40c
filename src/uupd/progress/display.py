"""Terminal progress display for an update run.

ProgressDisplay owns a background asyncio task that periodically reads a
StepTracker snapshot and redraws a single progress line. It never
touches driver state; stopping it, or never starting it, has no effect
on what the run does.

Design notes:
- Interactive (TTY, TERM != dumb): the line is redrawn in place with a
  carriage return and an erase-line escape, with a spinner.
- Non-interactive: one line is written per label change, so captured
  output stays readable.
"""

from __future__ import annotations

import asyncio
import os
import sys
import time
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass
from typing import TYPE_CHECKING, TextIO

from uupd.logger import get_logger
from uupd.progress.formatting import (
    SPINNER_FRAMES,
    format_percentage,
    render_bar,
    truncate_text,
)
from uupd.progress.suppression import LoggerSuppression

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from uupd.progress.tracker import StepTracker, TrackerSnapshot

logger = get_logger(__name__)

_CLEAR_LINE = "\r\033[K"


@dataclass(frozen=True, slots=True)
class ProgressConfig:
    """Configuration for progress display."""

    refresh_per_second: int = 4
    bar_width: int = 30
    max_label_width: int = 60
    spinner_fps: int = 8

    def __post_init__(self) -> None:
        """Validate config fields to prevent invalid runtime values."""
        if self.refresh_per_second < 1:
            msg = "refresh_per_second must be >= 1"
            raise ValueError(msg)
        if self.bar_width < 1:
            msg = "bar_width must be >= 1"
            raise ValueError(msg)
        if self.spinner_fps < 1:
            msg = "spinner_fps must be >= 1"
            raise ValueError(msg)


def _detect_interactive(output: TextIO) -> bool:
    try:
        is_tty = bool(getattr(output, "isatty", lambda: False)())
    except (OSError, ValueError):
        is_tty = False
    return is_tty and os.environ.get("TERM", "") != "dumb"


class ProgressDisplay:
    """Background renderer for a StepTracker.

    Example:
        >>> display = ProgressDisplay(tracker)
        >>> async with display.session():
        ...     await run_drivers(tracker)

    """

    def __init__(
        self,
        tracker: StepTracker,
        config: ProgressConfig | None = None,
        output: TextIO | None = None,
        interactive: bool | None = None,
    ) -> None:
        """Initialize progress display.

        Args:
            tracker: Tracker whose snapshot is rendered
            config: Progress configuration
            output: Output stream (defaults to sys.stdout)
            interactive: Redraw in place (auto-detected from TTY if None)

        """
        self.tracker = tracker
        self.config = config or ProgressConfig()
        self.output = output or sys.stdout
        self.interactive = (
            _detect_interactive(self.output)
            if interactive is None
            else interactive
        )
        self._render_task: asyncio.Task[None] | None = None
        self._stop_rendering = asyncio.Event()
        self._logger_suppression = LoggerSuppression()
        self._last_line = ""

    def is_active(self) -> bool:
        """Whether the render loop is running."""
        return self._render_task is not None

    def build_line(self, snapshot: TrackerSnapshot) -> str:
        """Build the progress line for *snapshot* (without spinner)."""
        bar = render_bar(
            snapshot.completed, snapshot.total, self.config.bar_width
        )
        pct = format_percentage(snapshot.percent)
        label = str(snapshot.label) if snapshot.label else "Starting"
        label = truncate_text(label, self.config.max_label_width)
        return (
            f"{bar} {pct} ({snapshot.completed}/{snapshot.total}) {label}"
        )

    def _spinner(self) -> str:
        idx = int(time.monotonic() * self.config.spinner_fps) % len(
            SPINNER_FRAMES
        )
        return SPINNER_FRAMES[idx]

    def render_once(self) -> None:
        """Render the current tracker state once."""
        line = self.build_line(self.tracker.snapshot())
        if self.interactive:
            self.output.write(f"{_CLEAR_LINE}{self._spinner()} {line}")
            self.output.flush()
        elif line != self._last_line:
            self.output.write(line + "\n")
            self.output.flush()
        self._last_line = line

    async def _render_loop(self) -> None:
        interval = 1.0 / self.config.refresh_per_second
        while not self._stop_rendering.is_set():
            try:
                self.render_once()
            except (OSError, ValueError) as e:
                logger.debug("Error in render loop: %s", e)
            with suppress(TimeoutError):
                await asyncio.wait_for(
                    self._stop_rendering.wait(), timeout=interval
                )

    async def start(self) -> None:
        """Start the background render loop.

        Console INFO logging is suppressed until ``stop()``.
        """
        if self._render_task is not None:
            logger.warning("Progress display already active")
            return
        self._stop_rendering.clear()
        if self.interactive:
            self._logger_suppression.suppress()
        self._render_task = asyncio.create_task(self._render_loop())
        logger.debug(
            "Progress display started with %d total steps",
            self.tracker.total,
        )

    async def stop(self) -> None:
        """Stop the render loop and write the final state."""
        if self._render_task is None:
            return
        self._stop_rendering.set()
        self._render_task.cancel()
        with suppress(asyncio.CancelledError):
            await self._render_task
        self._render_task = None

        try:
            final = self.build_line(self.tracker.snapshot())
            if self.interactive:
                self.output.write(f"{_CLEAR_LINE}{final}\n")
            elif final != self._last_line:
                self.output.write(final + "\n")
            self.output.flush()
        except (OSError, ValueError) as e:
            logger.debug("Failed to write final progress line: %s", e)
        finally:
            self._logger_suppression.restore()
        logger.debug("Progress display stopped")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[ProgressDisplay, None]:
        """Run the display for the duration of the block.

        The display is stopped even if the block raises.
        """
        await self.start()
        try:
            yield self
        finally:
            await self.stop()
