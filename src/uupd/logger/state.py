"""Queue pipeline shared by every uupd logger.

Logging is configured twice per process: with environment defaults on
the first ``get_logger()`` call, and again once the CLI flags are known.
``LogPipeline`` therefore owns a replaceable QueueListener: ``rebuild()``
retires the running listener and its handlers before starting a new one.
"""

import contextlib
import logging
import queue
import threading
import time
from logging.handlers import QueueHandler, QueueListener

DRAIN_TIMEOUT_SECONDS = 5.0


class LogPipeline:
    """The active QueueListener and the queue feeding it.

    Attributes:
        lock: Serializes configuration of the root ``uupd`` logger
        listener: Background thread writing records, None until built
        log_queue: Queue between the root QueueHandler and the listener

    """

    def __init__(self) -> None:
        """Initialize an empty, unconfigured pipeline."""
        self.lock = threading.Lock()
        self.listener: QueueListener | None = None
        self.log_queue: queue.Queue | None = None

    @property
    def configured(self) -> bool:
        """Whether a listener is currently running."""
        return self.listener is not None

    @property
    def handlers(self) -> tuple[logging.Handler, ...]:
        """Output handlers of the running listener."""
        if self.listener is None:
            return ()
        return tuple(self.listener.handlers)

    def rebuild(self, handlers: list[logging.Handler]) -> QueueHandler:
        """Replace the running listener with one writing to *handlers*.

        Records already queued are written by the old listener before it
        stops.

        Returns:
            QueueHandler to attach to the root logger

        """
        self.shutdown()
        self.log_queue = queue.Queue(-1)
        self.listener = QueueListener(
            self.log_queue, *handlers, respect_handler_level=True
        )
        self.listener.start()
        return QueueHandler(self.log_queue)

    def drain(self, timeout: float = DRAIN_TIMEOUT_SECONDS) -> None:
        """Wait for queued records to be written, then flush handlers."""
        if self.listener is None or self.log_queue is None:
            return
        # QueueListener never calls task_done(), so poll instead of join
        deadline = time.monotonic() + timeout
        while not self.log_queue.empty() and time.monotonic() < deadline:
            time.sleep(0.01)
        time.sleep(0.1)
        for handler in self.listener.handlers:
            with contextlib.suppress(OSError, ValueError):
                handler.flush()

    def shutdown(self) -> None:
        """Stop the listener and close its handlers."""
        if self.listener is None:
            return
        self.listener.stop()
        for handler in self.listener.handlers:
            handler.close()
        self.listener = None
        self.log_queue = None


_pipeline = LogPipeline()


def get_pipeline() -> LogPipeline:
    """Return the process-wide logging pipeline."""
    return _pipeline
