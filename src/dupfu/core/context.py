"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/context.py
Per-run pipeline context shared by the walker, fingerprint workers and aggregator.

Holds the two bounded queues, the cancellation signal, the in-flight counter that
drives completion, and the error report. One context is built per scan, so several
scans can run side by side in one process.
"""

import logging
import queue
import threading
from typing import Any, Optional

from dupfu.core.errors import DupFuError
from dupfu.core.models import ScanParams, ScanReport, PipelineConfig

logger = logging.getLogger(__name__)


class PipelineContext:
    """
    Completion is a three-way handshake: the walker has finished dispatching,
    and every dispatched record has been either consumed by the aggregator or
    dropped by a worker (in-flight count back at zero).
    """

    def __init__(self, params: ScanParams, poll_interval: float = PipelineConfig.QUEUE_POLL_INTERVAL):
        self.params = params
        self.poll_interval = poll_interval
        self.file_queue: queue.Queue = queue.Queue(maxsize=params.file_queue_size)
        self.fingerprint_queue: queue.Queue = queue.Queue(maxsize=params.fingerprint_queue_size)
        self.cancel_event = threading.Event()
        self.walker_done = threading.Event()
        self.report = ScanReport()
        self.failure: Optional[BaseException] = None
        self._lock = threading.Lock()
        self._in_flight = 0

    # ---- cancellation ----

    def cancel(self) -> None:
        if not self.cancel_event.is_set():
            logger.debug("Cancellation requested")
        self.cancel_event.set()

    def is_cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def fail(self, exc: BaseException) -> None:
        """Record an unexpected component crash and stop the whole run."""
        with self._lock:
            if self.failure is None:
                self.failure = exc
        self.cancel()

    # ---- blocking hand-off, cancellation-aware ----

    def put(self, q: queue.Queue, item: Any) -> bool:
        """Blocks while the queue is full. Returns False if the run was cancelled first."""
        while not self.is_cancelled():
            try:
                q.put(item, timeout=self.poll_interval)
                return True
            except queue.Full:
                continue
        return False

    def get(self, q: queue.Queue) -> Optional[Any]:
        """Waits one poll interval for an item. Returns None on timeout or cancellation."""
        if self.is_cancelled():
            return None
        try:
            return q.get(timeout=self.poll_interval)
        except queue.Empty:
            return None

    # ---- in-flight accounting ----

    def dispatch(self, record: Any) -> bool:
        """Hand a discovered record to the workers, counting it as in flight."""
        with self._lock:
            self._in_flight += 1
        if self.put(self.file_queue, record):
            return True
        self.complete_item()
        return False

    def complete_item(self) -> None:
        """A record left the pipeline (aggregated or dropped)."""
        with self._lock:
            self._in_flight -= 1

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    def is_drained(self) -> bool:
        if not self.walker_done.is_set():
            return False
        with self._lock:
            return self._in_flight == 0

    # ---- error report ----

    def record_error(self, error: DupFuError) -> None:
        with self._lock:
            self.report.errors.append(error)
