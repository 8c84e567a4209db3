"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/reporter.py
Periodic, read-only stats snapshots for display.
"""

import logging
import threading
from typing import Optional

from dupfu.core.aggregator import Aggregator
from dupfu.core.interfaces import StatsListener
from dupfu.core.models import PipelineConfig, StatsSnapshot

logger = logging.getLogger(__name__)


class StatsReporter:
    """
    Emits a StatsSnapshot every `interval` seconds. Once the aggregator has
    finished, one final snapshot is emitted and the reporter stops.
    """

    def __init__(
        self,
        aggregator: Aggregator,
        listener: Optional[StatsListener] = None,
        interval: float = PipelineConfig.STATS_INTERVAL,
    ):
        if interval <= 0:
            raise ValueError("Interval must be positive")
        self.aggregator = aggregator
        self.listener = listener
        self.interval = interval
        self.last_snapshot: Optional[StatsSnapshot] = None
        self.emitted = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self.run, name="stats-reporter", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def run(self) -> None:
        finished = self.aggregator.finished
        while True:
            done = finished.is_set() or self._stop.is_set()
            self._emit(self.aggregator.stats_snapshot())
            if done:
                return
            # Wakes early when the aggregator finishes so the final snapshot is prompt
            finished.wait(self.interval)

    def _emit(self, snapshot: StatsSnapshot) -> None:
        self.last_snapshot = snapshot
        self.emitted += 1
        if not self.listener:
            return
        try:
            self.listener(snapshot)
        except Exception as e:
            logger.warning(f"Error in stats listener: {e}")
