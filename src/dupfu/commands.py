"""
Unified command orchestrator for one scan run.
This is the SINGLE source of truth for wiring the pipeline, used by the CLI and any other front end.
No presentation dependencies, pure Python.
"""
import logging
import threading
import time
from typing import Callable, List, Optional

from dupfu.core.aggregator import Aggregator
from dupfu.core.context import PipelineContext
from dupfu.core.interfaces import Fingerprinter, GroupListener, StatsListener
from dupfu.core.models import ScanParams, ScanResult
from dupfu.core.pool import FingerprinterPool
from dupfu.core.reporter import StatsReporter
from dupfu.core.walker import FileWalkerImpl

logger = logging.getLogger(__name__)


class ScanCommand:
    """
    Orchestrates the detection pipeline:
    1. Validate the scan root (fatal if it cannot be opened)
    2. Start walker → fingerprint workers → aggregator, plus the stats reporter
    3. Wait for the completion handshake or a cancellation request
    4. Return a consistent snapshot of groups, stats and errors

    Usage:
        params = ScanParams(root_dir="~/Downloads")
        command = ScanCommand()
        result = command.execute(
            params,
            group_listener=update_row,       # called on every group change
            stats_listener=redraw_stats,     # called every stats_interval seconds
            stopped_flag=user_pressed_escape,
        )
        entries = result.duplicate_entries()
    """

    def __init__(self, fingerprinter: Optional[Fingerprinter] = None):
        self._fingerprinter = fingerprinter
        self._context: Optional[PipelineContext] = None
        self._aggregator: Optional[Aggregator] = None
        self._cancel_requested = threading.Event()

    def execute(
            self,
            params: ScanParams,
            group_listener: Optional[GroupListener] = None,
            stats_listener: Optional[StatsListener] = None,
            stopped_flag: Optional[Callable[[], bool]] = None,
    ) -> ScanResult:
        """
        Run one scan to completion (or cancellation).

        Raises:
            FatalError: If the scan root cannot be opened
            RuntimeError: If a pipeline component crashed unexpectedly
        """
        context = PipelineContext(params)
        walker = FileWalkerImpl(params.root_dir, excluded_dirs=params.excluded_dirs, on_error=context.record_error)
        walker.validate_root()

        aggregator = Aggregator(context, group_listener=group_listener)
        pool = FingerprinterPool(context, fingerprinter=self._fingerprinter)
        reporter = StatsReporter(aggregator, listener=stats_listener, interval=params.stats_interval)
        self._context = context
        self._aggregator = aggregator
        if self._cancel_requested.is_set():
            context.cancel()

        logger.debug(f"Scanning {params.root_dir} with {pool.workers} workers")
        start_time = time.monotonic()

        threads: List[threading.Thread] = [
            threading.Thread(target=self._guard(context, walker.run, context), name="walker", daemon=True),
            threading.Thread(target=aggregator.run, name="aggregator", daemon=True),
        ]
        pool.start()
        for thread in threads:
            thread.start()
        reporter.start()

        try:
            while not aggregator.finished.wait(context.poll_interval):
                if stopped_flag and stopped_flag():
                    context.cancel()
        except BaseException:
            # KeyboardInterrupt in the caller's thread: stop the workers before unwinding
            context.cancel()
            raise
        finally:
            for thread in threads:
                thread.join()
            pool.join()
            reporter.stop()
            reporter.join()

        if context.failure is not None:
            raise RuntimeError(f"Scan failed: {context.failure}") from context.failure

        context.report.cancelled = context.is_cancelled()
        result = ScanResult(
            groups=aggregator.groups_snapshot(),
            stats=aggregator.stats_snapshot(),
            report=context.report,
        )
        logger.debug(
            f"Scan {'cancelled' if result.report.cancelled else 'finished'} in "
            f"{time.monotonic() - start_time:.2f}s: {result.stats.files_scanned} files, "
            f"{result.stats.duplicate_count} duplicates, {len(result.report.errors)} errors"
        )
        return result

    def cancel(self) -> None:
        """Request cancellation; safe to call from any thread, before or during execute()."""
        self._cancel_requested.set()
        if self._context is not None:
            self._context.cancel()

    def get_aggregator(self) -> Optional[Aggregator]:
        """Live aggregator of the current/last run, for snapshot reads while scanning."""
        return self._aggregator

    @staticmethod
    def _guard(context: PipelineContext, target: Callable, *args) -> Callable[[], None]:
        def run():
            try:
                target(*args)
            except Exception as e:
                logger.exception("Walker crashed")
                context.fail(e)
        return run
