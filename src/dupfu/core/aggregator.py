"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/aggregator.py
Single owner of the duplicate registry and the running scan statistics.

Every mutation happens under one lock, and a group change and the counters it
produces are applied in the same critical section. Readers only ever get copies
taken under that lock, so they never see a half-updated group or a counter pair
that disagrees with the registry.

Fingerprint equality is taken as content equality. A fast checksum can collide,
which is why destructive actions verify content before touching a file.
"""

import logging
import threading
import time
from typing import Callable, Dict, List, Optional

from dupfu.core.context import PipelineContext
from dupfu.core.interfaces import GroupListener
from dupfu.core.models import (
    DuplicateEntry, DuplicateGroup, FileRecord, GroupSummary, ScanStats, StatsSnapshot,
    collect_duplicate_entries,
)

logger = logging.getLogger(__name__)


class Aggregator:
    def __init__(
        self,
        context: Optional[PipelineContext] = None,
        group_listener: Optional[GroupListener] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.context = context
        self.group_listener = group_listener
        self._clock = clock
        self._lock = threading.Lock()
        self._groups: Dict[bytes, DuplicateGroup] = {}
        self._stats = ScanStats(started_at=clock())
        self.finished = threading.Event()

    def add(self, record: FileRecord) -> Optional[GroupSummary]:
        """
        Insert one fingerprinted record.
        Returns the refreshed summary when the record joined an existing group, else None.
        """
        if record.fingerprint is None:
            raise ValueError(f"Record has no fingerprint: {record.path}")

        with self._lock:
            stats = self._stats
            stats.files_scanned += 1
            stats.total_bytes += record.size

            group = self._groups.get(record.fingerprint)
            if group is None:
                self._groups[record.fingerprint] = DuplicateGroup(key=record.fingerprint, files=[record])
                return None

            # The newcomer may take the canonical slot, demoting the old canonical
            # to a duplicate. Sizes only differ on a checksum collision.
            previous_canonical = group.canonical
            group.add_file(record)
            stats.duplicate_count += 1
            stats.duplicate_bytes += record.size + previous_canonical.size - group.canonical.size
            summary = group.summary()

        logger.debug(f"Duplicate: {record.path} -> group {summary.key} ({summary.duplicate_count} duplicates)")
        self._publish(summary)
        return summary

    def run(self) -> None:
        """Consumer loop: drain the fingerprint queue until the pipeline completes or is cancelled."""
        ctx = self.context
        if ctx is None:
            raise RuntimeError("Aggregator.run() requires a pipeline context")
        try:
            while not ctx.is_cancelled():
                if ctx.is_drained():
                    self.mark_complete()
                    return
                record = ctx.get(ctx.fingerprint_queue)
                if record is None:
                    continue
                try:
                    self.add(record)
                finally:
                    ctx.complete_item()
        except Exception as e:
            logger.exception("Aggregator crashed")
            ctx.fail(e)
        finally:
            self._freeze_clock()
            self.finished.set()

    def mark_complete(self) -> None:
        with self._lock:
            self._stats.scan_complete = True
            if self._stats.finished_at is None:
                self._stats.finished_at = self._clock()
        logger.debug("Scan complete")

    # ---- read side: consistent copies only ----

    def stats_snapshot(self) -> StatsSnapshot:
        with self._lock:
            s = self._stats
            end = s.finished_at if s.finished_at is not None else self._clock()
            return StatsSnapshot(
                elapsed_seconds=max(0.0, end - s.started_at),
                files_scanned=s.files_scanned,
                total_bytes=s.total_bytes,
                duplicate_count=s.duplicate_count,
                duplicate_bytes=s.duplicate_bytes,
                scan_complete=s.scan_complete,
            )

    def groups_snapshot(self, duplicates_only: bool = False) -> Dict[bytes, DuplicateGroup]:
        with self._lock:
            return {
                key: group.copy()
                for key, group in self._groups.items()
                if group.is_duplicate() or not duplicates_only
            }

    def summaries(self) -> List[GroupSummary]:
        with self._lock:
            return [g.summary() for g in self._groups.values() if g.is_duplicate()]

    def duplicate_entries(self) -> List[DuplicateEntry]:
        with self._lock:
            return collect_duplicate_entries(self._groups.values())

    def _freeze_clock(self) -> None:
        with self._lock:
            if self._stats.finished_at is None:
                self._stats.finished_at = self._clock()

    def _publish(self, summary: GroupSummary) -> None:
        if not self.group_listener:
            return
        try:
            self.group_listener(summary)
        except Exception as e:
            logger.warning(f"Error in group listener: {e}")
