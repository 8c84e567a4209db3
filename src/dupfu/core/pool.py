"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/pool.py
Fingerprint worker pool.

N threads pull FileRecords from the shared file queue, stream each file through
the fingerprinter and push the enriched record to the fingerprint queue. Workers
share no mutable state with each other; a slow file only occupies its own worker.
"""

import logging
import threading
from typing import List, Optional

from dupfu.core.context import PipelineContext
from dupfu.core.errors import ReadError
from dupfu.core.hasher import StreamingHasherImpl, get_algorithm
from dupfu.core.interfaces import Fingerprinter
from dupfu.core.models import FileRecord

logger = logging.getLogger(__name__)


class FingerprinterPool:
    def __init__(
        self,
        context: PipelineContext,
        fingerprinter: Optional[Fingerprinter] = None,
        workers: Optional[int] = None,
    ):
        params = context.params
        self.context = context
        self.workers = workers or params.workers
        self.fingerprinter = fingerprinter or StreamingHasherImpl(
            algorithm=get_algorithm(params.algorithm),
            buffer_size=params.read_buffer_size,
            stopped_flag=context.is_cancelled,
            timeout=params.file_timeout,
        )
        self._threads: List[threading.Thread] = []

    def start(self) -> None:
        for i in range(self.workers):
            thread = threading.Thread(target=self._run, name=f"fingerprinter-{i}", daemon=True)
            thread.start()
            self._threads.append(thread)
        logger.debug(f"Started {self.workers} fingerprint workers")

    def join(self, timeout: Optional[float] = None) -> None:
        for thread in self._threads:
            thread.join(timeout)

    def is_alive(self) -> bool:
        return any(t.is_alive() for t in self._threads)

    def _run(self) -> None:
        ctx = self.context
        try:
            while not ctx.is_cancelled():
                # Read the flag before polling: an empty queue after the walker
                # finished means nothing else will ever arrive.
                walker_done = ctx.walker_done.is_set()
                record = ctx.get(ctx.file_queue)
                if record is None:
                    if walker_done:
                        return
                    continue
                self.process(record)
        except Exception as e:
            logger.exception("Fingerprint worker crashed")
            ctx.fail(e)

    def process(self, record: FileRecord) -> bool:
        """Fingerprint one record and forward it. Returns False if it was dropped."""
        ctx = self.context
        try:
            fingerprint, bytes_read = self.fingerprinter.fingerprint(record)
            if bytes_read != record.size:
                raise ReadError(
                    f"Size changed while reading: expected {record.size} bytes, read {bytes_read}",
                    record.path,
                )
        except ReadError as e:
            if not ctx.is_cancelled():
                logger.warning(str(e))
                ctx.record_error(e)
            ctx.complete_item()
            return False

        record.fingerprint = fingerprint
        if not ctx.put(ctx.fingerprint_queue, record):
            ctx.complete_item()
            return False
        return True
