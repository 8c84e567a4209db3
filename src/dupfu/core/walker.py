"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/walker.py
Recursive discovery of candidate files.
Features:
- Single-threaded os.walk traversal, symlinks never followed
- Only regular, non-empty files are emitted
- Per-entry errors are reported and traversal continues
- Excluded directories are pruned before os.walk enters them
"""

import os
import stat
import logging
import time
from typing import Callable, Iterator, List, Optional

from dupfu.core.context import PipelineContext
from dupfu.core.errors import FatalError, TraversalError
from dupfu.core.interfaces import FileWalker
from dupfu.core.models import FileRecord

logger = logging.getLogger(__name__)


class FileWalkerImpl(FileWalker):
    """
    Walks a directory tree and yields a FileRecord for each qualifying file.

    Attributes:
        root_dir: Root directory to walk
        excluded_dirs: Absolute directory paths that are never entered
        on_error: Receives a TraversalError for every entry that could not be visited
    """

    def __init__(
        self,
        root_dir: str,
        excluded_dirs: Optional[List[str]] = None,
        on_error: Optional[Callable[[TraversalError], None]] = None,
    ):
        self.root_dir = os.path.abspath(root_dir)
        self.excluded_dirs = [os.path.normpath(os.path.abspath(d)) for d in excluded_dirs] if excluded_dirs else []
        self.on_error = on_error

    def validate_root(self) -> None:
        """The root must be a directory we can list, otherwise the run is aborted."""
        if not os.path.isdir(self.root_dir):
            error_msg = f"Not a directory or does not exist: {self.root_dir}"
            logger.error(error_msg)
            raise FatalError(error_msg, self.root_dir)
        try:
            with os.scandir(self.root_dir):
                pass
        except OSError as e:
            error_msg = f"Cannot open scan root: {e.strerror or e}"
            logger.error(error_msg)
            raise FatalError(error_msg, self.root_dir) from e

    def walk(self, stopped_flag: Optional[Callable[[], bool]] = None) -> Iterator[FileRecord]:
        logger.debug(f"Walking directory: {self.root_dir}")
        start_time = time.monotonic()
        emitted = 0

        for root, dirs, files in os.walk(self.root_dir, onerror=self._on_walk_error, followlinks=False):
            if stopped_flag and stopped_flag():
                logger.debug("Walk interrupted")
                return

            # Pre-filter subdirectories BEFORE os.walk enters them
            dirs[:] = [d for d in dirs if not self._is_excluded(os.path.join(root, d))]

            for filename in files:
                record = self._process_file(os.path.join(root, filename))
                if record is not None:
                    emitted += 1
                    yield record

        logger.debug(f"Walk finished in {time.monotonic() - start_time:.2f}s, {emitted} files emitted")

    def run(self, context: PipelineContext) -> None:
        """Feed every discovered record into the pipeline, then signal completion."""
        try:
            for record in self.walk(stopped_flag=context.is_cancelled):
                if not context.dispatch(record):
                    break
        finally:
            context.walker_done.set()

    def _process_file(self, path: str) -> Optional[FileRecord]:
        try:
            st = os.lstat(path)
        except OSError as e:
            self._report(TraversalError(f"Cannot stat entry: {e.strerror or e}", path))
            return None

        # lstat: symlinks, devices, sockets and fifos are all rejected here
        if not stat.S_ISREG(st.st_mode):
            logger.debug(f"Skipping non-regular entry: {path}")
            return None

        if st.st_size == 0:
            logger.debug(f"Skipping zero-byte file: {path}")
            return None

        return FileRecord(path=path, size=st.st_size, modified=st.st_mtime_ns)

    def _is_excluded(self, path: str) -> bool:
        if not self.excluded_dirs:
            return False
        normalized = os.path.normpath(path)
        if normalized in self.excluded_dirs:
            logger.debug(f"Skipping excluded directory: {path}")
            return True
        return False

    def _on_walk_error(self, error: OSError) -> None:
        path = error.filename or self.root_dir
        self._report(TraversalError(f"Cannot list directory: {error.strerror or error}", path))

    def _report(self, error: TraversalError) -> None:
        logger.warning(str(error))
        if self.on_error:
            self.on_error(error)
