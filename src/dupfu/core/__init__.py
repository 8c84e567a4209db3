"""
Core detection engine — walker, fingerprint pool, aggregator and stats reporter.

This package contains the concurrent foundation of dupfu:
- FileWalkerImpl: recursive traversal emitting regular, non-empty files
- StreamingHasherImpl + xxHash algorithms: bounded-memory content fingerprints
- FingerprinterPool: N worker threads between two bounded queues
- Aggregator: single-writer registry of duplicate groups with live counters
- StatsReporter: periodic read-only snapshots
- Models: FileRecord, DuplicateGroup, ScanParams and friends

All components are pure Python with no presentation dependencies.
"""

from .errors import DupFuError, TraversalError, ReadError, ActionError, FatalError
from .models import (
    FileRecord, DuplicateGroup, DuplicateEntry, GroupSummary, ScanStats, StatsSnapshot,
    Severity, ScanParams, ScanReport, ScanResult, ActionResult, PipelineConfig)
from .context import PipelineContext
from .walker import FileWalkerImpl
from .hasher import StreamingHasherImpl, XXHashAlgorithmImpl, XXH3AlgorithmImpl, XXH128AlgorithmImpl, get_algorithm
from .pool import FingerprinterPool
from .aggregator import Aggregator
from .reporter import StatsReporter

__all__ = [
    "DupFuError",
    "TraversalError",
    "ReadError",
    "ActionError",
    "FatalError",
    "FileRecord",
    "DuplicateGroup",
    "DuplicateEntry",
    "GroupSummary",
    "ScanStats",
    "StatsSnapshot",
    "Severity",
    "ScanParams",
    "ScanReport",
    "ScanResult",
    "ActionResult",
    "PipelineConfig",
    "PipelineContext",
    "FileWalkerImpl",
    "StreamingHasherImpl",
    "XXHashAlgorithmImpl",
    "XXH3AlgorithmImpl",
    "XXH128AlgorithmImpl",
    "get_algorithm",
    "FingerprinterPool",
    "Aggregator",
    "StatsReporter",
]
