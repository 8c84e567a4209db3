"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Data models for the duplicate detection pipeline and bulk actions.
"""

import bisect
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Optional

from dupfu.core.errors import DupFuError, TraversalError, ReadError, ActionError
from dupfu.utils.convert_utils import ConvertUtils


# =============================
# Enums
# =============================

class Severity(Enum):
    """
    Banding of the duplicate percentage, consumed by presentation layers for color-coding.
    """
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def color(self) -> str:
        mapping = {
            Severity.LOW: "green",
            Severity.MEDIUM: "yellow",
            Severity.HIGH: "red",
        }
        return mapping[self]

    @classmethod
    def from_percent(cls, percent: Optional[float]) -> Optional["Severity"]:
        """<5% low, 5-15% medium, >15% high. None when the percentage is unavailable."""
        if percent is None:
            return None
        if percent < PipelineConfig.MEDIUM_SEVERITY_PERCENT:
            return cls.LOW
        if percent <= PipelineConfig.HIGH_SEVERITY_PERCENT:
            return cls.MEDIUM
        return cls.HIGH


# ======================
#  Core Data Models
# ======================

@dataclass
class FileRecord:
    """
    One regular, non-empty file discovered at scan time.
    Created by the walker without a fingerprint; a fingerprinter worker fills it in.
    """
    path: str
    size: int  # in bytes
    modified: int  # st_mtime_ns
    fingerprint: Optional[bytes] = None
    name: Optional[str] = None

    def __post_init__(self):
        if self.name is None:
            self.name = os.path.basename(self.path)

    @property
    def fingerprint_hex(self) -> Optional[str]:
        return self.fingerprint.hex() if self.fingerprint is not None else None

    def __repr__(self):
        return f"<FileRecord path={self.path}, size={self.size}>"


@dataclass(frozen=True)
class GroupSummary:
    """
    External, display-ready view of one duplicate group.
    `key` is the hex fingerprint and stays stable when the canonical member changes,
    so a listing can update an existing row in place.
    """
    key: str
    canonical_path: str
    duplicate_count: int
    duplicates_label: str


@dataclass
class DuplicateGroup:
    """
    Files sharing one fingerprint, kept ascending by modification time.
    files[0] is the canonical file, files[1:] are its duplicates.
    """
    key: bytes
    files: List[FileRecord] = field(default_factory=list)

    def add_file(self, record: FileRecord) -> None:
        """Ordered insertion; equal modification times keep arrival order."""
        if record.fingerprint != self.key:
            raise ValueError("Cannot add file with a different fingerprint to a group.")
        bisect.insort(self.files, record, key=lambda f: f.modified)

    @property
    def canonical(self) -> FileRecord:
        return self.files[0]

    @property
    def duplicates(self) -> List[FileRecord]:
        return self.files[1:]

    @property
    def duplicate_count(self) -> int:
        """How many non-canonical files are in this group."""
        return max(0, len(self.files) - 1)

    @property
    def duplicate_bytes(self) -> int:
        return sum(f.size for f in self.files[1:])

    def is_duplicate(self) -> bool:
        """True if this group contains at least two files."""
        return len(self.files) >= 2

    def summary(self) -> GroupSummary:
        duplicates = self.duplicates
        label = duplicates[0].path if duplicates else ""
        if len(duplicates) > 1:
            label += f" (+{len(duplicates) - 1:,} more)"
        return GroupSummary(
            key=self.key.hex(),
            canonical_path=self.canonical.path,
            duplicate_count=len(duplicates),
            duplicates_label=label,
        )

    def copy(self) -> "DuplicateGroup":
        return DuplicateGroup(key=self.key, files=list(self.files))

    def __repr__(self):
        return f"<DuplicateGroup key={self.key.hex()}, count={len(self.files)}>"


@dataclass(frozen=True)
class DuplicateEntry:
    """One non-canonical file paired with the canonical file it duplicates."""
    path: str
    size: int
    canonical_path: str


@dataclass
class ScanStats:
    """
    Running counters. Mutated only by the aggregator, under its lock.
    """
    started_at: float
    files_scanned: int = 0
    total_bytes: int = 0
    duplicate_count: int = 0
    duplicate_bytes: int = 0
    scan_complete: bool = False
    finished_at: Optional[float] = None


@dataclass(frozen=True)
class StatsSnapshot:
    """
    Consistent, read-only copy of the scan counters plus derived metrics.
    """
    elapsed_seconds: float
    files_scanned: int
    total_bytes: int
    duplicate_count: int
    duplicate_bytes: int
    scan_complete: bool

    @property
    def throughput(self) -> float:
        """Bytes per second read so far."""
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.total_bytes / self.elapsed_seconds

    @property
    def duplicate_percent(self) -> Optional[float]:
        """Share of scanned bytes that are duplicates; None while nothing was scanned."""
        if self.total_bytes <= 0:
            return None
        return self.duplicate_bytes / self.total_bytes * 100

    @property
    def severity(self) -> Optional[Severity]:
        return Severity.from_percent(self.duplicate_percent)

    def format_lines(self) -> List[str]:
        return [
            f"Elapsed: {int(self.elapsed_seconds):,} seconds",
            f"Scanned: {self.files_scanned:,}",
            f"Size: {ConvertUtils.bytes_to_human(self.total_bytes)}",
            f"Read Speed: {ConvertUtils.rate_to_human(self.throughput)}",
            f"Duplicates: {self.duplicate_count:,}",
            f"Duplicate Size: {ConvertUtils.bytes_to_human(self.duplicate_bytes)}",
            f"Duplicate Percent: {ConvertUtils.percent_to_human(self.duplicate_percent)}",
            f"Finished: {'Yes' if self.scan_complete else 'No'}",
        ]


@dataclass
class ScanReport:
    """Non-fatal errors accumulated during one scan run."""
    errors: List[DupFuError] = field(default_factory=list)
    cancelled: bool = False

    @property
    def traversal_errors(self) -> List[TraversalError]:
        return [e for e in self.errors if isinstance(e, TraversalError)]

    @property
    def read_errors(self) -> List[ReadError]:
        return [e for e in self.errors if isinstance(e, ReadError)]


@dataclass
class ScanResult:
    """Point-in-time result of a scan: registry snapshot, final stats and error report."""
    groups: Dict[bytes, DuplicateGroup]
    stats: StatsSnapshot
    report: ScanReport

    @property
    def duplicate_groups(self) -> List[DuplicateGroup]:
        return [g for g in self.groups.values() if g.is_duplicate()]

    def duplicate_entries(self) -> List[DuplicateEntry]:
        return collect_duplicate_entries(self.groups.values())


@dataclass
class ActionResult:
    """Outcome of one bulk action: how many files succeeded and which ones failed."""
    success_count: int = 0
    errors: List[ActionError] = field(default_factory=list)
    cancelled: bool = False
    destination: Optional[str] = None

    @property
    def failed_count(self) -> int:
        return len(self.errors)


def collect_duplicate_entries(groups) -> List[DuplicateEntry]:
    """All non-canonical members across groups with two or more files."""
    entries = []
    for group in groups:
        if not group.is_duplicate():
            continue
        canonical = group.canonical
        for record in group.duplicates:
            entries.append(DuplicateEntry(
                path=record.path,
                size=record.size,
                canonical_path=canonical.path,
            ))
    return entries


# =============================
# Configuration
# =============================

class PipelineConfig:
    FILE_QUEUE_SIZE = 200
    FINGERPRINT_QUEUE_SIZE = 100
    READ_BUFFER_SIZE = 2 * 1024 * 1024
    STATS_INTERVAL = 1.0
    QUEUE_POLL_INTERVAL = 0.05
    DEFAULT_ALGORITHM = "xxh64"
    DEFAULT_TARGET_NAME = ".dup-fu"
    MANIFEST_NAME = "duplicates.txt"
    MEDIUM_SEVERITY_PERCENT = 5.0
    HIGH_SEVERITY_PERCENT = 15.0

    @staticmethod
    def default_workers() -> int:
        return os.cpu_count() or 1


"""
DTO for scan parameters with built-in validation.
Interface-agnostic — used by the CLI and any other front end.
"""

@dataclass
class ScanParams:
    """Parameters for one scan run with validation."""
    root_dir: str
    target_dir: Optional[str] = None
    workers: int = field(default_factory=PipelineConfig.default_workers)
    excluded_dirs: List[str] = field(default_factory=list)
    read_buffer_size: int = PipelineConfig.READ_BUFFER_SIZE
    file_queue_size: int = PipelineConfig.FILE_QUEUE_SIZE
    fingerprint_queue_size: int = PipelineConfig.FINGERPRINT_QUEUE_SIZE
    stats_interval: float = PipelineConfig.STATS_INTERVAL
    algorithm: str = PipelineConfig.DEFAULT_ALGORITHM
    file_timeout: Optional[float] = None

    def __post_init__(self):
        """Validate parameters immediately after creation."""
        if not self.root_dir:
            raise ValueError("Root directory cannot be empty")

        if self.workers < 1:
            raise ValueError("At least one fingerprint worker is required")

        if self.read_buffer_size <= 0:
            raise ValueError("Read buffer size must be positive")

        if self.file_queue_size <= 0 or self.fingerprint_queue_size <= 0:
            raise ValueError("Queue sizes must be positive")

        if self.stats_interval <= 0:
            raise ValueError("Stats interval must be positive")

        if self.file_timeout is not None and self.file_timeout <= 0:
            raise ValueError("File timeout must be positive")

        self.root_dir = os.path.abspath(self.root_dir)
        if not self.target_dir:
            self.target_dir = os.path.join(self.root_dir, PipelineConfig.DEFAULT_TARGET_NAME)
        self.target_dir = os.path.abspath(self.target_dir)

        # The target directory lives inside the root by default; never rescan it
        excluded = [os.path.abspath(d) for d in self.excluded_dirs]
        if self.target_dir not in excluded and _is_within(self.target_dir, self.root_dir):
            excluded.append(self.target_dir)
        self.excluded_dirs = excluded


def _is_within(path: str, root: str) -> bool:
    path = os.path.normpath(path)
    root = os.path.normpath(root)
    return path == root or path.startswith(root.rstrip(os.sep) + os.sep)
