"""
dupfu — concurrent duplicate file finder with bulk remediation.

Core features:
- Streaming xxHash fingerprints computed by a pool of worker threads
- Single-writer aggregation into duplicate groups (oldest file is canonical)
- Live statistics snapshots while the scan runs
- One-shot bulk actions: delete (optionally to system trash), move, export manifest
- CLI interface for headless usage
"""

from importlib.metadata import version as _version, PackageNotFoundError

try:
    __version__ = _version("dupfu")
except PackageNotFoundError:
    __version__ = "0.0.0"

# Public API: only what users should import directly
from dupfu.commands import ScanCommand
from dupfu.core import (
    ScanParams, ScanResult, FileRecord, DuplicateGroup, DuplicateEntry, GroupSummary,
    StatsSnapshot, Severity, ActionResult, FatalError)
from dupfu.utils.convert_utils import ConvertUtils
from dupfu.services import ActionService, ActionExecutor

__all__ = [
    "ScanCommand",
    "ScanParams",
    "ScanResult",
    "FileRecord",
    "DuplicateGroup",
    "DuplicateEntry",
    "GroupSummary",
    "StatsSnapshot",
    "Severity",
    "ActionResult",
    "FatalError",
    "ConvertUtils",
    "ActionService",
    "ActionExecutor",
    "__version__",
]
