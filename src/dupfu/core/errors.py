"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/errors.py
Error taxonomy for scanning and bulk actions.

Per-file errors (TraversalError, ReadError, ActionError) are never raised out of
the core: they are collected into ScanReport / ActionResult so one bad file never
stops its siblings. FatalError is raised and aborts only the operation it occurred in.
"""

from typing import Optional


class DupFuError(Exception):
    """Base class for every error produced by dupfu."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


class TraversalError(DupFuError):
    """An entry could not be visited while walking the tree."""


class ReadError(DupFuError):
    """A file could not be fingerprinted (open/read failure or size mismatch)."""


class ActionError(DupFuError):
    """A single file failed during delete, move or export."""


class FatalError(DupFuError):
    """Unrecoverable condition: scan root unreadable, destination not creatable."""
