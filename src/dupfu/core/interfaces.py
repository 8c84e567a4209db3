"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Defines core interfaces (Protocols) used throughout the detection pipeline.
These protocols enforce structural typing using Python's `typing.Protocol` so
components can be swapped in tests.

Key Components:
---------------
- FingerprintAlgorithm: Standardized interface for fast content checksums (xxHash variants).
- Fingerprinter: Streams one file through an algorithm and returns its fingerprint.
- FileWalker: Enumerates candidate files under a root.
- GroupListener / StatsListener: Callbacks the presentation layer plugs in.
"""

from typing import Protocol, Iterator, Optional, Callable, Tuple, Any
from dupfu.core.models import FileRecord, GroupSummary, StatsSnapshot


class FingerprintAlgorithm(Protocol):
    """
    Interface for fast, non-cryptographic checksum algorithms.
    """
    name: str

    @staticmethod
    def new() -> Any:
        """Returns a fresh incremental hasher exposing update() and digest()."""
        ...

    @staticmethod
    def hash(data: bytes) -> bytes:
        """Computes the digest of the provided byte data in one call."""
        ...


class Fingerprinter(Protocol):
    """Interface for computing the content fingerprint of one file."""

    def fingerprint(self, record: FileRecord) -> Tuple[bytes, int]:
        """
        Stream the file's content and return (fingerprint, bytes_read).

        Raises:
            ReadError: if the file cannot be opened or read.
        """
        ...


class FileWalker(Protocol):
    """
    Interface for enumerating qualifying files under a root directory.
    """

    def validate_root(self) -> None:
        """Raise FatalError when the root cannot be opened."""
        ...

    def walk(self, stopped_flag: Optional[Callable[[], bool]] = None) -> Iterator[FileRecord]:
        """Yield one FileRecord per regular, non-empty file."""
        ...


class GroupListener(Protocol):
    def __call__(self, summary: GroupSummary) -> None:
        ...


class StatsListener(Protocol):
    def __call__(self, snapshot: StatsSnapshot) -> None:
        ...
