"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/verify_service.py
Byte-for-byte confirmation of a duplicate against its canonical file.
Fingerprints come from a fast, non-cryptographic checksum, so destructive
actions re-check content before removing or relocating anything.
"""
import filecmp
import os

from dupfu.core.errors import ActionError
from dupfu.core.models import DuplicateEntry


class VerifyService:
    @staticmethod
    def verify(entry: DuplicateEntry) -> None:
        """
        Raises ActionError unless the duplicate and its canonical file hold identical bytes.
        """
        if os.path.normpath(entry.path) == os.path.normpath(entry.canonical_path):
            raise ActionError("Duplicate and canonical file are the same path", entry.path)

        try:
            same = filecmp.cmp(entry.canonical_path, entry.path, shallow=False)
        except OSError as e:
            raise ActionError(f"Cannot verify against {entry.canonical_path}: {e.strerror or e}", entry.path) from e

        if not same:
            raise ActionError(f"Content differs from canonical file {entry.canonical_path}", entry.path)
