"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

hasher.py
Streams file content through pluggable xxHash algorithms.

StreamingHasherImpl never loads a whole file into memory: content is read in
chunks of at most `buffer_size` bytes and fed to an incremental hasher.
"""

import logging
import time
from typing import Callable, Dict, Optional, Tuple, Type

import xxhash

from dupfu.core.errors import ReadError
from dupfu.core.interfaces import Fingerprinter, FingerprintAlgorithm
from dupfu.core.models import FileRecord, PipelineConfig

logger = logging.getLogger(__name__)


# Use the same way to implement and use any other hashing algorithm
class XXHashAlgorithmImpl(FingerprintAlgorithm):
    name = "xxh64"

    @staticmethod
    def new():
        return xxhash.xxh64()

    @staticmethod
    def hash(data: bytes) -> bytes:
        return xxhash.xxh64(data).digest()


class XXH3AlgorithmImpl(FingerprintAlgorithm):
    name = "xxh3_64"

    @staticmethod
    def new():
        return xxhash.xxh3_64()

    @staticmethod
    def hash(data: bytes) -> bytes:
        return xxhash.xxh3_64(data).digest()


class XXH128AlgorithmImpl(FingerprintAlgorithm):
    name = "xxh128"

    @staticmethod
    def new():
        return xxhash.xxh3_128()

    @staticmethod
    def hash(data: bytes) -> bytes:
        return xxhash.xxh3_128(data).digest()


ALGORITHMS: Dict[str, Type[FingerprintAlgorithm]] = {
    XXHashAlgorithmImpl.name: XXHashAlgorithmImpl,
    XXH3AlgorithmImpl.name: XXH3AlgorithmImpl,
    XXH128AlgorithmImpl.name: XXH128AlgorithmImpl,
}


def get_algorithm(name: str) -> FingerprintAlgorithm:
    try:
        return ALGORITHMS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown fingerprint algorithm: '{name}'. "
            f"Valid options: {', '.join(ALGORITHMS)}"
        ) from None


class StreamingHasherImpl(Fingerprinter):
    """
    A fingerprinter that supports any algorithm via the FingerprintAlgorithm interface.

    Args:
        algorithm: checksum to use (xxHash64 by default)
        buffer_size: upper bound on bytes held in memory per read
        stopped_flag: checked between chunks so cancellation is not held up by large files
        timeout: optional wall-clock limit per file, checked between chunks
    """

    def __init__(
        self,
        algorithm: Optional[FingerprintAlgorithm] = None,
        buffer_size: int = PipelineConfig.READ_BUFFER_SIZE,
        stopped_flag: Optional[Callable[[], bool]] = None,
        timeout: Optional[float] = None,
    ):
        if buffer_size <= 0:
            raise ValueError("Buffer size must be positive")
        self.algorithm = algorithm or XXHashAlgorithmImpl()
        self.buffer_size = buffer_size
        self.stopped_flag = stopped_flag
        self.timeout = timeout

    def fingerprint(self, record: FileRecord) -> Tuple[bytes, int]:
        hasher = self.algorithm.new()
        bytes_read = 0
        started = time.monotonic()
        try:
            with open(record.path, "rb") as f:
                while True:
                    chunk = f.read(self.buffer_size)
                    if not chunk:
                        break
                    hasher.update(chunk)
                    bytes_read += len(chunk)

                    if self.stopped_flag and self.stopped_flag():
                        raise ReadError("Fingerprinting cancelled", record.path)
                    if self.timeout is not None and time.monotonic() - started > self.timeout:
                        raise ReadError(f"Read timed out after {self.timeout:g}s", record.path)
        except OSError as e:
            raise ReadError(f"Failed to read file: {e.strerror or e}", record.path) from e

        return hasher.digest(), bytes_read
