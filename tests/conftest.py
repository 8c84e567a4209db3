"""
Shared fixtures for dupfu tests.
Creates isolated temporary directories with controlled content and modification times.
"""
import os
import pytest
import tempfile
from pathlib import Path
from typing import Dict, Optional
import sys

# Add src/ to sys.path so the 'dupfu' package is importable without installation
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from dupfu.core.models import ScanParams  # noqa: E402

SECOND_NS = 1_000_000_000


def write_file(path: Path, content: bytes, mtime: Optional[int] = None) -> Path:
    """Write content and pin the modification time (whole seconds since epoch)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    if mtime is not None:
        os.utime(path, ns=(mtime * SECOND_NS, mtime * SECOND_NS))
    return path


def make_params(root, **overrides) -> ScanParams:
    """Small queues and a fast stats interval keep tests quick and exercise backpressure."""
    options = dict(
        root_dir=str(root),
        workers=2,
        file_queue_size=4,
        fingerprint_queue_size=4,
        stats_interval=0.05,
    )
    options.update(overrides)
    return ScanParams(**options)


@pytest.fixture
def temp_dir():
    """Creates isolated temporary directory, auto-cleanup after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_files(temp_dir) -> Dict[str, Path]:
    """
    Creates controlled test files for duplicate scenarios:
    - 3 identical files (1KB of 'A') at t=1000, 1500, 2000, oldest is canonical
    - 2 identical files (2KB of 'B') at t=3000, 4000
    - 1 unique file
    - 1 empty file (never scanned)
    - 1 symlink to a duplicate (never scanned)
    """
    files = {}
    content_a = b"A" * 1024
    content_b = b"B" * 2048

    files["a_old"] = write_file(temp_dir / "a_old.txt", content_a, mtime=1000)
    files["a_mid"] = write_file(temp_dir / "subdir" / "a_mid.txt", content_a, mtime=1500)
    files["a_new"] = write_file(temp_dir / "a_new.txt", content_a, mtime=2000)

    files["b_old"] = write_file(temp_dir / "b_old.bin", content_b, mtime=3000)
    files["b_new"] = write_file(temp_dir / "subdir" / "deeper" / "b_new.bin", content_b, mtime=4000)

    files["unique"] = write_file(temp_dir / "unique.txt", b"C" * 1500, mtime=5000)
    files["empty"] = write_file(temp_dir / "empty.txt", b"", mtime=6000)

    link = temp_dir / "link_to_a.txt"
    try:
        link.symlink_to(files["a_old"])
        files["link"] = link
    except (OSError, NotImplementedError):
        pass

    return files
