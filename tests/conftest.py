import os
from pathlib import Path

import pytest

T0 = 1_600_000_000_000_000_000
T1 = 1_700_000_000_000_000_000


@pytest.fixture
def roots(tmp_path):
    """Empty source and backup roots."""
    source = tmp_path / "source"
    backup = tmp_path / "backup"
    source.mkdir()
    backup.mkdir()
    return source, backup


@pytest.fixture
def write_file():
    """Create a file (and its parents) with a fixed modification time."""
    def _write(path: Path, content: str = "data", mtime_ns: int = T0) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        os.utime(path, ns=(mtime_ns, mtime_ns))
        return path
    return _write
