"""
Tests for root mapping and the ignore rule.
"""

import pytest
from pathlib import Path

from folder_sync.fs_layout import build_layout


@pytest.fixture
def layout():
    return build_layout(Path("/data/src"), Path("/mnt/bak"), ["$RECYCLE.BIN"])


def test_to_backup_rebases_nested_path(layout):
    assert layout.to_backup(Path("/data/src/a/b.txt")) == Path("/mnt/bak/a/b.txt")


def test_to_source_rebases_nested_path(layout):
    assert layout.to_source(Path("/mnt/bak/a")) == Path("/data/src/a")


def test_root_name_recurring_in_path_is_not_rewritten(layout):
    """Only the leading root is replaced, not later occurrences of the same text."""
    mapped = layout.to_backup(Path("/data/src/data/src/x.txt"))
    assert mapped == Path("/mnt/bak/data/src/x.txt")


def test_path_outside_root_raises(layout):
    with pytest.raises(ValueError):
        layout.to_backup(Path("/elsewhere/file.txt"))


def test_ignore_matches_leaf_name_only(layout):
    assert layout.is_ignored(Path("/data/src/x/$RECYCLE.BIN"))
    assert not layout.is_ignored(Path("/data/src/$RECYCLE.BIN/inner"))
