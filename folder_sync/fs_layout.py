from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Iterable

@dataclass(frozen=True)
class SyncLayout:
    source_root: Path
    backup_root: Path
    ignore_directories: FrozenSet[str] = field(default_factory=frozenset)

    def to_backup(self, path: Path) -> Path:
        return _rebase(Path(path), self.source_root, self.backup_root)

    def to_source(self, path: Path) -> Path:
        return _rebase(Path(path), self.backup_root, self.source_root)

    def is_ignored(self, directory: Path) -> bool:
        return Path(directory).name in self.ignore_directories

def _rebase(path: Path, from_root: Path, to_root: Path) -> Path:
    # raises ValueError when path is not nested under from_root
    return to_root / path.relative_to(from_root)

def build_layout(source_root: Path, backup_root: Path, ignore: Iterable[str] = ()) -> SyncLayout:
    return SyncLayout(
        source_root=Path(source_root),
        backup_root=Path(backup_root),
        ignore_directories=frozenset(ignore),
    )
