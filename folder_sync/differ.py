"""
differ.py — Change-plan computation
-----------------------------------
Walks the source tree and the backup tree (depth-first, pre-order) and
emits the actions that make the backup mirror the source. Files are
compared by modification time only.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import List, Tuple
from .fs_layout import SyncLayout
from .logging_setup import get_logger
from .planner import Plan, PlanAction

log = get_logger("folder_sync.differ")


class DirectoryDiffer:
    def __init__(self, layout: SyncLayout):
        self.layout = layout

    def diff(self) -> Plan:
        src = self.layout.source_root
        dst = self.layout.backup_root
        if not src.is_dir():
            raise FileNotFoundError(f"Source root does not exist: {src}")

        plan = Plan()
        if not dst.is_dir():
            log.info("Backup root %s missing; planning full copy.", dst)
            plan.add(PlanAction.create_directory(str(dst)))
            self._walk_source(src, plan)
            return plan

        self._walk_source(src, plan)
        self._walk_backup(dst, plan)
        log.info("Computed plan with %d actions (%s -> %s)", len(plan), src, dst)
        return plan

    # ---------------- Forward (source) ----------------
    def _walk_source(self, directory: Path, plan: Plan) -> None:
        if directory != self.layout.source_root:
            if self.layout.is_ignored(directory):
                log.debug("Ignoring source directory %s", directory)
                return
            mirror = self.layout.to_backup(directory)
            if not mirror.is_dir():
                plan.add(PlanAction.create_directory(str(mirror)))

        files, subdirs = _list_entries(directory)
        for f in files:
            mirror = self.layout.to_backup(f)
            if not mirror.is_file():
                plan.add(PlanAction.copy_file(str(f), str(mirror)))
            elif f.stat().st_mtime_ns != mirror.stat().st_mtime_ns:
                plan.add(PlanAction.update_file(str(f), str(mirror)))

        for d in subdirs:
            self._walk_source(d, plan)

    # ---------------- Reverse (backup) ----------------
    def _walk_backup(self, directory: Path, plan: Plan) -> None:
        if directory != self.layout.backup_root:
            if self.layout.is_ignored(directory):
                log.debug("Ignoring backup directory %s", directory)
                return
            if not self.layout.to_source(directory).is_dir():
                # rmtree covers everything beneath
                plan.add(PlanAction.delete_directory(str(directory)))
                return

        files, subdirs = _list_entries(directory)
        for f in files:
            if not self.layout.to_source(f).is_file():
                plan.add(PlanAction.delete_file(str(f)))

        for d in subdirs:
            self._walk_backup(d, plan)


def _list_entries(directory: Path) -> Tuple[List[Path], List[Path]]:
    files: List[Path] = []
    subdirs: List[Path] = []
    with os.scandir(directory) as it:
        for entry in it:
            if entry.is_dir(follow_symlinks=False):
                subdirs.append(Path(entry.path))
            elif entry.is_file():
                files.append(Path(entry.path))
    files.sort(key=lambda p: p.name)
    subdirs.sort(key=lambda p: p.name)
    return files, subdirs
