"""
executor.py — Time-boxed plan execution
---------------------------------------
Loads a persisted plan, applies it in five fixed phases while consulting a
DeadlineGuard, and writes the per-action outcomes back to the store.

Phases run strictly in this order:
  1. delete directories
  2. create directories
  3. delete files
  4. update files
  5. copy files

Each action re-checks a filesystem precondition right before it runs; a
mismatch leaves the action's outcome untouched. Errors raised while applying
an action become a failure outcome and the phase carries on.
"""

from __future__ import annotations
import os
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from .deadline import DeadlineGuard
from .logging_setup import get_logger
from .plan_store import PlanStore
from .planner import ActionKind, Outcome, Plan, PlanAction, TargetKind

log = get_logger("folder_sync.executor")

ProgressSink = Callable[[str], None]


class UpdateStrategy(str, Enum):
    REPLACE = "replace"  # recopy over the stale backup copy
    LEGACY = "legacy"    # remove the *source*, then copy (original behaviour; copy fails)


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    detail: str = ""

    @classmethod
    def success(cls) -> "ActionResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, detail: str) -> "ActionResult":
        return cls(ok=False, detail=detail)


@dataclass
class ExecutionReport:
    stopped_by_deadline: bool = False
    attempted: Dict[str, int] = field(default_factory=dict)
    skipped: int = 0
    counts: Dict[str, int] = field(default_factory=dict)

    @property
    def has_failures(self) -> bool:
        return self.counts.get(Outcome.FAILURE.value, 0) > 0

    def to_dict(self) -> dict:
        return {
            "stopped_by_deadline": self.stopped_by_deadline,
            "attempted": dict(self.attempted),
            "skipped": self.skipped,
            "counts": dict(self.counts),
        }


PHASES: List[Tuple[str, TargetKind, ActionKind]] = [
    ("delete_directories", TargetKind.DIRECTORY, ActionKind.DELETE),
    ("create_directories", TargetKind.DIRECTORY, ActionKind.CREATE),
    ("delete_files", TargetKind.FILE, ActionKind.DELETE),
    ("update_files", TargetKind.FILE, ActionKind.UPDATE),
    ("copy_files", TargetKind.FILE, ActionKind.COPY),
]


class SyncExecutor:
    def __init__(
        self,
        store: PlanStore,
        guard: DeadlineGuard,
        *,
        update_strategy: UpdateStrategy = UpdateStrategy.REPLACE,
        skip_succeeded: bool = False,
        progress: Optional[ProgressSink] = None,
    ):
        self.store = store
        self.guard = guard
        self.update_strategy = UpdateStrategy(update_strategy)
        self.skip_succeeded = skip_succeeded
        self.progress = progress or log.info
        if self.update_strategy is UpdateStrategy.LEGACY:
            log.warning("Update strategy 'legacy' deletes source files before copying; use for parity testing only.")

    def run(self) -> ExecutionReport:
        plan = self.store.read_plan()
        report = self.execute(plan)
        self.progress("Updating sync plan outcomes.")
        self.store.write_outcomes(plan)
        return report

    def execute(self, plan: Plan) -> ExecutionReport:
        report = ExecutionReport()
        for name, target_kind, action_kind in PHASES:
            if not self.guard.may_start():
                report.stopped_by_deadline = True
                break
            actions = plan.select(target_kind, action_kind)
            self.progress(f"{name.replace('_', ' ').capitalize()}: {len(actions)} planned.")
            if not self._run_phase(name, actions, report):
                report.stopped_by_deadline = True
                break

        if report.stopped_by_deadline:
            log.info("Deadline %s reached; remaining actions left for a later run.", self.guard.cutoff)
        report.counts = plan.counts()
        return report

    def _run_phase(self, name: str, actions: List[PlanAction], report: ExecutionReport) -> bool:
        report.attempted.setdefault(name, 0)
        for action in actions:
            if not self.guard.may_start():
                return False
            if self.skip_succeeded and action.outcome is Outcome.SUCCESS:
                continue
            if not self._precondition(action):
                log.debug("Precondition no longer holds, skipping %s", action.describe())
                report.skipped += 1
                continue

            report.attempted[name] += 1
            result = self.apply(action)
            if result.ok:
                action.record_success()
            else:
                log.error("Failed to %s: %s", action.describe(), result.detail)
                action.record_failure(result.detail)
        return True

    # ---------------- Preconditions ----------------
    def _precondition(self, action: PlanAction) -> bool:
        if action.target_kind is TargetKind.DIRECTORY:
            if action.action_kind is ActionKind.DELETE:
                return Path(action.directory_path).is_dir()
            return not Path(action.directory_path).exists()

        dst = Path(action.destination_path)
        if action.action_kind is ActionKind.DELETE:
            return dst.is_file()
        src = Path(action.source_path)
        if action.action_kind is ActionKind.UPDATE:
            return src.is_file() and dst.is_file()
        return src.is_file() and not dst.exists()

    # ---------------- Application ----------------
    def apply(self, action: PlanAction) -> ActionResult:
        try:
            if action.target_kind is TargetKind.DIRECTORY:
                if action.action_kind is ActionKind.DELETE:
                    shutil.rmtree(action.directory_path)
                else:
                    Path(action.directory_path).mkdir(parents=True)
            elif action.action_kind is ActionKind.DELETE:
                Path(action.destination_path).unlink()
            elif action.action_kind is ActionKind.UPDATE:
                self.progress(f"Updating file: {action.destination_path}")
                self._update_file(Path(action.source_path), Path(action.destination_path))
            else:
                self.progress(f"Copying file: {action.source_path}")
                copy_file(Path(action.source_path), Path(action.destination_path))
        except Exception as e:
            return ActionResult.failure(f"{type(e).__name__}: {e}")
        return ActionResult.success()

    def _update_file(self, src: Path, dst: Path) -> None:
        if self.update_strategy is UpdateStrategy.LEGACY:
            src.unlink()
        copy_file(src, dst, replace=True)


def copy_file(src: Path, dst: Path, *, replace: bool = False) -> None:
    """
    Copy content into a temp sibling, give it the source's modification time,
    then move it into place. A failed copy never leaves a partial ``dst``.
    """
    tmp = dst.with_name(dst.name + ".tmp")
    try:
        with open(src, "rb") as fsrc, open(tmp, "wb") as fdst:
            shutil.copyfileobj(fsrc, fdst)
        st = os.stat(src)
        os.utime(tmp, ns=(st.st_atime_ns, st.st_mtime_ns))
        if not replace and dst.exists():
            raise FileExistsError(f"Destination appeared during copy: {dst}")
        os.replace(tmp, dst)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise
