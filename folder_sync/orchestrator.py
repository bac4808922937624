from __future__ import annotations
from datetime import datetime, timedelta
from typing import List, Optional
from .settings import Settings
from .logging_setup import get_logger
from .fs_layout import SyncLayout, build_layout
from .differ import DirectoryDiffer
from .plan_store import PlanStore
from .deadline import Clock, DeadlineGuard
from .executor import ExecutionReport, ProgressSink, SyncExecutor, UpdateStrategy

log = get_logger("folder_sync.orch")

class SyncService:
    def __init__(self, settings: Settings, *, clock: Clock = datetime.now,
                 progress: Optional[ProgressSink] = None):
        self.settings = settings
        self.clock = clock
        self.progress = progress

    @property
    def layout(self) -> SyncLayout:
        source_root, backup_root = self.settings.require_roots()
        return build_layout(source_root, backup_root, self.settings.ignore_directories)

    def create_plan(self) -> PlanStore:
        layout = self.layout
        log.info("Creating sync plan: %s -> %s (ignoring %s)",
                 layout.source_root, layout.backup_root, sorted(layout.ignore_directories))
        plan = DirectoryDiffer(layout).diff()
        store = PlanStore.create(self.settings.plan_dir, layout.source_root, layout.backup_root, clock=self.clock)
        store.write_plan(plan)
        return store

    def open_run(self, name: str) -> PlanStore:
        return PlanStore.open(self.settings.plan_dir, name)

    def list_runs(self) -> List[str]:
        return PlanStore.list_runs(self.settings.plan_dir)

    def guard(self, deadline_minutes: Optional[float] = None) -> DeadlineGuard:
        minutes = self.settings.deadline_minutes if deadline_minutes is None else deadline_minutes
        return DeadlineGuard.after(timedelta(minutes=minutes), clock=self.clock)

    def sync(self, store: PlanStore, *, guard: Optional[DeadlineGuard] = None) -> ExecutionReport:
        guard = guard or self.guard()
        log.info("Syncing run %s (no new work after %s)", store.name, guard.cutoff)
        executor = SyncExecutor(
            store,
            guard,
            update_strategy=UpdateStrategy(self.settings.update_strategy),
            skip_succeeded=self.settings.skip_succeeded,
            progress=self.progress,
        )
        report = executor.run()
        log.info("Run %s finished: %s", store.name, report.counts)
        return report

    def run(self) -> int:
        """Plan + sync in one go; the deadline starts before planning."""
        guard = self.guard()
        store = self.create_plan()
        self.sync(store, guard=guard)
        return exit_code(store)

def exit_code(store: PlanStore) -> int:
    return 1 if store.read_plan().has_failures else 0
