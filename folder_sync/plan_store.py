"""
File-based persistence for sync plans.

Every run gets its own JSON document, named by its creation time:

    plan_dir/
    ├── FolderSync_2024-05-01-03-00-00.json
    └── FolderSync_2024-05-02-03-00-00.json

A document holds run metadata plus the full action list. The differ's plan
is written once; the executor later rewrites outcomes of the same actions.
"""

from __future__ import annotations
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from pydantic import BaseModel, Field, ValidationError

from .logging_setup import get_logger
from .planner import Plan, PlanAction

log = get_logger("folder_sync.store")

RUN_PREFIX = "FolderSync_"
RUN_TIME_FORMAT = "%Y-%m-%d-%H-%M-%S"


class PlanStoreError(RuntimeError):
    pass


class RunDocument(BaseModel):
    """On-disk shape of one run."""
    name: str
    source_root: str
    backup_root: str
    created_at: datetime
    planned_at: Optional[datetime] = None
    last_executed_at: Optional[datetime] = None
    actions: List[PlanAction] = Field(default_factory=list)


class PlanStore:
    def __init__(self, path: Path):
        self.path = Path(path)

    @property
    def name(self) -> str:
        return self.path.stem

    # ---------------- Run management ----------------
    @classmethod
    def create(
        cls,
        plan_dir: Path,
        source_root: Path,
        backup_root: Path,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> "PlanStore":
        """Create a new, distinct run store named after the current time."""
        plan_dir = Path(plan_dir)
        plan_dir.mkdir(parents=True, exist_ok=True)
        now = clock()
        base = f"{RUN_PREFIX}{now.strftime(RUN_TIME_FORMAT)}"
        path = plan_dir / f"{base}.json"
        n = 1
        while path.exists():
            path = plan_dir / f"{base}-{n}.json"
            n += 1

        store = cls(path)
        store._save(RunDocument(
            name=path.stem,
            source_root=str(source_root),
            backup_root=str(backup_root),
            created_at=now.astimezone(timezone.utc),
        ))
        log.info("Created plan store: %s", path)
        return store

    @classmethod
    def open(cls, plan_dir: Path, name: str) -> "PlanStore":
        path = Path(plan_dir) / f"{name}.json"
        if not path.is_file():
            raise PlanStoreError(f"Plan store not found: {path}")
        return cls(path)

    @staticmethod
    def list_runs(plan_dir: Path) -> List[str]:
        plan_dir = Path(plan_dir)
        if not plan_dir.is_dir():
            return []
        return sorted(p.stem for p in plan_dir.glob(f"{RUN_PREFIX}*.json"))

    # ---------------- Plan operations ----------------
    def write_plan(self, plan: Plan) -> Plan:
        """Persist the full action set, assigning ids in plan order."""
        doc = self._load()
        if doc.actions:
            raise PlanStoreError(f"Plan already written for run {doc.name}")
        for i, action in enumerate(plan.actions, start=1):
            action.id = i
        doc.actions = list(plan.actions)
        doc.planned_at = datetime.now(timezone.utc)
        self._save(doc)
        log.info("Saved %d planned actions to %s", len(plan), self.path)
        return plan

    def read_plan(self) -> Plan:
        doc = self._load()
        return Plan(actions=list(doc.actions))

    def write_outcomes(self, plan: Plan) -> None:
        """Update outcome/message of previously persisted actions, matched by id."""
        doc = self._load()
        by_id = {a.id: a for a in doc.actions}
        for action in plan.actions:
            stored = by_id.get(action.id)
            if stored is None:
                raise PlanStoreError(f"Unknown action id {action.id} for run {doc.name}")
            stored.outcome = action.outcome
            stored.message = action.message
        doc.last_executed_at = datetime.now(timezone.utc)
        self._save(doc)
        log.info("Updated outcomes for %d actions in %s", len(plan), self.path)

    def summary(self) -> Dict[str, Any]:
        doc = self._load()
        plan = Plan(actions=list(doc.actions))
        return {
            "name": doc.name,
            "source_root": doc.source_root,
            "backup_root": doc.backup_root,
            "created_at": doc.created_at.isoformat(),
            "planned_at": doc.planned_at.isoformat() if doc.planned_at else None,
            "last_executed_at": doc.last_executed_at.isoformat() if doc.last_executed_at else None,
            "total": len(plan),
            "counts": plan.counts(),
        }

    # ---------------- Internal helpers ----------------
    def _load(self) -> RunDocument:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return RunDocument.model_validate(raw)
        except (json.JSONDecodeError, ValidationError) as e:
            log.error("Failed to load %s: %s", self.path, e)
            raise PlanStoreError(f"Corrupt plan store {self.path}: {e}") from e

    def _save(self, doc: RunDocument) -> None:
        # temp file + rename keeps the previous document intact on failure
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        temp_path.write_text(json.dumps(doc.model_dump(mode="json"), indent=2), encoding="utf-8")
        temp_path.replace(self.path)
