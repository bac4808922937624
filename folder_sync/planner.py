from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, model_validator


class ActionKind(str, Enum):
    CREATE = "create"
    COPY = "copy"
    UPDATE = "update"
    DELETE = "delete"


class TargetKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


class Outcome(str, Enum):
    UNKNOWN = "unknown"
    SUCCESS = "success"
    FAILURE = "failure"


class PlanAction(BaseModel):
    """
    One unit of prescribed work against the backup tree.

    File actions carry ``source_path``/``destination_path`` (a file delete only
    the backup-side ``destination_path``); directory actions carry only
    ``directory_path``.
    """
    id: Optional[int] = None
    action_kind: ActionKind
    target_kind: TargetKind
    source_path: Optional[str] = None
    destination_path: Optional[str] = None
    directory_path: Optional[str] = None
    outcome: Outcome = Outcome.UNKNOWN
    message: str = ""

    @model_validator(mode="after")
    def _check_paths(self) -> "PlanAction":
        if self.target_kind is TargetKind.DIRECTORY:
            if self.action_kind not in (ActionKind.CREATE, ActionKind.DELETE):
                raise ValueError(f"directory actions cannot be '{self.action_kind.value}'")
            if not self.directory_path or self.source_path or self.destination_path:
                raise ValueError("directory actions populate only directory_path")
            return self

        if self.directory_path:
            raise ValueError("file actions must not populate directory_path")
        if self.action_kind is ActionKind.CREATE:
            raise ValueError("file actions cannot be 'create'")
        if self.action_kind is ActionKind.DELETE:
            if not self.destination_path or self.source_path:
                raise ValueError("file delete populates only destination_path")
        elif not (self.source_path and self.destination_path):
            raise ValueError(f"file {self.action_kind.value} needs source_path and destination_path")
        return self

    # ---------------- Factories ----------------
    @classmethod
    def create_directory(cls, path: str) -> "PlanAction":
        return cls(action_kind=ActionKind.CREATE, target_kind=TargetKind.DIRECTORY, directory_path=path)

    @classmethod
    def delete_directory(cls, path: str) -> "PlanAction":
        return cls(action_kind=ActionKind.DELETE, target_kind=TargetKind.DIRECTORY, directory_path=path)

    @classmethod
    def copy_file(cls, source: str, destination: str) -> "PlanAction":
        return cls(action_kind=ActionKind.COPY, target_kind=TargetKind.FILE,
                   source_path=source, destination_path=destination)

    @classmethod
    def update_file(cls, source: str, destination: str) -> "PlanAction":
        return cls(action_kind=ActionKind.UPDATE, target_kind=TargetKind.FILE,
                   source_path=source, destination_path=destination)

    @classmethod
    def delete_file(cls, path: str) -> "PlanAction":
        return cls(action_kind=ActionKind.DELETE, target_kind=TargetKind.FILE, destination_path=path)

    # ---------------- Helpers ----------------
    @property
    def target_path(self) -> str:
        """Path in the backup tree this action changes."""
        if self.target_kind is TargetKind.DIRECTORY:
            return self.directory_path or ""
        return self.destination_path or ""

    def describe(self) -> str:
        return f"{self.action_kind.value} {self.target_kind.value}: {self.target_path}"

    def record_success(self) -> None:
        self.outcome = Outcome.SUCCESS
        self.message = ""

    def record_failure(self, message: str) -> None:
        self.outcome = Outcome.FAILURE
        self.message = message


@dataclass
class Plan:
    actions: List[PlanAction] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.actions)

    def __iter__(self):
        return iter(self.actions)

    def add(self, action: PlanAction) -> None:
        self.actions.append(action)

    def select(self, target_kind: TargetKind, action_kind: ActionKind) -> List[PlanAction]:
        return [a for a in self.actions if a.target_kind is target_kind and a.action_kind is action_kind]

    def counts(self) -> Dict[str, int]:
        counts = {o.value: 0 for o in Outcome}
        for a in self.actions:
            counts[a.outcome.value] += 1
        return counts

    @property
    def has_failures(self) -> bool:
        return any(a.outcome is Outcome.FAILURE for a in self.actions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "actions": [a.model_dump(mode="json") for a in self.actions],
            "counts": self.counts(),
        }
