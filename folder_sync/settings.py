from __future__ import annotations
from pathlib import Path
from typing import List, Literal, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_IGNORE_DIRECTORIES = ["found.000", "$RECYCLE.BIN", "System Volume Information"]

class Settings(BaseSettings):
    source_root: Optional[Path] = Field(default=None, alias="SYNC_SOURCE_ROOT")
    backup_root: Optional[Path] = Field(default=None, alias="SYNC_BACKUP_ROOT")
    plan_dir: Path = Field(default=Path("sync-plans"), alias="SYNC_PLAN_DIR")

    ignore_directories: List[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORE_DIRECTORIES),
        alias="SYNC_IGNORE_DIRECTORIES",
    )
    deadline_minutes: float = Field(default=180, alias="SYNC_DEADLINE_MINUTES")
    update_strategy: Literal["replace", "legacy"] = Field(default="replace", alias="SYNC_UPDATE_STRATEGY")
    skip_succeeded: bool = Field(default=False, alias="SYNC_SKIP_SUCCEEDED")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")
    log_file: Optional[Path] = Field(default=None, alias="LOG_FILE")

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    def require_roots(self) -> tuple[Path, Path]:
        if self.source_root is None or self.backup_root is None:
            raise ValueError("Both source_root and backup_root must be configured")
        return self.source_root, self.backup_root
