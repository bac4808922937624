"""
Tests for SyncService wiring, settings and the CLI entry point.
"""

import json
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from folder_sync.cli import main
from folder_sync.deadline import DeadlineGuard
from folder_sync.orchestrator import SyncService, exit_code
from folder_sync.planner import Outcome
from folder_sync.settings import DEFAULT_IGNORE_DIRECTORIES, Settings

from conftest import T1


@pytest.fixture
def settings(tmp_path, roots):
    source, backup = roots
    return Settings(source_root=source, backup_root=backup, plan_dir=tmp_path / "plans")


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SYNC_SOURCE_ROOT", raising=False)
        monkeypatch.delenv("SYNC_BACKUP_ROOT", raising=False)
        s = Settings()
        assert s.ignore_directories == DEFAULT_IGNORE_DIRECTORIES
        assert s.update_strategy == "replace"
        with pytest.raises(ValueError):
            s.require_roots()

    def test_env_aliases(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SYNC_SOURCE_ROOT", str(tmp_path / "s"))
        monkeypatch.setenv("SYNC_BACKUP_ROOT", str(tmp_path / "b"))
        monkeypatch.setenv("SYNC_IGNORE_DIRECTORIES", '["node_modules"]')
        monkeypatch.setenv("SYNC_DEADLINE_MINUTES", "3")
        s = Settings()
        assert s.require_roots() == (tmp_path / "s", tmp_path / "b")
        assert s.ignore_directories == ["node_modules"]
        assert s.deadline_minutes == 3

    def test_unknown_update_strategy_is_rejected_on_load(self):
        with pytest.raises(ValidationError):
            Settings(update_strategy="bogus")

    def test_unknown_update_strategy_from_env_is_rejected(self, monkeypatch):
        monkeypatch.setenv("SYNC_UPDATE_STRATEGY", "bogus")
        with pytest.raises(ValidationError):
            Settings()

    def test_legacy_update_strategy_from_env(self, monkeypatch):
        monkeypatch.setenv("SYNC_UPDATE_STRATEGY", "legacy")
        assert Settings().update_strategy == "legacy"


class TestSyncService:

    def test_plan_then_sync_in_separate_sessions(self, settings, write_file):
        write_file(settings.source_root / "a" / "file.txt", mtime_ns=T1)

        name = SyncService(settings).create_plan().name
        later = SyncService(settings)
        store = later.open_run(name)
        later.sync(store)

        assert (settings.backup_root / "a" / "file.txt").stat().st_mtime_ns == T1
        assert exit_code(store) == 0
        assert later.list_runs() == [name]

    def test_run_exit_code_reflects_failures(self, settings, write_file):
        write_file(settings.source_root / "f.txt")
        service = SyncService(settings)

        with patch("folder_sync.executor.copy_file", side_effect=PermissionError("denied")):
            rc = service.run()

        store = service.open_run(service.list_runs()[0])
        assert rc == 1
        action = store.read_plan().actions[0]
        assert action.outcome is Outcome.FAILURE
        assert "PermissionError: denied" == action.message

    def test_expired_guard_leaves_backup_untouched(self, settings, write_file):
        write_file(settings.source_root / "f.txt")
        now = datetime(2024, 1, 1)
        service = SyncService(settings, clock=lambda: now)
        store = service.create_plan()

        report = service.sync(store, guard=DeadlineGuard(now - timedelta(minutes=1), clock=lambda: now))

        assert report.stopped_by_deadline
        assert not (settings.backup_root / "f.txt").exists()

    def test_ignore_setting_reaches_differ(self, tmp_path, roots, write_file):
        source, backup = roots
        write_file(source / "keep" / "a.txt")
        write_file(source / "node_modules" / "b.txt")
        settings = Settings(source_root=source, backup_root=backup, plan_dir=tmp_path / "plans",
                            ignore_directories=["node_modules"])

        plan = SyncService(settings).create_plan().read_plan()

        assert all("node_modules" not in a.target_path for a in plan)
        assert len(plan) == 2


class TestCli:

    def _args(self, tmp_path, roots):
        source, backup = roots
        return ["--source", str(source), "--backup", str(backup), "--plan-dir", str(tmp_path / "plans")]

    def test_run_mirrors_tree(self, tmp_path, roots, write_file):
        source, backup = roots
        write_file(source / "x" / "y.txt", "payload")

        rc = main(["run"] + self._args(tmp_path, roots))

        assert rc == 0
        assert (backup / "x" / "y.txt").read_text(encoding="utf-8") == "payload"

    def test_plan_then_sync(self, tmp_path, roots, write_file, capsys):
        source, backup = roots
        write_file(source / "f.txt")

        assert main(["plan"] + self._args(tmp_path, roots)) == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["total"] == 1

        assert main(["sync", "--run", summary["name"]] + self._args(tmp_path, roots)) == 0
        assert (backup / "f.txt").exists()

    def test_unknown_run_exits_2(self, tmp_path, roots):
        assert main(["sync", "--run", "FolderSync_missing"] + self._args(tmp_path, roots)) == 2

    def test_missing_source_root_exits_2(self, tmp_path):
        args = ["--source", str(tmp_path / "nope"), "--backup", str(tmp_path), "--plan-dir", str(tmp_path / "p")]
        assert main(["plan"] + args) == 2
