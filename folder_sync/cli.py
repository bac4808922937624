from __future__ import annotations
import argparse
import json
import uvicorn
from .settings import Settings
from .logging_setup import setup_logging, get_logger
from .orchestrator import SyncService, exit_code
from .plan_store import PlanStoreError
from .api import create_app

log = get_logger("folder_sync.cli")

def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--source", help="Source root (authoritative tree)")
    p.add_argument("--backup", help="Backup root (mirror tree)")
    p.add_argument("--plan-dir", help="Directory holding persisted plans")
    p.add_argument("--deadline-minutes", type=float, help="Do not start new work after this many minutes")
    p.add_argument("--ignore", action="append", help="Directory name to skip (repeatable)")

def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides = {}
    if getattr(args, "source", None):
        overrides["source_root"] = args.source
    if getattr(args, "backup", None):
        overrides["backup_root"] = args.backup
    if getattr(args, "plan_dir", None):
        overrides["plan_dir"] = args.plan_dir
    if getattr(args, "deadline_minutes", None) is not None:
        overrides["deadline_minutes"] = args.deadline_minutes
    if getattr(args, "ignore", None):
        overrides["ignore_directories"] = args.ignore
    return Settings(**overrides)

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="folder-sync")
    sub = parser.add_subparsers(dest="cmd", required=True)

    plan_p = sub.add_parser("plan", help="Compute and persist a sync plan")
    _add_common(plan_p)

    sync_p = sub.add_parser("sync", help="Execute a persisted sync plan")
    _add_common(sync_p)
    sync_p.add_argument("--run", required=True, help="Run name, e.g. FolderSync_2024-05-01-03-00-00")

    run_p = sub.add_parser("run", help="Plan + sync")
    _add_common(run_p)

    runs_p = sub.add_parser("runs", help="List persisted runs")
    _add_common(runs_p)

    api_p = sub.add_parser("api", help="Run REST API (FastAPI)")
    _add_common(api_p)
    api_p.add_argument("--host", default="127.0.0.1")
    api_p.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)
    settings = _settings_from_args(args)
    setup_logging(settings)
    service = SyncService(settings)

    try:
        if args.cmd == "plan":
            store = service.create_plan()
            print(json.dumps(store.summary(), indent=2, ensure_ascii=False))
            return 0

        if args.cmd == "sync":
            store = service.open_run(args.run)
            service.sync(store)
            print(json.dumps(store.summary(), indent=2, ensure_ascii=False))
            return exit_code(store)

        if args.cmd == "run":
            return service.run()

        if args.cmd == "runs":
            for name in service.list_runs():
                print(name)
            return 0
    except (PlanStoreError, ValueError, OSError) as e:
        log.exception("folder-sync %s failed: %s", args.cmd, e)
        return 2

    if args.cmd == "api":
        app = create_app(settings)
        uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())
        return 0

    return 2

if __name__ == "__main__":
    raise SystemExit(main())
