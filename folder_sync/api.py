from __future__ import annotations
from typing import Optional
from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel
from .settings import Settings
from .orchestrator import SyncService
from .plan_store import PlanStoreError

class ActionResult(BaseModel):
    ok: bool
    detail: str | None = None
    data: dict | None = None

def create_app(settings: Settings, service: Optional[SyncService] = None) -> FastAPI:
    app = FastAPI(title="Folder Sync API", version="0.1.0")
    svc = service or SyncService(settings)

    def _open(name: str):
        try:
            return svc.open_run(name)
        except PlanStoreError:
            raise HTTPException(status_code=404, detail="run_not_found")

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.get("/runs")
    def runs():
        return {"ok": True, "runs": svc.list_runs()}

    @app.get("/runs/{name}")
    def get_run(name: str):
        store = _open(name)
        return {"ok": True, "summary": store.summary(), "plan": store.read_plan().to_dict()}

    @app.post("/plan", response_model=ActionResult)
    def plan():
        try:
            store = svc.create_plan()
        except (ValueError, FileNotFoundError) as e:
            raise HTTPException(status_code=400, detail=str(e))
        return ActionResult(ok=True, detail=store.name, data=store.summary())

    @app.post("/runs/{name}/sync", response_model=ActionResult)
    def sync(name: str, deadline_minutes: float | None = Query(default=None, ge=0)):
        store = _open(name)
        report = svc.sync(store, guard=svc.guard(deadline_minutes))
        return ActionResult(ok=not report.has_failures, detail=store.name, data=report.to_dict())

    return app
