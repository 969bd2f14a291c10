"""taskmgr HTTP API (FastAPI).

Run with:  uvicorn --factory ui.app:create_app

Handlers are async so every state access happens on the event loop
thread, the same thread the reminder timer fires on.
"""

from __future__ import annotations

import os
import secrets
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from core import (
    CANCELLED,
    AsyncioTimer,
    CollectingSink,
    EditInput,
    Persistence,
    Settings,
    Submitted,
    TaskApp,
    build_app,
    compute_progress,
    filter_tasks,
)


# ── Auth ──────────────────────────────────────────────────────

security = HTTPBasic(auto_error=False)


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("TASKMGR_USERNAME", "")
    expected_password = os.environ.get("TASKMGR_PASSWORD", "")

    if not expected_username or not expected_password:
        return "guest"

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


def _core(request: Request) -> TaskApp:
    return request.app.state.core


def _edit_input(payload: dict[str, Any], key: str) -> EditInput:
    """Absent or null means 'submitted empty' (keep the old value); {"cancelled": true} aborts."""
    if payload.get("cancelled"):
        return CANCELLED
    return Submitted(str(payload.get(key) or ""))


# ── App factory ───────────────────────────────────────────────


def create_app(
    root: Path | None = None,
    *,
    settings: Settings | None = None,
    persistence: Persistence | None = None,
    hooks: bool = True,
) -> FastAPI:
    inbox = CollectingSink()
    core = build_app(
        AsyncioTimer(),
        root=root,
        settings=settings,
        persistence=persistence,
        sinks=[inbox],
        hooks=hooks,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        core.manager.refresh()
        core.reminders.resume()
        yield
        core.shutdown()

    app = FastAPI(title="taskmgr", version="0.1.0", lifespan=lifespan)
    app.state.core = core
    app.state.inbox = inbox

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"ok": "true"}

    @app.get("/api/state")
    async def api_state(request: Request, username: str = Depends(get_current_user)) -> dict[str, Any]:
        """Full state plus per-project progress."""
        c = _core(request)
        data = c.store.data.to_dict()
        data["progress"] = {p.id: compute_progress(p).to_dict() for p in c.store.data.projects}
        data["remindersRunning"] = c.reminders.running
        return data

    @app.get("/api/notifications")
    async def api_notifications(request: Request, username: str = Depends(get_current_user)) -> dict[str, Any]:
        """Drain notifications emitted since the last call."""
        items = request.app.state.inbox.drain()
        return {"notifications": [n.to_dict() for n in items]}

    # ── Projects ──────────────────────────────────────────────

    @app.post("/api/projects")
    async def api_create_project(
        request: Request, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)
    ) -> dict[str, Any]:
        project = _core(request).manager.create_project(str(payload.get("name") or ""))
        if project is None:
            raise HTTPException(status_code=400, detail="Project name is required")
        return {"ok": True, "project": project.to_dict()}

    @app.post("/api/projects/{project_id}/select")
    async def api_select_project(
        project_id: str, request: Request, username: str = Depends(get_current_user)
    ) -> dict[str, Any]:
        project = _core(request).manager.select_project(project_id)
        if project is None:
            raise HTTPException(status_code=404, detail=f"Project not found: {project_id}")
        return {"ok": True, "activeProjectId": project.id}

    @app.delete("/api/projects/{project_id}")
    async def api_delete_project(
        project_id: str, request: Request, username: str = Depends(get_current_user)
    ) -> dict[str, Any]:
        c = _core(request)
        project = c.manager.delete_project(project_id)
        if project is None:
            raise HTTPException(status_code=404, detail=f"Project not found: {project_id}")
        return {"ok": True, "project_id": project.id, "activeProjectId": c.store.data.active_project_id}

    @app.get("/api/projects/{project_id}/tasks")
    async def api_list_tasks(
        project_id: str, request: Request, filter: str = "all", username: str = Depends(get_current_user)
    ) -> dict[str, Any]:
        project = _core(request).store.find_project(project_id)
        if project is None:
            raise HTTPException(status_code=404, detail=f"Project not found: {project_id}")
        return {"filter": filter, "tasks": [t.to_dict() for t in filter_tasks(project.tasks, filter)]}

    @app.get("/api/projects/{project_id}/progress")
    async def api_progress(
        project_id: str, request: Request, username: str = Depends(get_current_user)
    ) -> dict[str, Any]:
        project = _core(request).store.find_project(project_id)
        if project is None:
            raise HTTPException(status_code=404, detail=f"Project not found: {project_id}")
        return compute_progress(project).to_dict()

    @app.post("/api/projects/{project_id}/complete_all")
    async def api_complete_all(
        project_id: str, request: Request, username: str = Depends(get_current_user)
    ) -> dict[str, Any]:
        c = _core(request)
        if c.store.find_project(project_id) is None:
            raise HTTPException(status_code=404, detail=f"Project not found: {project_id}")
        project = c.manager.complete_all(project_id)
        return {"ok": True, "project": project.to_dict() if project else None}

    # ── Tasks ─────────────────────────────────────────────────

    @app.post("/api/tasks")
    async def api_add_task(
        request: Request, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)
    ) -> dict[str, Any]:
        """Add a task to the active project."""
        c = _core(request)
        no_project = c.store.get_active_project() is None
        task = c.manager.add_task(str(payload.get("title") or ""), str(payload.get("deadline") or ""))
        if task is None:
            if no_project:
                raise HTTPException(status_code=409, detail="Select a project first")
            raise HTTPException(status_code=400, detail="A title and a valid deadline are required")
        return {"ok": True, "task": task.to_dict()}

    @app.put("/api/tasks/{task_id}")
    async def api_edit_task(
        task_id: str, request: Request, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)
    ) -> dict[str, Any]:
        c = _core(request)
        if c.store.find_task(task_id) is None:
            raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
        task = c.manager.edit_task(task_id, _edit_input(payload, "title"), _edit_input(payload, "deadline"))
        return {"ok": True, "edited": task is not None, "task": c.store.find_task(task_id)[1].to_dict()}

    @app.post("/api/tasks/{task_id}/toggle")
    async def api_toggle_task(
        task_id: str, request: Request, payload: dict[str, Any] = Body(default={}), username: str = Depends(get_current_user)
    ) -> dict[str, Any]:
        c = _core(request)
        found = c.store.find_task(task_id)
        if found is None:
            raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
        completed = payload.get("completed")
        if completed is None:
            completed = not found[1].completed
        task = c.manager.toggle_task(task_id, bool(completed))
        return {"ok": True, "task": task.to_dict() if task else None}

    @app.delete("/api/tasks/{task_id}")
    async def api_delete_task(
        task_id: str, request: Request, username: str = Depends(get_current_user)
    ) -> dict[str, Any]:
        if _core(request).manager.delete_task(task_id) is None:
            raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
        return {"ok": True, "task_id": task_id}

    # ── Reminders ─────────────────────────────────────────────

    @app.post("/api/reminders/start")
    async def api_reminders_start(request: Request, username: str = Depends(get_current_user)) -> dict[str, Any]:
        c = _core(request)
        started = c.reminders.start()
        return {"ok": True, "changed": started, "running": c.reminders.running}

    @app.post("/api/reminders/stop")
    async def api_reminders_stop(request: Request, username: str = Depends(get_current_user)) -> dict[str, Any]:
        c = _core(request)
        stopped = c.reminders.stop()
        return {"ok": True, "changed": stopped, "running": c.reminders.running}

    return app
