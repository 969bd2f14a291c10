"""State store and persistence collaborators for taskmgr.

The store owns the single AppState instance. It is constructed once at
startup and handed to every component that reads or mutates state.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Protocol

from core.fileio import read_text, write_text_atomic
from core.models import AppState, Project, Task
from core.workspace import STORAGE_KEY, state_path

logger = logging.getLogger(__name__)


class Persistence(Protocol):
    """Reads and writes one serialized AppState blob under a fixed key."""

    def read(self) -> str | None: ...
    def write(self, payload: str) -> bool: ...


class JsonFilePersistence:
    """One JSON file per storage key, written atomically."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path if path is not None else state_path()

    def read(self) -> str | None:
        try:
            return read_text(self.path)
        except OSError:
            logger.exception("Failed to read state file %s", self.path)
            return None

    def write(self, payload: str) -> bool:
        try:
            write_text_atomic(self.path, payload)
        except OSError:
            logger.exception("Failed to write state file %s", self.path)
            return False
        return True


class MemoryPersistence:
    """Dict-backed persistence, keyed like the file store."""

    def __init__(self, initial: str | None = None, key: str = STORAGE_KEY) -> None:
        self.key = key
        self.blobs: dict[str, str] = {}
        self.writes = 0
        if initial is not None:
            self.blobs[key] = initial

    def read(self) -> str | None:
        return self.blobs.get(self.key)

    def write(self, payload: str) -> bool:
        self.blobs[self.key] = payload
        self.writes += 1
        return True


class StateStore:
    """Canonical in-memory AppState plus load/save hooks."""

    def __init__(self, persistence: Persistence) -> None:
        self.persistence = persistence
        self.data = AppState()

    def load(self) -> AppState:
        """Load state, falling back to the empty default on absent or corrupt data."""
        raw = self.persistence.read()
        if raw is None or not raw.strip():
            self.data = AppState()
            return self.data

        try:
            parsed = json.loads(raw)
        except ValueError:
            logger.warning("Stored state is not valid JSON; starting empty")
            self.data = AppState()
            return self.data

        if not isinstance(parsed, dict):
            logger.warning("Stored state is not an object; starting empty")
            self.data = AppState()
            return self.data

        self.data = AppState.from_dict(parsed)
        if self.data.active_project_id and self.get_active_project() is None:
            logger.warning("Active project %s no longer exists; resetting", self.data.active_project_id)
            self.data.active_project_id = self.data.projects[0].id if self.data.projects else None

        logger.info(
            "Loaded state: %d projects, active=%s, reminders=%s",
            len(self.data.projects),
            self.data.active_project_id,
            self.data.reminders_on,
        )
        return self.data

    def save(self) -> bool:
        """Serialize the whole state and hand it to persistence. Never raises."""
        payload = json.dumps(self.data.to_dict(), indent=2, ensure_ascii=False) + "\n"
        try:
            ok = self.persistence.write(payload)
        except Exception:
            logger.exception("Persistence write raised")
            ok = False
        if not ok:
            logger.error("State was not saved")
        return ok

    # ── Lookups ───────────────────────────────────────────────

    def get_active_project(self) -> Project | None:
        return self.find_project(self.data.active_project_id)

    def find_project(self, project_id: str | None) -> Project | None:
        if not project_id:
            return None
        for p in self.data.projects:
            if p.id == project_id:
                return p
        return None

    def find_task(self, task_id: str) -> tuple[Project, Task] | None:
        for project, task in self.iter_tasks():
            if task.id == task_id:
                return project, task
        return None

    def iter_tasks(self) -> Iterator[tuple[Project, Task]]:
        for project in self.data.projects:
            for task in project.tasks:
                yield project, task
