"""User-intent operations on projects and tasks.

Every applied operation is one state transition, then a save, then a
view refresh (which may report a progress change), then the operation's
own notification. Invalid input is a silent no-op: no change, no save.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from zoneinfo import ZoneInfo

from core import notify
from core.models import CANCELLED, EditInput, Project, Task, parse_deadline
from core.notify import Notifier
from core.progress import ProgressTracker
from core.store import StateStore

logger = logging.getLogger(__name__)


def new_id() -> str:
    return secrets.token_hex(4)


class TaskManager:
    """Applies mutations to a StateStore and emits notifications."""

    def __init__(
        self,
        store: StateStore,
        notifier: Notifier,
        tracker: ProgressTracker | None = None,
        id_factory: Callable[[], str] = new_id,
        tz: ZoneInfo | None = None,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.tracker = tracker if tracker is not None else ProgressTracker()
        self.id_factory = id_factory
        self.tz = tz if tz is not None else ZoneInfo("UTC")

    # ── Internals ─────────────────────────────────────────────

    def _unique_id(self, taken: set[str]) -> str:
        while True:
            candidate = self.id_factory()
            if candidate not in taken:
                return candidate

    def _commit(self) -> None:
        if not self.store.save():
            self.notifier.emit(notify.SAVE_FAILED, "Save failed", "Changes could not be written to disk")
        self.refresh()

    def _valid_deadline(self, raw: str) -> bool:
        return parse_deadline(raw, self.tz) is not None

    def refresh(self) -> None:
        """View refresh: report a progress change on the active project, if any."""
        project = self.store.get_active_project()
        if project is None:
            return
        pct = self.tracker.observe(project)
        if pct is not None:
            self.notifier.emit(
                notify.PROGRESS_UPDATED,
                "Project progress updated",
                f"{project.name} is now {pct}% complete",
            )

    # ── Projects ──────────────────────────────────────────────

    def create_project(self, name: str) -> Project | None:
        name = (name or "").strip()
        if not name:
            return None
        data = self.store.data
        project = Project(id=self._unique_id({p.id for p in data.projects}), name=name)
        data.projects.insert(0, project)
        data.active_project_id = project.id
        logger.debug("Created project %s (%s)", project.id, name)
        self._commit()
        self.notifier.emit(notify.PROJECT_CREATED, "Project created", f"{name} added")
        return project

    def select_project(self, project_id: str) -> Project | None:
        project = self.store.find_project(project_id)
        if project is None:
            return None
        self.store.data.active_project_id = project.id
        self._commit()
        return project

    def delete_project(self, project_id: str | None = None) -> Project | None:
        """Delete a project and its tasks. The caller has already confirmed."""
        data = self.store.data
        project = self.store.find_project(project_id or data.active_project_id)
        if project is None:
            return None
        data.projects = [p for p in data.projects if p.id != project.id]
        if data.active_project_id == project.id:
            data.active_project_id = data.projects[0].id if data.projects else None
        self.tracker.forget(project.id)
        logger.debug("Deleted project %s with %d tasks", project.id, len(project.tasks))
        self._commit()
        self.notifier.emit(notify.PROJECT_DELETED, "Project deleted", f"{project.name} removed")
        return project

    # ── Tasks ─────────────────────────────────────────────────

    def require_active_project(self) -> Project | None:
        """Return the active project, or emit 'Select a project first' and return None."""
        project = self.store.get_active_project()
        if project is None:
            self.notifier.emit(notify.NO_PROJECT, "Select a project first")
        return project

    def add_task(self, title: str, deadline: str) -> Task | None:
        project = self.require_active_project()
        if project is None:
            return None
        title = (title or "").strip()
        deadline = (deadline or "").strip()
        if not title or not deadline:
            return None
        if not self._valid_deadline(deadline):
            logger.info("Rejected task %r with unparseable deadline %r", title, deadline)
            return None
        taken = {t.id for _, t in self.store.iter_tasks()}
        task = Task(id=self._unique_id(taken), title=title, deadline=deadline, completed=False)
        project.tasks.insert(0, task)
        logger.debug("Added task %s to project %s", task.id, project.id)
        self._commit()
        self.notifier.emit(notify.TASK_ADDED, "Task added", f'"{title}" due {deadline}')
        return task

    def edit_task(self, task_id: str, title: EditInput, deadline: EditInput) -> Task | None:
        """Apply a two-step edit. A cancelled step aborts the whole edit.

        A submitted empty title or an empty/unparseable deadline keeps the
        previous value for that field.
        """
        found = self.store.find_task(task_id)
        if found is None:
            return None
        if title is CANCELLED or deadline is CANCELLED:
            return None
        _, task = found
        task.title = title.value.strip() or task.title
        new_deadline = deadline.value.strip()
        if new_deadline and self._valid_deadline(new_deadline):
            task.deadline = new_deadline
        self._commit()
        return task

    def toggle_task(self, task_id: str, completed: bool) -> Task | None:
        found = self.store.find_task(task_id)
        if found is None:
            return None
        _, task = found
        was_completed = task.completed
        task.completed = bool(completed)
        self._commit()
        if task.completed and not was_completed:
            self.notifier.emit(notify.TASK_COMPLETED, "Task completed", f'"{task.title}" marked done')
        return task

    def delete_task(self, task_id: str) -> Task | None:
        found = self.store.find_task(task_id)
        if found is None:
            return None
        project, task = found
        project.tasks = [t for t in project.tasks if t.id != task_id]
        logger.debug("Deleted task %s from project %s", task_id, project.id)
        self._commit()
        return task

    def complete_all(self, project_id: str | None = None) -> Project | None:
        project = self.store.find_project(project_id or self.store.data.active_project_id)
        if project is None:
            self.notifier.emit(notify.NO_PROJECT, "Select a project first")
            return None
        for task in project.tasks:
            task.completed = True
        self._commit()
        self.notifier.emit(notify.ALL_COMPLETED, "All tasks completed", f"{project.name} 100% done")
        return project
