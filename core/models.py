"""Typed dataclasses for the taskmgr data model.

All persisted models use from_dict/to_dict for JSON serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults; malformed
entries inside a list are skipped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, tzinfo
from typing import Any


# ── Deadlines ─────────────────────────────────────────────────


def parse_deadline(raw: str | None, tz: tzinfo) -> datetime | None:
    """Parse 'YYYY-MM-DD' or 'YYYY-MM-DDTHH:MM[:SS]' into an aware datetime.

    A bare date means local midnight of that date. Returns None for an
    empty or unparseable value.
    """
    if not raw or not raw.strip():
        return None
    s = raw.strip()
    try:
        if len(s) == 10:
            return datetime.combine(date.fromisoformat(s), time(0, 0), tzinfo=tz)
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    return dt


# ── Tasks & projects ──────────────────────────────────────────


@dataclass
class Task:
    id: str = ""
    title: str = ""
    deadline: str = ""  # ISO date or local date-time
    completed: bool = False

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Task:
        return cls(
            id=str(d.get("id", "")),
            title=str(d.get("title", "")),
            deadline=str(d.get("deadline") or ""),
            completed=bool(d.get("completed", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "deadline": self.deadline,
            "completed": self.completed,
        }


@dataclass
class Project:
    id: str = ""
    name: str = ""
    tasks: list[Task] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Project:
        raw_tasks = d.get("tasks")
        tasks = [Task.from_dict(t) for t in raw_tasks if isinstance(t, dict)] if isinstance(raw_tasks, list) else []
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", "")),
            tasks=[t for t in tasks if t.id],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "tasks": [t.to_dict() for t in self.tasks],
        }


@dataclass
class AppState:
    projects: list[Project] = field(default_factory=list)
    active_project_id: str | None = None
    reminders_on: bool = False

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> AppState:
        if not d or not isinstance(d, dict):
            return cls()
        raw_projects = d.get("projects")
        projects: list[Project] = []
        seen: set[str] = set()
        if isinstance(raw_projects, list):
            for p in raw_projects:
                if not isinstance(p, dict):
                    continue
                project = Project.from_dict(p)
                if not project.id or project.id in seen:
                    continue
                seen.add(project.id)
                projects.append(project)
        active = d.get("activeProjectId")
        return cls(
            projects=projects,
            active_project_id=str(active) if active else None,
            reminders_on=bool(d.get("remindersOn", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "projects": [p.to_dict() for p in self.projects],
            "activeProjectId": self.active_project_id,
            "remindersOn": self.reminders_on,
        }


# ── Derived ───────────────────────────────────────────────────


@dataclass(frozen=True)
class Progress:
    total: int = 0
    done: int = 0
    pct: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"total": self.total, "done": self.done, "pct": self.pct}


@dataclass(frozen=True)
class Notification:
    kind: str
    title: str
    body: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "title": self.title, "body": self.body}


# ── Edit input ────────────────────────────────────────────────


@dataclass(frozen=True)
class Submitted:
    """A value the user submitted, possibly empty."""

    value: str


class Cancelled:
    """The user aborted the prompt."""

    _instance: Cancelled | None = None

    def __new__(cls) -> Cancelled:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CANCELLED"


CANCELLED = Cancelled()

EditInput = Submitted | Cancelled
