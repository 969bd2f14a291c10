"""Notification events and sinks.

A sink is any callable taking a Notification. Front ends register their
own (the TUI turns them into toasts); the core ships a collecting sink
and, in core.hooks, a sink that runs user hooks.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterable

from core.models import Notification

logger = logging.getLogger(__name__)

PROJECT_CREATED = "project_created"
PROJECT_DELETED = "project_deleted"
TASK_ADDED = "task_added"
TASK_COMPLETED = "task_completed"
ALL_COMPLETED = "all_completed"
PROGRESS_UPDATED = "progress_updated"
TASK_OVERDUE = "task_overdue"
DEADLINE_UPCOMING = "deadline_upcoming"
REMINDERS_STARTED = "reminders_started"
REMINDERS_STOPPED = "reminders_stopped"
NO_PROJECT = "no_project"
SAVE_FAILED = "save_failed"

NOTIFICATION_KINDS = (
    PROJECT_CREATED,
    PROJECT_DELETED,
    TASK_ADDED,
    TASK_COMPLETED,
    ALL_COMPLETED,
    PROGRESS_UPDATED,
    TASK_OVERDUE,
    DEADLINE_UPCOMING,
    REMINDERS_STARTED,
    REMINDERS_STOPPED,
    NO_PROJECT,
    SAVE_FAILED,
)

Sink = Callable[[Notification], None]


class Notifier:
    """Fans notifications out to sinks in emission order."""

    def __init__(self, sinks: Iterable[Sink] = ()) -> None:
        self.sinks: list[Sink] = list(sinks)

    def add_sink(self, sink: Sink) -> None:
        self.sinks.append(sink)

    def emit(self, kind: str, title: str, body: str | None = None) -> Notification:
        notification = Notification(kind=kind, title=title, body=body)
        logger.info("notify %s: %s%s", kind, title, f" | {body}" if body else "")
        for sink in self.sinks:
            try:
                sink(notification)
            except Exception:
                logger.exception("Notification sink %r failed", sink)
        return notification


class CollectingSink:
    """Keeps the most recent notifications in memory."""

    def __init__(self, maxlen: int = 200) -> None:
        self.items: deque[Notification] = deque(maxlen=maxlen)

    def __call__(self, notification: Notification) -> None:
        self.items.append(notification)

    def drain(self) -> list[Notification]:
        out = list(self.items)
        self.items.clear()
        return out

    def titles(self) -> list[str]:
        return [n.title for n in self.items]
