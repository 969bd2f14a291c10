"""Deadline reminders.

scan_reminders() classifies every open task with a deadline as overdue or
due soon. ReminderScheduler runs that scan on a repeating timer and turns
each hit into a notification. Hits are not deduplicated across ticks: a
task that stays overdue is reported on every tick.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from core import notify
from core.models import AppState, Project, Task, parse_deadline
from core.notify import Notifier
from core.store import StateStore
from core.timers import Timer

logger = logging.getLogger(__name__)

OVERDUE = "overdue"
DUE_SOON = "due_soon"

DEFAULT_INTERVAL_SECONDS = 30.0
DEFAULT_DUE_SOON = timedelta(hours=1)


@dataclass(frozen=True)
class Reminder:
    kind: str  # overdue, due_soon
    project: Project
    task: Task

    def notification_args(self) -> tuple[str, str, str]:
        if self.kind == OVERDUE:
            return (
                notify.TASK_OVERDUE,
                "Overdue task",
                f'"{self.task.title}" in {self.project.name} is overdue',
            )
        return (
            notify.DEADLINE_UPCOMING,
            "Upcoming deadline",
            f'"{self.task.title}" due {self.task.deadline}',
        )


def classify_task(task: Task, now: datetime, due_soon: timedelta = DEFAULT_DUE_SOON) -> str | None:
    """Return OVERDUE, DUE_SOON or None for one task at instant `now` (aware)."""
    if task.completed:
        return None
    deadline = parse_deadline(task.deadline, now.tzinfo)
    if deadline is None:
        return None
    # Calendar-day comparison in the user's timezone.
    if deadline.astimezone(now.tzinfo).date() < now.date():
        return OVERDUE
    if now <= deadline <= now + due_soon:
        return DUE_SOON
    return None


def scan_reminders(state: AppState, now: datetime, due_soon: timedelta = DEFAULT_DUE_SOON) -> list[Reminder]:
    """Scan every task in every project, in stored order."""
    out: list[Reminder] = []
    for project in state.projects:
        for task in project.tasks:
            kind = classify_task(task, now, due_soon)
            if kind is not None:
                out.append(Reminder(kind=kind, project=project, task=task))
    return out


class ReminderScheduler:
    """Start/stop-able periodic reminder scan.

    The running flag is persisted as AppState.reminders_on; call resume()
    once at startup to pick reminders back up.
    """

    def __init__(
        self,
        store: StateStore,
        notifier: Notifier,
        timer: Timer,
        clock: Callable[[], datetime],
        interval: float = DEFAULT_INTERVAL_SECONDS,
        due_soon: timedelta = DEFAULT_DUE_SOON,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.timer = timer
        self.clock = clock
        self.interval = interval
        self.due_soon = due_soon
        self._handle: Any = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    def tick(self) -> list[Reminder]:
        now = self.clock()
        reminders = scan_reminders(self.store.data, now, self.due_soon)
        logger.debug("Reminder tick at %s: %d hits", now.isoformat(timespec="seconds"), len(reminders))
        for reminder in reminders:
            self.notifier.emit(*reminder.notification_args())
        return reminders

    def start(self) -> bool:
        if self.running:
            return False
        self._handle = self.timer.schedule(self.tick, self.interval)
        self.store.data.reminders_on = True
        self.store.save()
        logger.info("Reminders started (every %ss)", self.interval)
        self.notifier.emit(notify.REMINDERS_STARTED, "Reminders started")
        return True

    def stop(self) -> bool:
        if not self.running:
            return False
        self.timer.cancel(self._handle)
        self._handle = None
        self.store.data.reminders_on = False
        self.store.save()
        logger.info("Reminders stopped")
        self.notifier.emit(notify.REMINDERS_STOPPED, "Reminders stopped")
        return True

    def shutdown(self) -> None:
        """Cancel the timer on process exit, keeping the persisted flag for resume()."""
        if self.running:
            self.timer.cancel(self._handle)
            self._handle = None

    def toggle(self) -> bool:
        """Flip the scheduler; returns whether it is now running."""
        if self.running:
            self.stop()
        else:
            self.start()
        return self.running

    def resume(self) -> bool:
        """Start if the loaded state says reminders were on."""
        if self.store.data.reminders_on:
            return self.start()
        return False
