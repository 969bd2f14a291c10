"""Startup wiring: one explicit context object per running front end."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import timedelta
from functools import partial
from pathlib import Path
from zoneinfo import ZoneInfo

from core.config import Settings, load_settings
from core.hooks import HookSink
from core.mutations import TaskManager
from core.notify import Notifier, Sink
from core.reminders import ReminderScheduler
from core.store import JsonFilePersistence, Persistence, StateStore
from core.timers import Timer
from core.workspace import get_user_timezone, now_local, state_path, workspace_root

logger = logging.getLogger(__name__)


@dataclass
class TaskApp:
    root: Path
    settings: Settings
    tz: ZoneInfo
    store: StateStore
    notifier: Notifier
    manager: TaskManager
    reminders: ReminderScheduler
    hooks: HookSink | None = None

    def shutdown(self) -> None:
        """Stop the reminder timer and drain the hook worker. Keeps remindersOn."""
        self.reminders.shutdown()
        if self.hooks is not None:
            self.hooks.shutdown()


def build_app(
    timer: Timer,
    *,
    root: Path | None = None,
    settings: Settings | None = None,
    persistence: Persistence | None = None,
    sinks: Iterable[Sink] = (),
    hooks: bool = True,
) -> TaskApp:
    """Load settings and state, and wire the store, manager and scheduler together.

    Reminders are not resumed here; the front end calls
    app.reminders.resume() once its timer can run.
    """
    if root is None:
        root = workspace_root()
    if settings is None:
        settings = load_settings(root)
    tz = get_user_timezone(settings.timezone)

    store = StateStore(persistence if persistence is not None else JsonFilePersistence(state_path(root)))
    store.load()

    notifier = Notifier(sinks)
    hook_sink = HookSink(root) if hooks else None
    if hook_sink is not None:
        notifier.add_sink(hook_sink)

    manager = TaskManager(store, notifier, tz=tz)
    clock = partial(now_local, tz)
    scheduler = ReminderScheduler(
        store,
        notifier,
        timer,
        clock=clock,
        interval=settings.reminder_interval_seconds,
        due_soon=timedelta(minutes=settings.due_soon_minutes),
    )
    logger.info("taskmgr ready root=%s tz=%s", root, tz.key)
    return TaskApp(
        root=root,
        settings=settings,
        tz=tz,
        store=store,
        notifier=notifier,
        manager=manager,
        reminders=scheduler,
        hooks=hook_sink,
    )
