#!/usr/bin/env python3
"""taskmgr TUI — projects, deadline tasks and reminders powered by Textual."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from rich.text import Text
from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import DataTable, Footer, Header, Input, Label, ProgressBar, Static

from core import (
    CANCELLED,
    Notification,
    Settings,
    Submitted,
    Task,
    build_app,
    compute_progress,
    filter_tasks,
    init_config,
    load_settings,
    logs_dir,
    next_filter_mode,
    workspace_root,
)
from core import notify
from core.logging_setup import setup_logging
from core.reminders import classify_task, OVERDUE

logger = logging.getLogger(__name__)

DEADLINE_HINT = "YYYY-MM-DD or YYYY-MM-DDTHH:MM"

SEVERITY = {
    notify.TASK_OVERDUE: "warning",
    notify.NO_PROJECT: "warning",
    notify.SAVE_FAILED: "error",
}


CSS = """
Screen {
    layout: vertical;
}

#main-layout {
    height: 1fr;
}

#left-pane {
    width: 34;
    border-right: tall $primary-background;
    padding: 0 1;
}

#right-pane {
    width: 1fr;
    padding: 0 1;
}

.section-title {
    text-style: bold;
    color: $accent;
    margin: 1 0 0 0;
}

#project-table {
    height: 1fr;
}

#task-table {
    height: 1fr;
}

#progress-line {
    height: auto;
    color: $text-muted;
}

#project-progress {
    margin: 0 0 1 0;
}

#status-bar {
    dock: bottom;
    height: 1;
    background: $primary-background;
    color: $text-muted;
    padding: 0 2;
}

PromptScreen, ConfirmScreen {
    align: center middle;
}

.dialog {
    width: 60;
    height: auto;
    padding: 1 2;
    border: thick $primary;
    background: $surface;
}
"""


# ── Dialogs ────────────────────────────────────────────────────


class PromptScreen(ModalScreen[str | None]):
    """Single-line prompt. Enter submits (possibly empty); Escape cancels (None)."""

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, prompt: str, value: str = "", placeholder: str = "") -> None:
        super().__init__()
        self._prompt = prompt
        self._value = value
        self._placeholder = placeholder

    def compose(self) -> ComposeResult:
        yield Vertical(
            Label(self._prompt),
            Input(value=self._value, placeholder=self._placeholder, id="prompt-input"),
            classes="dialog",
        )

    def on_mount(self) -> None:
        self.query_one("#prompt-input", Input).focus()

    @on(Input.Submitted)
    def _on_submit(self, event: Input.Submitted) -> None:
        self.dismiss(event.value)

    def action_cancel(self) -> None:
        self.dismiss(None)


class ConfirmScreen(ModalScreen[bool]):
    """Yes/no confirmation."""

    BINDINGS = [
        Binding("y", "answer(True)", "Yes"),
        Binding("n", "answer(False)", "No"),
        Binding("escape", "answer(False)", "No"),
    ]

    def __init__(self, question: str) -> None:
        super().__init__()
        self._question = question

    def compose(self) -> ComposeResult:
        yield Vertical(Label(Text(self._question)), Label("y: yes   n: no"), classes="dialog")

    def action_answer(self, yes: bool) -> None:
        self.dismiss(yes)


# ── Timer adapter ──────────────────────────────────────────────


class TextualTimer:
    """Runs reminder ticks on the Textual event loop via set_interval."""

    def __init__(self, app: App) -> None:
        self.app = app

    def schedule(self, callback: Callable[[], Any], interval: float) -> Any:
        def guarded() -> None:
            try:
                callback()
            except Exception:
                logger.exception("Timer callback %r failed", callback)

        return self.app.set_interval(interval, guarded)

    def cancel(self, handle: Any) -> None:
        handle.stop()


# ── Main app ───────────────────────────────────────────────────


class TaskmgrApp(App):
    """taskmgr — interactive terminal task tracker."""

    TITLE = "taskmgr"
    CSS = CSS

    BINDINGS = [
        Binding("n", "new_project", "New Project"),
        Binding("d", "delete_project", "Del Project"),
        Binding("a", "add_task", "Add Task"),
        Binding("e", "edit_task", "Edit"),
        Binding("space", "toggle_task", "Done"),
        Binding("x", "delete_task", "Del Task"),
        Binding("c", "complete_all", "All Done"),
        Binding("f", "cycle_filter", "Filter"),
        Binding("r", "toggle_reminders", "Reminders"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, root: Path | None = None, settings: Settings | None = None) -> None:
        super().__init__()
        self.core = build_app(
            TextualTimer(self),
            root=root,
            settings=settings,
            sinks=[self._toast],
        )
        self._visible: list[Task] = []
        self.filter_mode = "all"

    def compose(self) -> ComposeResult:
        yield Header()
        yield Horizontal(
            Vertical(
                Label("Projects", classes="section-title"),
                DataTable(id="project-table", cursor_type="row"),
                id="left-pane",
            ),
            Vertical(
                Label("No project selected", id="project-name", classes="section-title"),
                Static(id="progress-line"),
                ProgressBar(total=100, show_eta=False, id="project-progress"),
                DataTable(id="task-table", cursor_type="row"),
                id="right-pane",
            ),
            id="main-layout",
        )
        yield Static(id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#project-table", DataTable).add_columns("Project", "Done")
        self.query_one("#task-table", DataTable).add_columns(" ", "Task", "Due")
        # Record the baseline so the first refresh does not toast.
        self.core.manager.refresh()
        self.core.reminders.resume()
        self._render_all()

    def on_unmount(self) -> None:
        self.core.shutdown()

    # ── Notifications ──────────────────────────────────────────

    def _toast(self, n: Notification) -> None:
        severity = SEVERITY.get(n.kind, "information")
        if n.body:
            self.notify(n.body, title=n.title, severity=severity, markup=False)
        else:
            self.notify(n.title, severity=severity, markup=False)

    # ── Rendering ──────────────────────────────────────────────

    def _render_all(self) -> None:
        self._render_projects()
        self._render_tasks()
        self._render_status()

    def _render_projects(self) -> None:
        table = self.query_one("#project-table", DataTable)
        table.clear()
        active_row = 0
        for i, p in enumerate(self.core.store.data.projects):
            prog = compute_progress(p)
            marker = "▸ " if p.id == self.core.store.data.active_project_id else "  "
            table.add_row(Text(marker + p.name), f"{prog.done}/{prog.total}", key=p.id)
            if p.id == self.core.store.data.active_project_id:
                active_row = i
        if table.row_count:
            table.move_cursor(row=active_row)

    def _render_tasks(self) -> None:
        table = self.query_one("#task-table", DataTable)
        table.clear()
        project = self.core.store.get_active_project()
        bar = self.query_one("#project-progress", ProgressBar)
        if project is None:
            self._visible = []
            self.query_one("#project-name", Label).update("No project selected")
            self.query_one("#progress-line", Static).update("0/0 done")
            bar.update(progress=0)
            return

        prog = compute_progress(project)
        self.query_one("#project-name", Label).update(Text(project.name))
        self.query_one("#progress-line", Static).update(
            f"{prog.done}/{prog.total} done · {prog.pct}% · filter: {self.filter_mode}"
        )
        bar.update(progress=prog.pct)

        now = datetime.now(self.core.tz)
        self._visible = filter_tasks(project.tasks, self.filter_mode)
        for task in self._visible:
            check = "✓" if task.completed else "·"
            due = task.deadline or "-"
            if classify_task(task, now) == OVERDUE:
                due = f"{due} (overdue)"
            table.add_row(check, Text(task.title), due, key=task.id)

    def _render_status(self) -> None:
        reminders = "on" if self.core.reminders.running else "off"
        self.query_one("#status-bar", Static).update(
            f"reminders: {reminders} · {len(self.core.store.data.projects)} projects · {self.core.root}"
        )

    def _current_task(self) -> Task | None:
        table = self.query_one("#task-table", DataTable)
        if not self._visible or table.cursor_row < 0 or table.cursor_row >= len(self._visible):
            return None
        return self._visible[table.cursor_row]

    # ── Projects ───────────────────────────────────────────────

    @on(DataTable.RowSelected, "#project-table")
    def _on_project_selected(self, event: DataTable.RowSelected) -> None:
        project_id = event.row_key.value
        if project_id and project_id != self.core.store.data.active_project_id:
            self.core.manager.select_project(project_id)
            self._render_all()

    def action_new_project(self) -> None:
        def done(name: str | None) -> None:
            if name is None:
                return
            self.core.manager.create_project(name)
            self._render_all()

        self.push_screen(PromptScreen("New project name"), done)

    def action_delete_project(self) -> None:
        project = self.core.store.get_active_project()
        if project is None:
            return

        def done(confirmed: bool | None) -> None:
            if confirmed:
                self.core.manager.delete_project(project.id)
                self._render_all()

        self.push_screen(ConfirmScreen(f'Delete project "{project.name}" and its tasks?'), done)

    def action_complete_all(self) -> None:
        self.core.manager.complete_all()
        self._render_all()

    # ── Tasks ──────────────────────────────────────────────────

    def action_add_task(self) -> None:
        if self.core.manager.require_active_project() is None:
            return

        def got_title(title: str | None) -> None:
            if title is None:
                return

            def got_deadline(deadline: str | None) -> None:
                if deadline is None:
                    return
                if self.core.manager.add_task(title, deadline) is None and title.strip() and deadline.strip():
                    self.notify(
                        f"Could not read deadline {deadline!r}",
                        title="Task not added",
                        severity="warning",
                        markup=False,
                    )
                self._render_all()

            self.push_screen(PromptScreen("Deadline", placeholder=DEADLINE_HINT), got_deadline)

        self.push_screen(PromptScreen("Task title"), got_title)

    def action_edit_task(self) -> None:
        task = self._current_task()
        if task is None:
            return

        def got_title(title: str | None) -> None:
            if title is None:
                return

            def got_deadline(deadline: str | None) -> None:
                self.core.manager.edit_task(
                    task.id,
                    Submitted(title),
                    CANCELLED if deadline is None else Submitted(deadline),
                )
                self._render_all()

            self.push_screen(
                PromptScreen("Edit deadline", value=task.deadline, placeholder=DEADLINE_HINT),
                got_deadline,
            )

        self.push_screen(PromptScreen("Edit task title", value=task.title), got_title)

    def action_toggle_task(self) -> None:
        task = self._current_task()
        if task is None:
            return
        self.core.manager.toggle_task(task.id, not task.completed)
        self._render_all()

    def action_delete_task(self) -> None:
        task = self._current_task()
        if task is None:
            return
        self.core.manager.delete_task(task.id)
        self._render_all()

    def action_cycle_filter(self) -> None:
        self.filter_mode = next_filter_mode(self.filter_mode)
        self._render_tasks()

    # ── Reminders ──────────────────────────────────────────────

    def action_toggle_reminders(self) -> None:
        self.core.reminders.toggle()
        self._render_status()


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    root = workspace_root()
    root.mkdir(parents=True, exist_ok=True)
    init_config(root)
    settings = load_settings(root)
    setup_logging(log_dir=logs_dir(root), file_level=settings.log_level_no, console=False)
    logger.info("Starting taskmgr TUI in %s", root)

    app = TaskmgrApp(root=root, settings=settings)
    app.run()


if __name__ == "__main__":
    main()
