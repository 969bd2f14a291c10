"""Task list filtering for the project view."""

from __future__ import annotations

from core.models import Task

FILTER_MODES = ("all", "completed", "pending")


def filter_tasks(tasks: list[Task], mode: str) -> list[Task]:
    """Return the tasks matching mode, in input order. Unknown modes mean 'all'."""
    if mode == "completed":
        return [t for t in tasks if t.completed]
    if mode == "pending":
        return [t for t in tasks if not t.completed]
    return list(tasks)


def next_filter_mode(mode: str) -> str:
    """Cycle all -> completed -> pending -> all."""
    try:
        i = FILTER_MODES.index(mode)
    except ValueError:
        return FILTER_MODES[0]
    return FILTER_MODES[(i + 1) % len(FILTER_MODES)]
