"""Project progress and progress-change tracking."""

from __future__ import annotations

from core.models import Progress, Project


def compute_progress(project: Project) -> Progress:
    """Completion counts for a project; pct rounds half up and is 0 for no tasks."""
    total = len(project.tasks)
    done = sum(1 for t in project.tasks if t.completed)
    if total == 0:
        return Progress(total=0, done=0, pct=0)
    # round(done / total * 100) with halves rounded up, in integers
    pct = (200 * done + total) // (2 * total)
    return Progress(total=total, done=done, pct=pct)


class ProgressTracker:
    """Last-seen completion percentage per project, for change notifications.

    Lives as long as the TaskManager that owns it; nothing is persisted.
    """

    def __init__(self) -> None:
        self._last_seen: dict[str, int] = {}

    def observe(self, project: Project) -> int | None:
        """Return the new pct if it changed since the last observation.

        The first observation of a project only records its value.
        """
        pct = compute_progress(project).pct
        prev = self._last_seen.setdefault(project.id, pct)
        if prev == pct:
            return None
        self._last_seen[project.id] = pct
        return pct

    def forget(self, project_id: str) -> None:
        self._last_seen.pop(project_id, None)

    def last_seen(self, project_id: str) -> int | None:
        return self._last_seen.get(project_id)
