"""Tests for core/models.py — serialization and deadline parsing."""

from datetime import datetime
from zoneinfo import ZoneInfo

from core.models import (
    CANCELLED,
    AppState,
    Cancelled,
    Project,
    Submitted,
    Task,
    parse_deadline,
)

UTC = ZoneInfo("UTC")


def test_task_from_dict_defaults():
    t = Task.from_dict({"id": "a", "title": "A"})
    assert t.deadline == ""
    assert t.completed is False


def test_task_to_dict_keys():
    t = Task(id="a", title="A", deadline="2026-02-11", completed=True)
    assert t.to_dict() == {"id": "a", "title": "A", "deadline": "2026-02-11", "completed": True}


def test_app_state_camel_case(sample_state):
    state = AppState.from_dict(sample_state)
    assert state.active_project_id == "launch"
    assert state.reminders_on is False
    assert [p.name for p in state.projects] == ["Launch", "Home"]
    d = state.to_dict()
    assert set(d) == {"projects", "activeProjectId", "remindersOn"}
    assert d == sample_state


def test_app_state_from_garbage():
    assert AppState.from_dict(None) == AppState()
    assert AppState.from_dict({"projects": "nope"}).projects == []


def test_app_state_skips_malformed_entries():
    state = AppState.from_dict({
        "projects": [
            "junk",
            {"id": "p1", "name": "One", "tasks": [{"id": "t1", "title": "T"}, 5, {"title": "no id"}]},
            {"id": "p1", "name": "Duplicate"},
            {"name": "no id"},
        ],
        "activeProjectId": "p1",
    })
    assert [p.id for p in state.projects] == ["p1"]
    assert [t.id for t in state.projects[0].tasks] == ["t1"]


def test_project_tasks_not_list():
    p = Project.from_dict({"id": "p", "name": "P", "tasks": {"a": 1}})
    assert p.tasks == []


def test_parse_deadline_date_is_local_midnight():
    tz = ZoneInfo("America/New_York")
    dt = parse_deadline("2026-02-11", tz)
    assert dt == datetime(2026, 2, 11, 0, 0, tzinfo=tz)


def test_parse_deadline_datetime():
    dt = parse_deadline("2026-02-11T12:30", UTC)
    assert dt == datetime(2026, 2, 11, 12, 30, tzinfo=UTC)


def test_parse_deadline_invalid():
    assert parse_deadline("", UTC) is None
    assert parse_deadline("   ", UTC) is None
    assert parse_deadline("tomorrow", UTC) is None
    assert parse_deadline("2026-13-01", UTC) is None


def test_cancelled_is_singleton_and_distinct_from_empty():
    assert Cancelled() is CANCELLED
    assert Submitted("") != CANCELLED
    assert Submitted("") == Submitted("")
