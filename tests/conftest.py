"""Shared test fixtures for taskmgr tests."""

from __future__ import annotations

import json
import os
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest
import yaml

from core.mutations import TaskManager
from core.notify import CollectingSink, Notifier
from core.store import MemoryPersistence, StateStore

UTC = ZoneInfo("UTC")

# Noon, so "now + 2h" and "now - 1 day" stay unambiguous.
FIXED_NOW = datetime(2026, 2, 11, 12, 0, tzinfo=UTC)


class FakeTimer:
    """Records schedule/cancel calls; tests fire ticks by hand."""

    def __init__(self) -> None:
        self.scheduled: list[tuple[object, float]] = []
        self.cancelled: list[object] = []
        self._active: dict[int, tuple[object, float]] = {}

    def schedule(self, callback, interval):
        handle = len(self.scheduled)
        self.scheduled.append((callback, interval))
        self._active[handle] = (callback, interval)
        return handle

    def cancel(self, handle) -> None:
        self.cancelled.append(handle)
        self._active.pop(handle, None)

    @property
    def active(self) -> int:
        return len(self._active)

    def fire(self) -> None:
        for callback, _interval in list(self._active.values()):
            callback()


def _sample_state() -> dict:
    return {
        "projects": [
            {
                "id": "launch",
                "name": "Launch",
                "tasks": [
                    {"id": "t-ship", "title": "Ship v1", "deadline": "2026-02-10", "completed": False},
                    {"id": "t-docs", "title": "Write docs", "deadline": "2026-02-11T12:30", "completed": False},
                    {"id": "t-blog", "title": "Blog post", "deadline": "2026-02-20", "completed": True},
                ],
            },
            {
                "id": "home",
                "name": "Home",
                "tasks": [
                    {"id": "t-milk", "title": "Buy milk", "deadline": "2026-02-12", "completed": False},
                ],
            },
        ],
        "activeProjectId": "launch",
        "remindersOn": False,
    }


@pytest.fixture
def sample_state() -> dict:
    return _sample_state()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with config, hooks dir and a seeded state file."""
    root = tmp_path / "workspace"
    (root / "data").mkdir(parents=True)

    config = {
        "timezone": "UTC",
        "reminder_interval_seconds": 30,
        "due_soon_minutes": 60,
        "log_level": "DEBUG",
    }
    (root / "config.yaml").write_text(yaml.dump(config, default_flow_style=False), encoding="utf-8")

    (root / "data" / "taskmgr-v1.json").write_text(
        json.dumps(_sample_state(), indent=2), encoding="utf-8"
    )

    os.environ["TASKMGR_ROOT"] = str(root)
    yield root
    if "TASKMGR_ROOT" in os.environ:
        del os.environ["TASKMGR_ROOT"]


@pytest.fixture
def sink() -> CollectingSink:
    return CollectingSink()


@pytest.fixture
def store() -> StateStore:
    s = StateStore(MemoryPersistence())
    s.load()
    return s


@pytest.fixture
def seeded_store(sample_state) -> StateStore:
    s = StateStore(MemoryPersistence(json.dumps(sample_state)))
    s.load()
    return s


def _counter_ids():
    n = 0

    def make() -> str:
        nonlocal n
        n += 1
        return f"id{n}"

    return make


@pytest.fixture
def manager(store, sink) -> TaskManager:
    return TaskManager(store, Notifier([sink]), id_factory=_counter_ids(), tz=UTC)


@pytest.fixture
def seeded_manager(seeded_store, sink) -> TaskManager:
    return TaskManager(seeded_store, Notifier([sink]), id_factory=_counter_ids(), tz=UTC)


@pytest.fixture
def fake_timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW
