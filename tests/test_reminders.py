"""Tests for core/reminders.py and core/timers.py."""

import asyncio
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from core.models import AppState, Project, Task
from core.notify import Notifier
from core.reminders import DUE_SOON, OVERDUE, ReminderScheduler, classify_task, scan_reminders
from core.timers import AsyncioTimer

UTC = ZoneInfo("UTC")


def _task(deadline: str, completed: bool = False) -> Task:
    return Task(id="t", title="T", deadline=deadline, completed=completed)


# ── Classification ────────────────────────────────────────────


def test_classify_overdue_by_calendar_day(fixed_now):
    assert classify_task(_task("2026-02-10"), fixed_now) == OVERDUE
    assert classify_task(_task("2026-02-10T23:59"), fixed_now) == OVERDUE


def test_classify_earlier_today_is_not_overdue(fixed_now):
    assert classify_task(_task("2026-02-11T09:00"), fixed_now) is None


def test_classify_due_soon_window(fixed_now):
    soon = (fixed_now + timedelta(minutes=30)).strftime("%Y-%m-%dT%H:%M")
    later = (fixed_now + timedelta(hours=2)).strftime("%Y-%m-%dT%H:%M")
    assert classify_task(_task(soon), fixed_now) == DUE_SOON
    assert classify_task(_task(later), fixed_now) is None
    assert classify_task(_task("2026-02-11T13:00"), fixed_now) == DUE_SOON


def test_classify_custom_window(fixed_now):
    later = (fixed_now + timedelta(hours=2)).strftime("%Y-%m-%dT%H:%M")
    assert classify_task(_task(later), fixed_now, timedelta(hours=3)) == DUE_SOON


def test_classify_skips_completed_and_unparseable(fixed_now):
    assert classify_task(_task("2026-02-10", completed=True), fixed_now) is None
    assert classify_task(_task(""), fixed_now) is None
    assert classify_task(_task("soon"), fixed_now) is None


def test_classify_uses_local_calendar_day():
    ny = ZoneInfo("America/New_York")
    # 20:00 in New York is already the next day in UTC.
    now = datetime(2026, 2, 11, 20, 0, tzinfo=ny)
    assert classify_task(_task("2026-02-11"), now) is None
    assert classify_task(_task("2026-02-10"), now) == OVERDUE


def test_scan_reminders_sample(seeded_store, fixed_now):
    hits = scan_reminders(seeded_store.data, fixed_now)
    assert [(r.kind, r.task.id) for r in hits] == [(OVERDUE, "t-ship"), (DUE_SOON, "t-docs")]
    _, title, body = hits[0].notification_args()
    assert title == "Overdue task"
    assert body == '"Ship v1" in Launch is overdue'
    _, title, body = hits[1].notification_args()
    assert title == "Upcoming deadline"
    assert body == '"Write docs" due 2026-02-11T12:30'


def test_scan_covers_inactive_projects(fixed_now):
    state = AppState(
        projects=[
            Project(id="a", name="A"),
            Project(id="b", name="B", tasks=[_task("2026-02-01")]),
        ],
        active_project_id="a",
    )
    assert [r.project.id for r in scan_reminders(state, fixed_now)] == ["b"]


def test_deleted_project_tasks_not_scanned(seeded_manager, seeded_store, fixed_now):
    seeded_manager.delete_project("launch")
    assert scan_reminders(seeded_store.data, fixed_now) == []


# ── Scheduler ─────────────────────────────────────────────────


@pytest.fixture
def scheduler(seeded_store, sink, fake_timer, fixed_now):
    return ReminderScheduler(seeded_store, Notifier([sink]), fake_timer, clock=lambda: fixed_now, interval=30)


def test_start_schedules_and_persists(scheduler, seeded_store, fake_timer, sink):
    assert scheduler.start() is True
    assert scheduler.running
    assert fake_timer.scheduled[0][1] == 30
    assert seeded_store.data.reminders_on is True
    assert seeded_store.persistence.writes == 1
    assert sink.titles() == ["Reminders started"]


def test_start_twice_is_noop(scheduler, fake_timer, sink):
    scheduler.start()
    assert scheduler.start() is False
    assert fake_timer.active == 1
    assert sink.titles() == ["Reminders started"]


def test_tick_emits_reminders(scheduler, fake_timer, sink):
    scheduler.start()
    sink.drain()
    fake_timer.fire()
    assert sink.titles() == ["Overdue task", "Upcoming deadline"]
    fake_timer.fire()
    assert sink.titles() == ["Overdue task", "Upcoming deadline"] * 2


def test_stop_cancels_and_persists(scheduler, seeded_store, fake_timer, sink):
    scheduler.start()
    assert scheduler.stop() is True
    assert not scheduler.running
    assert fake_timer.active == 0
    assert seeded_store.data.reminders_on is False
    assert sink.titles() == ["Reminders started", "Reminders stopped"]
    assert scheduler.stop() is False


def test_toggle(scheduler):
    assert scheduler.toggle() is True
    assert scheduler.toggle() is False


def test_resume_only_when_flag_set(scheduler, seeded_store, fake_timer):
    assert scheduler.resume() is False
    assert fake_timer.active == 0
    seeded_store.data.reminders_on = True
    assert scheduler.resume() is True
    assert scheduler.running


def test_shutdown_keeps_flag(scheduler, seeded_store, fake_timer):
    scheduler.start()
    scheduler.shutdown()
    assert not scheduler.running
    assert fake_timer.active == 0
    assert seeded_store.data.reminders_on is True


def test_tick_after_task_completed(scheduler, seeded_manager, sink):
    seeded_manager.toggle_task("t-ship", True)
    sink.drain()
    hits = scheduler.tick()
    assert [r.task.id for r in hits] == ["t-docs"]


# ── AsyncioTimer ──────────────────────────────────────────────


def test_asyncio_timer_repeats_until_cancelled():
    async def run() -> tuple[int, int]:
        timer = AsyncioTimer()
        calls: list[int] = []
        handle = timer.schedule(lambda: calls.append(1), 0.1)
        await asyncio.sleep(0.45)
        timer.cancel(handle)
        seen = len(calls)
        await asyncio.sleep(0.25)
        return seen, len(calls)

    seen, final = asyncio.run(run())
    assert seen >= 2
    assert final == seen


def test_asyncio_timer_survives_callback_errors():
    async def run() -> int:
        timer = AsyncioTimer()
        calls: list[int] = []

        def boom() -> None:
            calls.append(1)
            raise RuntimeError("tick failed")

        handle = timer.schedule(boom, 0.1)
        await asyncio.sleep(0.45)
        timer.cancel(handle)
        return len(calls)

    assert asyncio.run(run()) >= 2


def test_asyncio_timer_needs_running_loop():
    with pytest.raises(RuntimeError):
        AsyncioTimer().schedule(lambda: None, 1)
