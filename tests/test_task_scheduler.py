# tests/test_task_scheduler.py

from __future__ import annotations

import asyncio
import threading

import pytest

from ticktasks.errors import SchedulerRunFailure
from ticktasks.tasks.retention import DAY_MS
from ticktasks.tasks.schedule_store import RunStatus, ScheduleStore
from ticktasks.tasks.task_scheduler import DAY_SECONDS, RetentionScheduler, SchedulerState

from .fakes import FakeClock, FakePreferences, RecordingCleanupService, storage_down

NOW = 1_700_000_000.0


def _scheduler(
    schedule_store: ScheduleStore,
    service: RecordingCleanupService,
    prefs: FakePreferences | None = None,
    clock: FakeClock | None = None,
) -> RetentionScheduler:
    return RetentionScheduler(
        service,
        prefs or FakePreferences(),
        schedule_store,
        clock=clock or FakeClock(NOW),
    )


@pytest.mark.asyncio
async def test_rescheduling_keeps_a_single_schedule(schedule_store: ScheduleStore) -> None:
    scheduler = _scheduler(schedule_store, RecordingCleanupService())

    first = await scheduler.schedule()
    second = await scheduler.schedule()

    active = await scheduler.active_schedules()
    assert len(active) == 1
    assert active[0].name == "cleanup"
    assert active[0].interval_seconds == DAY_SECONDS
    assert second.generation == first.generation + 1


@pytest.mark.asyncio
async def test_run_once_uses_current_retention_days(schedule_store: ScheduleStore) -> None:
    service = RecordingCleanupService(removed=4)
    prefs = FakePreferences(auto_delete_days=5)
    scheduler = _scheduler(schedule_store, service, prefs)
    await scheduler.schedule()

    result = await scheduler.run_once()

    assert result.ok
    assert result.removed == 4
    assert prefs.reloads == 1
    assert service.cutoffs == [int(NOW * 1000) - 5 * DAY_MS]

    sched = await scheduler.current_schedule()
    assert sched is not None
    assert sched.last_status == RunStatus.SUCCESS
    assert sched.last_run_at == NOW
    assert sched.next_run_at == NOW + DAY_SECONDS


@pytest.mark.asyncio
async def test_failed_run_is_recorded_and_not_retried_this_period(schedule_store: ScheduleStore) -> None:
    service = RecordingCleanupService(fail_with=storage_down())
    scheduler = _scheduler(schedule_store, service)
    await scheduler.schedule()

    result = await scheduler.run_once()

    assert not result.ok
    assert isinstance(result.error, SchedulerRunFailure)
    assert scheduler.state == SchedulerState.IDLE
    assert scheduler.last_result is result

    sched = await scheduler.current_schedule()
    assert sched is not None
    assert sched.last_status == RunStatus.FAILED
    assert sched.next_run_at == NOW + DAY_SECONDS
    assert not sched.is_due(NOW + 60)


@pytest.mark.asyncio
async def test_replaced_schedule_survives_in_flight_run(schedule_store: ScheduleStore) -> None:
    clock = FakeClock(NOW)
    holder: dict[str, RetentionScheduler] = {}

    class ReschedulingService(RecordingCleanupService):
        async def cleanup(self, cutoff_ms: int) -> int:
            await holder["scheduler"].schedule(initial_delay_seconds=500)
            return 0

    scheduler = _scheduler(schedule_store, ReschedulingService(), clock=clock)
    holder["scheduler"] = scheduler
    first = await scheduler.schedule()

    result = await scheduler.run_once(generation=first.generation)

    assert result.ok
    sched = await scheduler.current_schedule()
    assert sched is not None
    assert sched.generation == first.generation + 1
    assert sched.next_run_at == NOW + 500
    assert sched.last_status == RunStatus.NEVER


@pytest.mark.asyncio
async def test_run_forever_runs_due_schedule_once_per_period(schedule_store: ScheduleStore) -> None:
    service = RecordingCleanupService()
    scheduler = _scheduler(schedule_store, service)
    await scheduler.schedule()

    runner = asyncio.create_task(scheduler.run_forever(poll_seconds=0.01))
    await asyncio.sleep(0.1)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert len(service.cutoffs) == 1


@pytest.mark.asyncio
async def test_nothing_runs_without_a_schedule(schedule_store: ScheduleStore) -> None:
    service = RecordingCleanupService()
    scheduler = _scheduler(schedule_store, service)
    await scheduler.schedule()
    assert await scheduler.cancel() is True
    assert await scheduler.current_schedule() is None

    runner = asyncio.create_task(scheduler.run_forever(poll_seconds=0.01))
    await asyncio.sleep(0.05)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert service.cutoffs == []


def test_schedule_persists_across_store_instances(settings) -> None:
    ScheduleStore(settings.tasks_db_path).replace("cleanup", interval_seconds=DAY_SECONDS, first_run_at=NOW)

    reopened = ScheduleStore(settings.tasks_db_path).get("cleanup")
    assert reopened is not None
    assert reopened.next_run_at == NOW
    assert reopened.last_status == RunStatus.NEVER


@pytest.mark.asyncio
async def test_preference_reload_runs_off_the_event_loop(schedule_store: ScheduleStore) -> None:
    loop_thread = threading.get_ident()
    reload_threads: list[int] = []

    class ThreadRecordingPreferences:
        auto_delete_days = 3

        def reload(self) -> None:
            reload_threads.append(threading.get_ident())

    scheduler = RetentionScheduler(
        RecordingCleanupService(), ThreadRecordingPreferences(), schedule_store, clock=FakeClock(NOW)
    )
    await scheduler.schedule()

    assert (await scheduler.run_once()).ok
    assert len(reload_threads) == 1
    assert reload_threads[0] != loop_thread
