# src/ticktasks/tasks/task_scheduler.py

from __future__ import annotations

"""
Retention scheduler.

A small polling loop that:
- keeps one persisted periodic schedule (default name "cleanup", every 24h),
- when the schedule is due, reads the current auto_delete_days preference,
  computes the cutoff and asks the service to delete expired checked tasks,
- records the outcome and moves the schedule one interval forward.

A failed run is logged and recorded, never retried inside the same period:
the next trigger is the retry. Re-scheduling replaces the persisted row, so
calling schedule() any number of times leaves exactly one cadence active.
"""

import asyncio
import logging
import sqlite3
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from ..core.ports import CleanupService, RetentionPreferences
from ..errors import SchedulerRunFailure, StorageError
from .retention import cutoff_for_days
from .schedule_store import PeriodicSchedule, RunStatus, ScheduleStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

CLEANUP_SCHEDULE_NAME = "cleanup"
DAY_SECONDS = 24 * 60 * 60


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass(slots=True, frozen=True)
class RunResult:
    status: RunStatus
    started_at: float
    cutoff_ms: int | None = None
    removed: int = 0
    error: SchedulerRunFailure | None = None

    @property
    def ok(self) -> bool:
        return self.status == RunStatus.SUCCESS


class RetentionScheduler:
    def __init__(
        self,
        service: CleanupService,
        preferences: RetentionPreferences,
        schedules: ScheduleStore,
        *,
        name: str = CLEANUP_SCHEDULE_NAME,
        interval_seconds: float = DAY_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._service = service
        self._preferences = preferences
        self._schedules = schedules
        self._name = name
        self._interval_s = max(1.0, float(interval_seconds))
        self._clock = clock
        self._state = SchedulerState.IDLE
        self._last_result: RunResult | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def last_result(self) -> RunResult | None:
        return self._last_result

    async def _call_store(self, fn: Callable[..., T], *args: object, **kwargs: object) -> T:
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"schedule store error: {e}") from e

    # ---- schedule management ----

    async def schedule(self, *, initial_delay_seconds: float = 0.0) -> PeriodicSchedule:
        """Create or replace the named schedule. Safe to call repeatedly."""
        first_run_at = self._clock() + max(0.0, float(initial_delay_seconds))
        return await self._call_store(
            self._schedules.replace,
            self._name,
            interval_seconds=self._interval_s,
            first_run_at=first_run_at,
        )

    async def cancel(self) -> bool:
        removed = await self._call_store(self._schedules.remove, self._name)
        if removed:
            logger.info("Schedule %s cancelled", self._name)
        return removed

    async def current_schedule(self) -> PeriodicSchedule | None:
        return await self._call_store(self._schedules.get, self._name)

    async def active_schedules(self) -> list[PeriodicSchedule]:
        return await self._call_store(self._schedules.list_all)

    # ---- runs ----

    async def run_once(self, *, generation: int | None = None) -> RunResult:
        """
        One cleanup run: Idle -> Running -> Idle (success | failed).

        Errors are swallowed here and reported through the result.
        """
        started_at = self._clock()
        self._state = SchedulerState.RUNNING
        cutoff: int | None = None
        try:
            await asyncio.to_thread(self._preferences.reload)
            days = self._preferences.auto_delete_days
            cutoff = cutoff_for_days(days, int(started_at * 1000))
            removed = await self._service.cleanup(cutoff)
            result = RunResult(
                status=RunStatus.SUCCESS,
                started_at=started_at,
                cutoff_ms=cutoff,
                removed=int(removed),
            )
            logger.info("Cleanup run %s ok days=%s removed=%s", self._name, days, removed)
        except Exception as e:
            logger.exception("Cleanup run %s failed", self._name)
            result = RunResult(
                status=RunStatus.FAILED,
                started_at=started_at,
                cutoff_ms=cutoff,
                error=SchedulerRunFailure(self._name, e),
            )
        finally:
            self._state = SchedulerState.IDLE

        self._last_result = result

        if generation is None:
            sched = await self._safe_current()
            generation = sched.generation if sched else None
        if generation is not None:
            try:
                applied = await self._call_store(
                    self._schedules.record_run,
                    self._name,
                    generation=generation,
                    started_at=started_at,
                    status=result.status,
                )
                if not applied:
                    logger.info("Schedule %s was replaced during the run; keeping the new one", self._name)
            except StorageError:
                logger.exception("record_run failed schedule=%s", self._name)

        return result

    async def _safe_current(self) -> PeriodicSchedule | None:
        try:
            return await self.current_schedule()
        except StorageError:
            logger.exception("Reading schedule %s failed", self._name)
            return None

    async def run_forever(self, *, poll_seconds: float = 60.0) -> None:
        """
        Polling loop: run_once() whenever the persisted schedule is due.

        Nothing runs while no schedule exists (call schedule() first).
        To stop the scheduler, cancel the coroutine/task.
        """
        poll_s = max(0.01, float(poll_seconds))
        logger.info("Retention scheduler started name=%s poll=%ss", self._name, poll_s)

        # (generation, next_run_at) of the last slot we ran; a slot runs at most once
        # even if recording its outcome failed.
        last_slot: tuple[int, float] | None = None

        while True:
            sched = await self._safe_current()
            now_ts = self._clock()

            if sched is not None and sched.is_due(now_ts):
                slot = (sched.generation, sched.next_run_at)
                if slot != last_slot:
                    last_slot = slot
                    await self.run_once(generation=sched.generation)
                    continue

            if sched is None or sched.is_due(now_ts):
                sleep_s = poll_s
            else:
                sleep_s = min(poll_s, max(0.01, sched.next_run_at - now_ts))
            await asyncio.sleep(sleep_s)
