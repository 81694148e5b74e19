# src/ticktasks/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the store, preferences, service and scheduler into AppState,
- starts / stops the background loop and the retention scheduler.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..preferences import Preferences
from ..tasks.schedule_store import ScheduleStore
from ..tasks.task_scheduler import DAY_SECONDS, RetentionScheduler
from ..tasks.task_service import TaskService
from ..tasks.task_store import TaskStore
from .runtime import BackgroundLoop, start_background_loop

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.preferences_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, runtime: BackgroundLoop | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    preferences = Preferences(
        settings.preferences_path,
        default_auto_delete_days=getattr(settings, "default_auto_delete_days", 3),
    )
    store = TaskStore(settings.tasks_db_path)
    service = TaskService(store, preferences)
    scheduler = RetentionScheduler(
        service,
        preferences,
        ScheduleStore(settings.tasks_db_path),
        interval_seconds=getattr(settings, "cleanup_interval_seconds", DAY_SECONDS),
    )

    return AppState(
        settings=settings,
        preferences=preferences,
        store=store,
        service=service,
        scheduler=scheduler,
        runtime=runtime or start_background_loop(),
    )


def start_retention(state: AppState) -> None:
    """(Re)register the daily cleanup and start the polling loop once."""
    state.runtime.call(state.scheduler.schedule())

    if not getattr(state.settings, "scheduler_enabled", True):
        logger.info("Retention scheduler disabled; schedule registered but not polled.")
        return

    if state.scheduler_future is None or state.scheduler_future.done():
        poll_s = float(getattr(state.settings, "scheduler_poll_seconds", 60.0))
        state.scheduler_future = state.runtime.spawn(state.scheduler.run_forever(poll_seconds=poll_s))


def reschedule_retention(state: AppState) -> None:
    """Called after the retention preference changes; replaces the existing schedule."""
    sched = state.runtime.call(state.scheduler.schedule())
    logger.info("Cleanup re-scheduled generation=%s", sched.generation)


def shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    for fut in (state.watch_future, state.scheduler_future):
        if fut is not None:
            fut.cancel()

    try:
        state.runtime.stop()
        state.runtime.join(timeout=10.0)
    except Exception:
        logger.debug("Background loop stop failed.", exc_info=True)

    try:
        state.store.close()
    except Exception:
        logger.debug("TaskStore close failed.", exc_info=True)
