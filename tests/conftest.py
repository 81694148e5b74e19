# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from types import SimpleNamespace

import pytest

from ticktasks.cli.bootstrap import create_initial_state, shutdown
from ticktasks.core.state import AppState
from ticktasks.preferences import Preferences
from ticktasks.tasks.schedule_store import ScheduleStore
from ticktasks.tasks.task_service import TaskService
from ticktasks.tasks.task_store import TaskStore

from .fakes import FakeClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the bootstrap and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="ticktasks-test",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        preferences_path=tmp_path / "preferences.json",
        default_auto_delete_days=3,
        cleanup_interval_seconds=24 * 60 * 60,
        scheduler_enabled=False,
        scheduler_poll_seconds=60.0,
    )


@pytest.fixture()
def store(settings: SimpleNamespace) -> Iterator[TaskStore]:
    s = TaskStore(settings.tasks_db_path)
    yield s
    s.close()


@pytest.fixture()
def preferences(settings: SimpleNamespace) -> Preferences:
    return Preferences(settings.preferences_path)


@pytest.fixture()
def schedule_store(settings: SimpleNamespace) -> ScheduleStore:
    return ScheduleStore(settings.tasks_db_path)


@pytest.fixture()
def clock_ms() -> FakeClock:
    return FakeClock(1_700_000_000_000)


@pytest.fixture()
def service(store: TaskStore, preferences: Preferences, clock_ms: FakeClock) -> TaskService:
    return TaskService(store, preferences, clock=clock_ms)


@pytest.fixture()
def state(settings: SimpleNamespace) -> Iterator[AppState]:
    """
    AppState with a real background loop.

    NOTE: We keep the real SQLite store here because its behaviour
    is part of what the command tests exercise.
    """
    st = create_initial_state(settings=settings)
    yield st
    shutdown(st)
