# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from ticktasks.config import Settings


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("DATA_DIR", "TASKS_DB_PATH", "DEFAULT_AUTO_DELETE_DAYS", "CLEANUP_INTERVAL_HOURS"):
        monkeypatch.delenv(f"TICKTASKS_{name}", raising=False)

    s = Settings.from_env()
    assert s.data_dir == Path(".local/ticktasks")
    assert s.tasks_db_path == s.data_dir / "tasks.sqlite3"
    assert s.default_auto_delete_days == 3
    assert s.cleanup_interval_seconds == 24 * 3600


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TICKTASKS_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TICKTASKS_DEFAULT_AUTO_DELETE_DAYS", "-4")
    monkeypatch.setenv("TICKTASKS_CLEANUP_INTERVAL_HOURS", "not-a-number")
    monkeypatch.setenv("TICKTASKS_SCHEDULER_ENABLED", "no")

    s = Settings.from_env()
    assert s.preferences_path == tmp_path / "preferences.json"
    assert s.default_auto_delete_days == 0
    assert s.cleanup_interval_hours == 24.0
    assert s.scheduler_enabled is False
