# tests/test_preferences.py

from __future__ import annotations

import json
from pathlib import Path

import pytest

from ticktasks.errors import InvalidInput
from ticktasks.preferences import Preferences, Theme


def test_defaults_when_file_is_missing(tmp_path: Path) -> None:
    prefs = Preferences(tmp_path / "missing.json")
    assert prefs.auto_delete_days == 3
    assert prefs.theme == Theme.LIGHT


def test_values_round_trip_through_the_file(tmp_path: Path) -> None:
    path = tmp_path / "preferences.json"
    prefs = Preferences(path)
    prefs.set_auto_delete_days(7)
    prefs.set_theme(Theme.DARK)

    assert json.loads(path.read_text("utf-8")) == {"auto_delete_days": 7, "theme": 1}

    other = Preferences(path)
    assert other.auto_delete_days == 7
    assert other.theme == Theme.DARK


def test_reload_picks_up_external_changes(tmp_path: Path) -> None:
    path = tmp_path / "preferences.json"
    prefs = Preferences(path)
    Preferences(path).set_auto_delete_days(10)

    assert prefs.auto_delete_days == 3
    prefs.reload()
    assert prefs.auto_delete_days == 10


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        "[1, 2]",
        '{"auto_delete_days": "abc", "theme": 7}',
        '{"auto_delete_days": -2}',
        '{"auto_delete_days": true}',
    ],
)
def test_broken_values_fall_back_to_defaults(tmp_path: Path, content: str) -> None:
    path = tmp_path / "preferences.json"
    path.write_text(content, "utf-8")

    prefs = Preferences(path, default_auto_delete_days=4)
    assert prefs.auto_delete_days == 4
    assert prefs.theme == Theme.LIGHT


def test_invalid_updates_are_rejected(tmp_path: Path) -> None:
    prefs = Preferences(tmp_path / "preferences.json")

    with pytest.raises(InvalidInput):
        prefs.set_auto_delete_days(-1)
    with pytest.raises(InvalidInput):
        prefs.set_theme(5)

    assert prefs.auto_delete_days == 3
    assert not prefs.path.exists()
