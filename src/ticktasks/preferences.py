# src/ticktasks/preferences.py

"""
User preferences (the settings dialog of the app).

A tiny JSON key-value file:
- auto_delete_days: how long checked tasks are kept (non-negative int, default 3)
- theme: 0 = light, 1 = dark (default 0)

The object is passed explicitly to the service and the scheduler; they call
reload() before reading so a change written by another caller is picked up.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import threading
from enum import IntEnum
from pathlib import Path
from typing import Any

from .errors import InvalidInput, StorageError

logger = logging.getLogger(__name__)

KEY_AUTO_DELETE_DAYS = "auto_delete_days"
KEY_THEME = "theme"

DEFAULT_AUTO_DELETE_DAYS = 3


class Theme(IntEnum):
    LIGHT = 0
    DARK = 1

    @classmethod
    def from_raw(cls, raw: Any) -> Theme:
        try:
            return cls(int(raw))
        except Exception:
            return cls.LIGHT


def _coerce_days(raw: Any, default: int) -> int:
    # Mirrors the settings dialog: anything that is not a number falls back to the default.
    if isinstance(raw, bool):
        return default
    try:
        days = int(raw)
    except (TypeError, ValueError):
        return default
    return days if days >= 0 else default


class Preferences:
    """JSON-file backed preferences with an explicit reload()."""

    def __init__(
        self,
        path: str | Path,
        *,
        default_auto_delete_days: int = DEFAULT_AUTO_DELETE_DAYS,
    ) -> None:
        self._path = Path(path)
        self._default_days = max(0, int(default_auto_delete_days))
        self._lock = threading.Lock()
        self._auto_delete_days = self._default_days
        self._theme = Theme.LIGHT
        self.reload()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def auto_delete_days(self) -> int:
        return self._auto_delete_days

    @property
    def theme(self) -> Theme:
        return self._theme

    def reload(self) -> None:
        """Re-read the file (best-effort: missing or broken file means defaults)."""
        data: dict[str, Any] = {}
        if self._path.exists():
            try:
                raw = json.loads(self._path.read_text("utf-8"))
                if isinstance(raw, dict):
                    data = raw
                else:
                    logger.warning("Preferences file %s is not an object; using defaults", self._path)
            except Exception:
                logger.exception("Failed to read preferences from %s", self._path)

        with self._lock:
            self._auto_delete_days = _coerce_days(data.get(KEY_AUTO_DELETE_DAYS), self._default_days)
            self._theme = Theme.from_raw(data.get(KEY_THEME, Theme.LIGHT))

    def set_auto_delete_days(self, days: int) -> None:
        if isinstance(days, bool) or not isinstance(days, int):
            raise InvalidInput(f"auto_delete_days must be an integer, got {days!r}")
        if days < 0:
            raise InvalidInput("auto_delete_days must be >= 0")
        with self._lock:
            self._auto_delete_days = days
        self._save()
        logger.info("Preference %s=%s", KEY_AUTO_DELETE_DAYS, days)

    def set_theme(self, theme: Theme | int) -> None:
        try:
            value = Theme(int(theme))
        except ValueError as e:
            raise InvalidInput(f"unknown theme {theme!r}") from e
        with self._lock:
            self._theme = value
        self._save()
        logger.info("Preference %s=%s", KEY_THEME, value.name.lower())

    def as_dict(self) -> dict[str, int]:
        with self._lock:
            return {
                KEY_AUTO_DELETE_DAYS: self._auto_delete_days,
                KEY_THEME: int(self._theme),
            }

    def _save(self) -> None:
        payload = json.dumps(self.as_dict(), indent=2)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(".tmp")
            tmp.write_text(payload, "utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            raise StorageError(f"failed to write preferences to {self._path}") from e
        with contextlib.suppress(Exception):
            os.chmod(self._path, 0o600)
