# src/ticktasks/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Minimum console level per logger prefix. These modules run on the background
# loop (or echo what a command reply already says) and would interleave with the
# prompt and the /watch output; their full detail still goes to the log file.
_CONSOLE_MIN_LEVELS: tuple[tuple[str, int], ...] = (
    ("ticktasks.tasks.task_scheduler", logging.WARNING),
    ("ticktasks.tasks.schedule_store", logging.WARNING),
    ("ticktasks.tasks.task_store", logging.WARNING),
    ("ticktasks.tasks.task_feed", logging.WARNING),
    ("ticktasks.tasks.task_service", logging.WARNING),
    ("ticktasks.preferences", logging.WARNING),
)


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the interactive console readable:
    - allow ticktasks logs from the console and startup code
    - keep the task modules quiet unless WARNING+ (see _CONSOLE_MIN_LEVELS)
    - suppress Python warnings (captured as 'py.warnings') unless ERROR+
    - suppress third-party noise unless ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name == "ticktasks" or name.startswith("ticktasks."):
            for prefix, level in _CONSOLE_MIN_LEVELS:
                if name == prefix or name.startswith(prefix + "."):
                    return record.levelno >= level
            return True

        if name == "py.warnings":
            return record.levelno >= logging.ERROR

        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/ticktasks",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Configure logging with:
    - Console handler: readable + filtered for interactive use
    - File handler: full logs for debugging

    Call this ONCE, very early (before first logger.info).
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "ticktasks.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    logging.captureWarnings(True)
