# src/ticktasks/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (store, service, scheduler on a
background event loop), registers the daily cleanup, then runs the console
REPL in the main thread.
"""

from __future__ import annotations

import logging
import signal
import threading

from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..errors import StorageError
from ..logging_setup import setup_logging
from .bootstrap import create_initial_state, shutdown, start_retention

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    try:
        state = create_initial_state(settings=settings)
    except StorageError:
        logger.exception("Cannot open local storage; exiting.")
        raise SystemExit(1)

    try:
        start_retention(state)
    except StorageError:
        # The app stays usable; the next start registers the schedule again.
        logger.exception("Could not register the cleanup schedule.")

    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
    except (ValueError, OSError):
        # Some platforms may not support SIGTERM.
        pass

    try:
        if settings.console_enabled:
            run_console_loop(state)
        else:
            logger.info("Console disabled. Running the cleanup scheduler only. Press Ctrl+C to stop.")
            try:
                stop_main.wait()
            except KeyboardInterrupt:
                logger.info("KeyboardInterrupt received, shutting down...")
    finally:
        shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
