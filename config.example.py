# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TICKTASKS_APP_NAME": "App display name (default: ticktasks).",
    "TICKTASKS_LOG_LEVEL": "Console logging level (default: INFO).",
    # Front-end
    "TICKTASKS_CONSOLE_ENABLED": "Run the console REPL (true/false). false = scheduler only.",
    # Paths (gitignored)
    "TICKTASKS_DATA_DIR": "Local data directory (default: .local/ticktasks).",
    "TICKTASKS_TASKS_DB_PATH": "Task SQLite path (default: <data_dir>/tasks.sqlite3).",
    "TICKTASKS_PREFERENCES_PATH": "Preferences JSON path (default: <data_dir>/preferences.json).",
    # Retention
    "TICKTASKS_DEFAULT_AUTO_DELETE_DAYS": "Days to keep checked tasks when no preference is saved (default: 3).",
    "TICKTASKS_CLEANUP_INTERVAL_HOURS": "Cleanup cadence in hours (default: 24).",
    "TICKTASKS_SCHEDULER_ENABLED": "Poll the cleanup schedule while running (true/false).",
    "TICKTASKS_SCHEDULER_POLL_SECONDS": "How often the scheduler checks whether a run is due (default: 60).",
}
