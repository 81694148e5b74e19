"""ticktasks: a local to-do list with automatic cleanup of checked tasks."""

__version__ = "0.1.0"
