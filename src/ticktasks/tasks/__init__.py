"""
Task subsystem.

Components:
- task_models.py: the Task dataclass
- task_feed.py: push stream of list snapshots
- task_store.py: SQLite-backed storage (async API, worker thread)
- task_service.py: business rules (validation, check timestamps, restore, bulk delete, cleanup)
- retention.py: cutoff arithmetic
- schedule_store.py: persisted named periodic schedules
- task_scheduler.py: retention scheduler that runs cleanup once per period
"""
