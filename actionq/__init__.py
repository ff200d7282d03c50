"""ActionQ - apply analysis-suggested actions and track notification delivery"""

from __future__ import annotations

__version__ = "0.1.0"


# Lazy imports so `import actionq` stays cheap (no pydantic/requests/sqlite setup)
def __getattr__(name: str):
    if name in ("Action", "ActionType"):
        from actionq.actions import models

        return getattr(models, name)

    if name in ("ActionRouter",):
        from actionq.actions.router import ActionRouter

        return ActionRouter

    if name in ("ExecutionDriver", "BatchReport", "ActionOutcome", "build_driver"):
        from actionq.actions import executor

        return getattr(executor, name)

    if name in ("NotificationTracker",):
        from actionq.notifications.tracker import NotificationTracker

        return NotificationTracker

    if name in ("SQLiteRecordStore", "RecordStore"):
        from actionq.storage import repository

        return getattr(repository, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "Action",
    "ActionType",
    "ActionRouter",
    "ExecutionDriver",
    "BatchReport",
    "ActionOutcome",
    "build_driver",
    "NotificationTracker",
    "SQLiteRecordStore",
    "RecordStore",
]
