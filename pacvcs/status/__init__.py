"""Status reporting state machine shared by all provider adapters.

Public API
----------
present_status
    Render the fixed title and summary for a report.
plan_status_update
    Decide whether a report creates or updates the provider object.
advance_check_run
    Run a report through adapter callbacks and update the event.
CheckRunLocks
    Per-run locks for orchestrators that report from several tasks.
"""

from __future__ import annotations

from .lifecycle import (
    CreateStatus,
    StatusUpdate,
    UpdateStatus,
    advance_check_run,
    plan_status_update,
)
from .locks import CheckRunLocks, run_key
from .presentation import (
    RUNNING_SUMMARY,
    RUNNING_TITLE,
    StatusPresentation,
    present_status,
)

__all__ = [
    "RUNNING_SUMMARY",
    "RUNNING_TITLE",
    "CheckRunLocks",
    "CreateStatus",
    "StatusPresentation",
    "StatusUpdate",
    "UpdateStatus",
    "advance_check_run",
    "plan_status_update",
    "present_status",
    "run_key",
]
