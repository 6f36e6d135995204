"""Domain models for pipewatch."""

from pipewatch.kernel.domain.models import (
    Job,
    JobPhase,
    Pipeline,
    ResolvedSelection,
    ScheduleResult,
    Selection,
    Snapshot,
    Task,
    TaskLogs,
    TaskStatus,
)

__all__ = [
    "Job",
    "JobPhase",
    "Pipeline",
    "ResolvedSelection",
    "ScheduleResult",
    "Selection",
    "Snapshot",
    "Task",
    "TaskLogs",
    "TaskStatus",
]
