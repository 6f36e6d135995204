"""Domain models for the pipelines/jobs/tasks hierarchy.

These models mirror the JSON documents served by the job-running service.
They are frozen: a :class:`Snapshot` is replaced wholesale on every poll
and never edited in place.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from pipewatch.kernel.exceptions import ValidationError

_WIRE_CONFIG = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class TaskStatus(StrEnum):
    """Execution status of a task within a job."""

    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"
    CANCELED = "canceled"


class JobPhase(StrEnum):
    """Coarse lifecycle phase of a job, derived from its timestamps and flags."""

    QUEUED = "queued"
    RUNNING = "running"
    CANCELED = "canceled"
    COMPLETED = "completed"
    ERRORED = "errored"
    FINISHED = "finished"


class Pipeline(BaseModel):
    """A named workflow template that can be scheduled."""

    model_config = _WIRE_CONFIG

    name: str = Field(validation_alias=AliasChoices("pipeline", "name"))
    schedulable: bool = False


class Task(BaseModel):
    """A unit of work within a job.

    ``depends_on`` holds names of other tasks in the same job. The server
    guarantees they exist and form no cycle; the client does not check.
    """

    model_config = _WIRE_CONFIG

    name: str
    status: TaskStatus = TaskStatus.PENDING
    depends_on: tuple[str, ...] = Field(default=(), alias="dependsOn")
    exit_code: int | None = Field(default=None, alias="exitCode")
    stdout_available: bool = Field(default=False, alias="stdoutAvailable")
    stderr_available: bool = Field(default=False, alias="stderrAvailable")
    start: datetime | None = None
    end: datetime | None = None
    errored: bool = False
    skipped: bool = False

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> Any:
        # statuses this client does not know (e.g. "waiting") render as pending
        if isinstance(value, str) and value not in TaskStatus._value2member_map_:
            return TaskStatus.PENDING
        return value

    @field_validator("depends_on", mode="before")
    @classmethod
    def _normalize_depends_on(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, (list, tuple)):
            return tuple(dict.fromkeys(value))
        return value


class Job(BaseModel):
    """One execution of a pipeline."""

    model_config = _WIRE_CONFIG

    id: str
    pipeline: str
    created: datetime
    start: datetime | None = None
    end: datetime | None = None
    canceled: bool = False
    completed: bool = False
    errored: bool = False
    variables: dict[str, Any] | None = None
    tasks: tuple[Task, ...] = ()

    @field_validator("tasks", mode="before")
    @classmethod
    def _tasks_or_empty(cls, value: Any) -> Any:
        return () if value is None else value

    @property
    def is_running(self) -> bool:
        """True iff the job has started and has neither ended nor been canceled."""
        return self.start is not None and self.end is None and not self.canceled

    @property
    def phase(self) -> JobPhase:
        if self.canceled:
            return JobPhase.CANCELED
        if self.errored:
            return JobPhase.ERRORED
        if self.completed:
            return JobPhase.COMPLETED
        if self.start is None:
            return JobPhase.QUEUED
        if self.end is None:
            return JobPhase.RUNNING
        return JobPhase.FINISHED

    def find_task(self, name: str | None) -> Task | None:
        if name is None:
            return None
        for task in self.tasks:
            if task.name == name:
                return task
        return None


class Snapshot(BaseModel):
    """The combined pipelines+jobs document as last retrieved from the server."""

    model_config = _WIRE_CONFIG

    pipelines: tuple[Pipeline, ...] = ()
    jobs: tuple[Job, ...] = ()

    @field_validator("pipelines", "jobs", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return () if value is None else value

    def find_job(self, job_id: str | None) -> Job | None:
        if job_id is None:
            return None
        for job in self.jobs:
            if job.id == job_id:
                return job
        return None

    def find_pipeline(self, name: str) -> Pipeline | None:
        for pipeline in self.pipelines:
            if pipeline.name == name:
                return pipeline
        return None


class Selection(BaseModel):
    """The operator's point of focus, persisted outside the sync engine."""

    model_config = ConfigDict(frozen=True)

    job: str | None = None
    task: str | None = None

    @model_validator(mode="after")
    def _task_requires_job(self) -> Selection:
        if self.task is not None and self.job is None:
            raise ValidationError("task", "requires a job to be selected", self.task)
        return self

    @classmethod
    def from_values(cls, job: str | None, task: str | None) -> Selection:
        """Build a selection from raw accessor values.

        Empty strings count as unset and an orphan task is dropped.
        """
        job = job or None
        task = task or None
        if job is None:
            task = None
        return cls(job=job, task=task)


class ResolvedSelection(BaseModel):
    """A selection resolved against one concrete snapshot."""

    model_config = ConfigDict(frozen=True)

    job: Job | None = None
    task: Task | None = None


class TaskLogs(BaseModel):
    """Captured output of one task."""

    model_config = _WIRE_CONFIG

    stdout: str | None = None
    stderr: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.stdout and not self.stderr


class ScheduleResult(BaseModel):
    """Response of a schedule request."""

    model_config = _WIRE_CONFIG

    job_id: str = Field(alias="jobId")


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
