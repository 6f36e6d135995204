"""Display helpers for jobs: phase labels, durations and timestamps."""

from __future__ import annotations

from datetime import datetime

from pipewatch.kernel.domain.models import Job, JobPhase
from pipewatch.visualization.task_graph import VisualState

DATE_FORMAT_TIME_AND_DAY = "%H:%M:%S %Y-%m-%d"

_UNITS: tuple[tuple[str, int], ...] = (
    ("year", 365 * 24 * 3600),
    ("month", 30 * 24 * 3600),
    ("day", 24 * 3600),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


def job_visual_state(job: Job) -> VisualState:
    """Map a job to the visual tag of its list entry."""
    if job.canceled:
        return VisualState.MUTED
    if job.errored:
        return VisualState.FAILURE
    if job.completed:
        return VisualState.SUCCESS
    return VisualState.ACTIVE


def job_duration(job: Job, now: datetime | None = None) -> float | None:
    """Seconds a job ran (or has been running), None if it never started."""
    if job.start is None:
        return None
    if job.end is not None:
        return (job.end - job.start).total_seconds()
    if job.is_running:
        # naive wire timestamps compare against a naive now
        now = now or datetime.now(tz=job.start.tzinfo)
        return max(0.0, (now - job.start).total_seconds())
    return None


def format_duration(seconds: float) -> str:
    """Format a duration using the largest whole unit, e.g. ``3 minutes``."""
    seconds = abs(seconds)
    unit, size = next(((u, s) for u, s in _UNITS if seconds >= s), _UNITS[-1])
    value = int(seconds // size)
    return f"{value} {unit}" + ("" if value == 1 else "s")


def format_timestamp(value: datetime | None) -> str:
    if value is None:
        return "-"
    return value.strftime(DATE_FORMAT_TIME_AND_DAY)


def describe_job(job: Job, now: datetime | None = None) -> str:
    """One-line status text like the job list shows it."""
    phase = job.phase
    if phase == JobPhase.QUEUED:
        return f"Queued {format_timestamp(job.created)}"
    duration = job_duration(job, now)
    if phase == JobPhase.RUNNING and duration is not None:
        return f"Running for {format_duration(duration)}"
    if phase in (JobPhase.COMPLETED, JobPhase.ERRORED) and duration is not None:
        label = "Completed" if phase == JobPhase.COMPLETED else "Failed"
        return f"{label} in {format_duration(duration)}"
    if phase == JobPhase.CANCELED:
        return "Canceled"
    return f"Started {format_timestamp(job.start)}"
