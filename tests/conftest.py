"""Configuration file for pytest containing shared fixtures.

This module provides fixtures that can be used across multiple test files:
- make_task / make_job: builders for domain objects with sensible defaults
- sample_snapshot: a snapshot with one running and one finished job
- wire_document: the same state as the service would send it over HTTP
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import pytest

from pipewatch.kernel.domain.models import Job, Pipeline, Snapshot, Task, TaskStatus

CREATED = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)
STARTED = datetime(2024, 5, 1, 12, 0, 5, tzinfo=UTC)
ENDED = datetime(2024, 5, 1, 12, 3, 5, tzinfo=UTC)


@pytest.fixture
def make_task() -> Callable[..., Task]:
    def _make(name: str, status: TaskStatus = TaskStatus.PENDING, **kwargs: Any) -> Task:
        return Task(name=name, status=status, **kwargs)

    return _make


@pytest.fixture
def make_job() -> Callable[..., Job]:
    def _make(job_id: str, pipeline: str = "build", **kwargs: Any) -> Job:
        kwargs.setdefault("created", CREATED)
        return Job(id=job_id, pipeline=pipeline, **kwargs)

    return _make


@pytest.fixture
def sample_snapshot(make_job, make_task) -> Snapshot:
    running = make_job(
        "7",
        start=STARTED,
        tasks=(
            make_task("checkout", TaskStatus.DONE),
            make_task("build", TaskStatus.RUNNING, depends_on=("checkout",)),
            make_task("test", TaskStatus.PENDING, depends_on=("build",)),
        ),
    )
    finished = make_job(
        "6",
        pipeline="deploy",
        start=STARTED,
        end=ENDED,
        completed=True,
        tasks=(make_task("release", TaskStatus.DONE, exit_code=0),),
    )
    return Snapshot(
        pipelines=(
            Pipeline(name="build", schedulable=True),
            Pipeline(name="deploy", schedulable=False),
        ),
        jobs=(running, finished),
    )


@pytest.fixture
def wire_document() -> dict[str, Any]:
    return {
        "pipelines": [
            {"pipeline": "build", "schedulable": True},
            {"pipeline": "deploy", "schedulable": False},
        ],
        "jobs": [
            {
                "id": "7",
                "pipeline": "build",
                "created": "2024-05-01T12:00:00Z",
                "start": "2024-05-01T12:00:05Z",
                "end": None,
                "canceled": False,
                "completed": False,
                "errored": False,
                "variables": {"branch": "main"},
                "tasks": [
                    {"name": "checkout", "status": "done", "dependsOn": [], "exitCode": 0},
                    {"name": "build", "status": "running", "dependsOn": ["checkout"]},
                    {"name": "test", "status": "waiting", "dependsOn": ["build"]},
                ],
            }
        ],
    }
