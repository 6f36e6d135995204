"""RemoteState port: the four operations of the job-running service.

Adapters
--------
- ``HttpClientDriver``: talks to the service over HTTP with httpx.
- ``MockRemoteState``: records calls for tests and can hold requests open.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pipewatch.kernel.domain.models import ScheduleResult, Snapshot, TaskLogs


@runtime_checkable
class RemoteState(Protocol):
    """Port for reading and mutating server-side pipeline state.

    Every method raises :class:`~pipewatch.kernel.exceptions.RemoteError`
    on failure and never touches local state.
    """

    @abstractmethod
    async def afetch_snapshot(self) -> Snapshot:
        """Fetch the combined pipelines and jobs document."""
        ...

    @abstractmethod
    async def aschedule(self, pipeline_name: str) -> ScheduleResult:
        """Schedule a new job for the given pipeline."""
        ...

    @abstractmethod
    async def acancel(self, job_id: str) -> None:
        """Request cancellation of a job."""
        ...

    @abstractmethod
    async def afetch_logs(self, job_id: str, task_name: str) -> TaskLogs:
        """Fetch captured stdout/stderr of one task."""
        ...
