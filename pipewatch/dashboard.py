"""Dashboard facade: wires the sync engine together from a DashboardConfig.

Usage::

    async with Dashboard(config) as dashboard:
        await dashboard.poller.aidle()
        job_id = await dashboard.astart_pipeline("build")
        graph = dashboard.task_graph()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from pipewatch.drivers.http_client.http_client import HttpClientDriver
from pipewatch.kernel.exceptions import RemoteError
from pipewatch.kernel.logging import get_logger
from pipewatch.kernel.sync.mutations import MutationCoordinator
from pipewatch.kernel.sync.poller import SnapshotPoller
from pipewatch.kernel.sync.selection import SelectionController
from pipewatch.stdlib.adapters.selection.stores import InMemorySelectionStore
from pipewatch.visualization.task_graph import TaskGraph, project

if TYPE_CHECKING:
    from types import TracebackType

    from pipewatch.kernel.config.models import DashboardConfig
    from pipewatch.kernel.domain.models import ResolvedSelection, Snapshot, TaskLogs
    from pipewatch.kernel.ports.remote_state import RemoteState
    from pipewatch.kernel.ports.selection_store import SelectionStore

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class TaskLogsResult:
    """Outcome of a log fetch for the task detail view.

    A failure stays in ``error`` and never affects snapshot or selection.
    """

    logs: TaskLogs | None = None
    error: RemoteError | None = None


class Dashboard:
    """Poller, mutation coordinator and selection controller behind one object.

    Parameters
    ----------
    config : DashboardConfig
        Connection and polling settings
    remote : RemoteState | None
        Remote accessor; defaults to an :class:`HttpClientDriver` built from
        ``config``. A supplied remote is not closed by the dashboard.
    selection_store : SelectionStore | None
        Where the selection is persisted; defaults to in-memory.
    """

    def __init__(
        self,
        config: DashboardConfig,
        remote: RemoteState | None = None,
        selection_store: SelectionStore | None = None,
    ) -> None:
        self.config = config
        self._owns_remote = remote is None
        self.remote: RemoteState = remote or HttpClientDriver.from_config(config)
        self.poller = SnapshotPoller.from_config(self.remote, config)
        self.selection = SelectionController(selection_store or InMemorySelectionStore(), self.poller)
        self.mutations = MutationCoordinator(self.remote, self.poller, self.selection)

    @property
    def snapshot(self) -> Snapshot | None:
        return self.poller.snapshot

    @property
    def current(self) -> ResolvedSelection:
        return self.selection.current

    def start(self) -> None:
        self.poller.start()

    async def aclose(self) -> None:
        await self.poller.astop()
        self.selection.close()
        if self._owns_remote and isinstance(self.remote, HttpClientDriver):
            await self.remote.aclose()

    async def __aenter__(self) -> Dashboard:
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def select(self, job: str | None = None, task: str | None = None) -> ResolvedSelection:
        return self.selection.select(job=job, task=task)

    async def astart_pipeline(self, pipeline_name: str) -> str | None:
        return await self.mutations.astart_pipeline(pipeline_name)

    async def acancel_job(self, job_id: str) -> bool:
        return await self.mutations.acancel_job(job_id)

    def task_graph(self) -> TaskGraph | None:
        """Graph of the selected job, or None when no job resolves."""
        job = self.current.job
        return project(job) if job is not None else None

    async def afetch_task_logs(self) -> TaskLogsResult | None:
        """Fetch logs of the selected task.

        Returns None when no task resolves in the latest snapshot.
        """
        current = self.current
        if current.job is None or current.task is None:
            return None
        try:
            logs = await self.remote.afetch_logs(current.job.id, current.task.name)
        except RemoteError as e:
            logger.warning(
                "Logs of {job}/{task} could not be loaded: {error}",
                job=current.job.id,
                task=current.task.name,
                error=e,
            )
            return TaskLogsResult(error=e)
        return TaskLogsResult(logs=logs)
