"""Mutation coordinator: start pipelines and cancel jobs without double submits.

In-flight state is tracked per target in two maps (pipeline name -> flag,
job id -> flag). A map is replaced wholesale on every change and never
edited in place. A target is marked in flight synchronously, before the
first await, so a second call in the same loop iteration already sees it.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING

from pipewatch.kernel.exceptions import RemoteError
from pipewatch.kernel.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pipewatch.kernel.ports.remote_state import RemoteState
    from pipewatch.kernel.sync.poller import SnapshotPoller
    from pipewatch.kernel.sync.selection import SelectionController

logger = get_logger(__name__)

_EMPTY: Mapping[str, bool] = MappingProxyType({})


def _with_flag(flags: Mapping[str, bool], key: str, value: bool) -> Mapping[str, bool]:
    updated = {k: v for k, v in flags.items() if k != key}
    if value:
        updated[key] = True
    return MappingProxyType(updated)


class MutationCoordinator:
    """Executes start/cancel requests and forces a snapshot refresh afterwards.

    The refresh is fire-and-forget: callers get their result as soon as the
    mutation request settles, and the new state shows up once the poller
    applies the next snapshot.
    """

    def __init__(
        self,
        remote: RemoteState,
        poller: SnapshotPoller,
        selection: SelectionController,
    ) -> None:
        self._remote = remote
        self._poller = poller
        self._selection = selection
        self._starting: Mapping[str, bool] = _EMPTY
        self._canceling: Mapping[str, bool] = _EMPTY

    @property
    def starting(self) -> Mapping[str, bool]:
        """Read-only view of pipelines with a schedule request in flight."""
        return self._starting

    @property
    def canceling(self) -> Mapping[str, bool]:
        """Read-only view of jobs with a cancel request in flight."""
        return self._canceling

    def is_starting(self, pipeline_name: str) -> bool:
        return self._starting.get(pipeline_name, False)

    def is_canceling(self, job_id: str) -> bool:
        return self._canceling.get(job_id, False)

    def can_start(self, pipeline_name: str) -> bool:
        """Whether a start request for the pipeline would be sent right now."""
        if self.is_starting(pipeline_name):
            return False
        snapshot = self._poller.snapshot
        pipeline = snapshot.find_pipeline(pipeline_name) if snapshot else None
        return pipeline is not None and pipeline.schedulable

    def can_cancel(self, job_id: str) -> bool:
        """Whether a cancel request for the job would be sent right now."""
        if self.is_canceling(job_id):
            return False
        snapshot = self._poller.snapshot
        job = snapshot.find_job(job_id) if snapshot else None
        return job is not None and job.is_running

    async def astart_pipeline(self, pipeline_name: str) -> str | None:
        """Schedule a new job and select it.

        Returns
        -------
            The new job id, or None if the start was rejected locally
            (already in flight, or the pipeline is unknown or not
            schedulable in the latest snapshot).

        Raises
        ------
        RemoteError
            If the schedule request fails; the selection is left untouched.
        """
        if not self.can_start(pipeline_name):
            logger.debug("Start of pipeline {name} rejected", name=pipeline_name)
            return None

        self._starting = _with_flag(self._starting, pipeline_name, True)
        try:
            result = await self._remote.aschedule(pipeline_name)
        except RemoteError as e:
            logger.warning("Starting pipeline {name} failed: {error}", name=pipeline_name, error=e)
            raise
        finally:
            self._starting = _with_flag(self._starting, pipeline_name, False)

        logger.info("Scheduled pipeline {name} as job {job_id}", name=pipeline_name, job_id=result.job_id)
        self._poller.refresh_now()
        self._selection.select(job=result.job_id, task=None)
        return result.job_id

    async def acancel_job(self, job_id: str) -> bool:
        """Request cancellation of a running job.

        Returns
        -------
            True if the request was sent, False if it was rejected locally
            (already in flight, or the job is not running in the latest
            snapshot).

        Raises
        ------
        RemoteError
            If the cancel request fails. The snapshot refresh has already
            been triggered by then.
        """
        if not self.can_cancel(job_id):
            logger.debug("Cancel of job {job_id} rejected", job_id=job_id)
            return False

        self._canceling = _with_flag(self._canceling, job_id, True)
        try:
            await self._remote.acancel(job_id)
        except RemoteError as e:
            logger.warning("Canceling job {job_id} failed: {error}", job_id=job_id, error=e)
            raise
        finally:
            self._canceling = _with_flag(self._canceling, job_id, False)
            self._poller.refresh_now()

        logger.info("Cancel requested for job {job_id}", job_id=job_id)
        return True
