"""Mock RemoteState implementation for testing purposes."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from pipewatch.kernel.domain.models import ScheduleResult, Snapshot, TaskLogs
from pipewatch.kernel.exceptions import RemoteError
from pipewatch.kernel.ports.remote_state import RemoteState


@dataclass(frozen=True)
class RecordedCall:
    """A recorded RemoteState call for test assertions."""

    method: str
    args: tuple[Any, ...] = ()


class MockRemoteState(RemoteState):
    """Mock RemoteState adapter for testing.

    Records all calls and serves pre-configured responses. Calls can be
    held open with :meth:`hold` to simulate a slow server, and made to
    fail with :meth:`fail_next`.

    Parameters
    ----------
    snapshots : Snapshot | list[Snapshot] | None
        Snapshots served by ``afetch_snapshot``, in order. The last one is
        repeated once the list is exhausted.
    job_ids : list[str] | None
        Job ids returned by successive ``aschedule`` calls. Defaults to
        ``"1"``, ``"2"``, ...
    logs : dict[tuple[str, str], TaskLogs] | None
        Logs keyed by ``(job_id, task_name)``. Missing keys produce a 404.

    Examples
    --------
    Hold a fetch open::

        remote = MockRemoteState(snapshots=snapshot)
        remote.hold("afetch_snapshot")
        poller.tick()
        ...
        remote.release("afetch_snapshot")
    """

    def __init__(
        self,
        snapshots: Snapshot | list[Snapshot] | None = None,
        job_ids: list[str] | None = None,
        logs: dict[tuple[str, str], TaskLogs] | None = None,
    ) -> None:
        if snapshots is None:
            self._snapshots: list[Snapshot] = [Snapshot()]
        elif isinstance(snapshots, Snapshot):
            self._snapshots = [snapshots]
        else:
            self._snapshots = list(snapshots)
        self._job_ids = list(job_ids) if job_ids else []
        self._logs = dict(logs) if logs else {}
        self._snapshot_index = 0
        self._schedule_count = 0
        self._gates: dict[str, asyncio.Event] = {}
        self._failures: dict[str, list[RemoteError]] = {}
        self.calls: list[RecordedCall] = []

    # ------------------------------------------------------------------
    # Test controls
    # ------------------------------------------------------------------

    def calls_to(self, method: str) -> list[RecordedCall]:
        return [call for call in self.calls if call.method == method]

    def set_snapshots(self, *snapshots: Snapshot) -> None:
        """Replace the served snapshots, starting over from the first."""
        self._snapshots = list(snapshots)
        self._snapshot_index = 0

    def hold(self, method: str) -> None:
        """Block calls to ``method`` until :meth:`release` is called."""
        self._gates.setdefault(method, asyncio.Event())

    def release(self, method: str) -> None:
        gate = self._gates.pop(method, None)
        if gate is not None:
            gate.set()

    def fail_next(self, method: str, error: RemoteError | None = None) -> None:
        """Make the next call to ``method`` raise ``error`` (default HTTP 500)."""
        self._failures.setdefault(method, []).append(
            error or RemoteError(500, "HTTP 500: internal error")
        )

    async def _enter(self, method: str, *args: Any) -> None:
        self.calls.append(RecordedCall(method=method, args=args))
        gate = self._gates.get(method)
        if gate is not None:
            await gate.wait()
        else:
            # yield like a real round trip would
            await asyncio.sleep(0)
        failures = self._failures.get(method)
        if failures:
            raise failures.pop(0)

    # ------------------------------------------------------------------
    # RemoteState
    # ------------------------------------------------------------------

    async def afetch_snapshot(self) -> Snapshot:
        await self._enter("afetch_snapshot")
        index = min(self._snapshot_index, len(self._snapshots) - 1)
        self._snapshot_index += 1
        return self._snapshots[index]

    async def aschedule(self, pipeline_name: str) -> ScheduleResult:
        await self._enter("aschedule", pipeline_name)
        self._schedule_count += 1
        if self._job_ids:
            job_id = self._job_ids.pop(0)
        else:
            job_id = str(self._schedule_count)
        return ScheduleResult(job_id=job_id)

    async def acancel(self, job_id: str) -> None:
        await self._enter("acancel", job_id)

    async def afetch_logs(self, job_id: str, task_name: str) -> TaskLogs:
        await self._enter("afetch_logs", job_id, task_name)
        try:
            return self._logs[(job_id, task_name)]
        except KeyError:
            raise RemoteError(404, f"HTTP 404: no logs for {job_id}/{task_name}") from None
