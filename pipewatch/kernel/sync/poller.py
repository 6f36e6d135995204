"""Snapshot poller: keeps the latest pipelines/jobs snapshot up to date.

The poller is a small state machine::

    idle -> fetching -> settled_ok | settled_error -> idle

At most one fetch is in flight. A timer tick that arrives while the
machine is busy is dropped. :meth:`SnapshotPoller.refresh_now` queues a
single follow-up fetch instead. A failed poll never clears the held
snapshot. It raises the ``error`` flag until the next successful poll.

Usage::

    poller = SnapshotPoller(remote, interval_seconds=5.0)
    unsubscribe = poller.subscribe(lambda snapshot: print(len(snapshot.jobs)))
    poller.start()
    ...
    await poller.astop()
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from pipewatch.kernel.exceptions import InvalidTransitionError, RemoteError, ValidationError
from pipewatch.kernel.logging import get_logger

if TYPE_CHECKING:
    from pipewatch.kernel.config.models import DashboardConfig
    from pipewatch.kernel.domain.models import Snapshot
    from pipewatch.kernel.ports.remote_state import RemoteState

logger = get_logger(__name__)

SnapshotListener = Callable[["Snapshot"], None]


class PollState(StrEnum):
    """States of the poll machine."""

    IDLE = "idle"
    FETCHING = "fetching"
    SETTLED_OK = "settled_ok"
    SETTLED_ERROR = "settled_error"


_TRANSITIONS: dict[PollState, frozenset[PollState]] = {
    PollState.IDLE: frozenset({PollState.FETCHING}),
    PollState.FETCHING: frozenset({PollState.SETTLED_OK, PollState.SETTLED_ERROR}),
    PollState.SETTLED_OK: frozenset({PollState.IDLE}),
    PollState.SETTLED_ERROR: frozenset({PollState.IDLE}),
}


class SnapshotPoller:
    """Owns the recurring fetch of the combined pipelines+jobs document.

    Every fetch is tagged with a monotonic sequence number. A result whose
    number is lower than the last applied one is discarded, so an older
    response can never overwrite a newer snapshot.
    """

    def __init__(self, remote: RemoteState, interval_seconds: float = 5.0) -> None:
        if interval_seconds <= 0:
            raise ValidationError("interval_seconds", "must be positive", interval_seconds)
        self._remote = remote
        self._interval = interval_seconds
        self._state = PollState.IDLE
        self._snapshot: Snapshot | None = None
        self._error: RemoteError | None = None
        self._updated_at: datetime | None = None
        self._last_error_at: datetime | None = None
        self._refresh_queued = False
        self._next_seq = 0
        self._applied_seq = 0
        self._fetch_task: asyncio.Task[None] | None = None
        self._loop_task: asyncio.Task[None] | None = None
        self._listeners: list[SnapshotListener] = []

    @classmethod
    def from_config(cls, remote: RemoteState, config: DashboardConfig) -> SnapshotPoller:
        return cls(remote, interval_seconds=config.refresh_interval_seconds)

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> PollState:
        return self._state

    @property
    def snapshot(self) -> Snapshot | None:
        """Latest applied snapshot, or None before the first successful poll."""
        return self._snapshot

    @property
    def error(self) -> RemoteError | None:
        """Error of the last poll; cleared by the next successful one."""
        return self._error

    @property
    def is_fetching(self) -> bool:
        return self._state is PollState.FETCHING

    @property
    def is_loading(self) -> bool:
        """True while the very first snapshot is being fetched."""
        return self._snapshot is None and self.is_fetching

    @property
    def refresh_queued(self) -> bool:
        return self._refresh_queued

    @property
    def updated_at(self) -> datetime | None:
        return self._updated_at

    @property
    def last_error_at(self) -> datetime | None:
        return self._last_error_at

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a listener called with every newly applied snapshot.

        Returns
        -------
            A function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def tick(self) -> bool:
        """Timer callback: start a fetch unless one is already in flight.

        Returns
        -------
            True if a fetch was started, False if the tick was dropped.
        """
        if self._state is not PollState.IDLE:
            logger.debug("Poll tick dropped, machine is {state}", state=self._state)
            return False
        self._start_fetch()
        return True

    def refresh_now(self) -> bool:
        """Fetch immediately, or queue one refresh behind the in-flight fetch.

        Never blocks the caller. Returns True if a fetch was started now.
        """
        if self._state is not PollState.IDLE:
            self._refresh_queued = True
            logger.debug("Refresh queued behind in-flight fetch")
            return False
        self._start_fetch()
        return True

    def start(self) -> None:
        """Start the interval loop on the running event loop."""
        if self.running:
            return
        self._loop_task = asyncio.get_running_loop().create_task(self._arun())
        logger.info("Snapshot poller started, interval {interval}s", interval=self._interval)

    async def astop(self) -> None:
        """Stop the interval loop and cancel the in-flight fetch, if any."""
        for task in (self._loop_task, self._fetch_task):
            if task is not None and not task.done():
                task.cancel()
                await asyncio.wait({task})
        self._loop_task = None
        self._fetch_task = None
        self._refresh_queued = False
        self._state = PollState.IDLE

    async def aidle(self) -> None:
        """Wait until no fetch is in flight and no refresh is queued."""
        while self._fetch_task is not None:
            await asyncio.wait({self._fetch_task})

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _transition(self, to_state: PollState) -> None:
        if to_state not in _TRANSITIONS[self._state]:
            msg = f"Invalid poll transition {self._state} -> {to_state}"
            raise InvalidTransitionError(msg)
        self._state = to_state

    def _start_fetch(self) -> None:
        self._transition(PollState.FETCHING)
        self._next_seq += 1
        self._fetch_task = asyncio.get_running_loop().create_task(self._afetch(self._next_seq))

    async def _arun(self) -> None:
        while True:
            self.tick()
            await asyncio.sleep(self._interval)

    async def _afetch(self, seq: int) -> None:
        logger.debug("Fetching snapshot #{seq}", seq=seq)
        try:
            snapshot = await self._remote.afetch_snapshot()
        except RemoteError as e:
            self._settle_error(e)
        except Exception as e:  # noqa: BLE001
            logger.opt(exception=e).error("Unexpected error while polling snapshot")
            self._settle_error(RemoteError(None, f"Unexpected error: {e}"))
        else:
            self._settle_ok(seq, snapshot)

        self._transition(PollState.IDLE)
        self._fetch_task = None
        if self._refresh_queued:
            self._refresh_queued = False
            self._start_fetch()

    def _settle_error(self, error: RemoteError) -> None:
        self._transition(PollState.SETTLED_ERROR)
        self._error = error
        self._last_error_at = datetime.now(UTC)
        logger.warning("Snapshot poll failed: {error}", error=error)

    def _settle_ok(self, seq: int, snapshot: Snapshot) -> None:
        self._transition(PollState.SETTLED_OK)
        if seq < self._applied_seq:
            logger.debug("Discarding superseded snapshot #{seq}", seq=seq)
            return

        self._applied_seq = seq
        self._snapshot = snapshot
        self._error = None
        self._updated_at = datetime.now(UTC)
        logger.debug(
            "Applied snapshot #{seq}: {pipelines} pipelines, {jobs} jobs",
            seq=seq,
            pipelines=len(snapshot.pipelines),
            jobs=len(snapshot.jobs),
        )
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:  # noqa: BLE001
                logger.opt(exception=True).error("Snapshot listener {} failed", listener)
