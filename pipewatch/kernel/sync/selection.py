"""Selection resolver: maps the operator's (job, task) selection onto a snapshot.

:func:`resolve` is a pure function and keeps no cache. Every call looks
the selection up in the snapshot it is given, so a resolved Job/Task
object never outlives the snapshot it came from.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from pipewatch.kernel.domain.models import ResolvedSelection, Selection
from pipewatch.kernel.logging import get_logger
from pipewatch.kernel.ports.selection_store import JOB_KEY, TASK_KEY

if TYPE_CHECKING:
    from pipewatch.kernel.domain.models import Snapshot
    from pipewatch.kernel.ports.selection_store import SelectionStore
    from pipewatch.kernel.sync.poller import SnapshotPoller

logger = get_logger(__name__)

NOTHING_SELECTED = ResolvedSelection()

SelectionListener = Callable[[ResolvedSelection], None]


def resolve(snapshot: Snapshot | None, selection: Selection) -> ResolvedSelection:
    """Resolve a selection against one snapshot.

    An unknown job yields no selection at all. A known job with an
    unknown task yields the job alone.
    """
    if snapshot is None:
        return NOTHING_SELECTED
    job = snapshot.find_job(selection.job)
    if job is None:
        return NOTHING_SELECTED
    return ResolvedSelection(job=job, task=job.find_task(selection.task))


def read_selection(store: SelectionStore) -> Selection:
    return Selection.from_values(store.get(JOB_KEY), store.get(TASK_KEY))


def write_selection(store: SelectionStore, selection: Selection) -> None:
    store.set(JOB_KEY, selection.job)
    store.set(TASK_KEY, selection.task)


class SelectionController:
    """Holds the selection accessor and keeps the resolved view current.

    The view is re-resolved on every new snapshot and on every
    :meth:`select`. The stored keys are never cleared when the referenced
    job disappears, so a deep link resolves again once the job is back.
    """

    def __init__(self, store: SelectionStore, poller: SnapshotPoller) -> None:
        self._store = store
        self._poller = poller
        self._current = resolve(poller.snapshot, self.selection)
        self._listeners: list[SelectionListener] = []
        self._unsubscribe = poller.subscribe(self._on_snapshot)

    @property
    def selection(self) -> Selection:
        """The raw selection as persisted in the store."""
        return read_selection(self._store)

    @property
    def current(self) -> ResolvedSelection:
        """The selection resolved against the latest applied snapshot."""
        return self._current

    def subscribe(self, listener: SelectionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def select(self, job: str | None = None, task: str | None = None) -> ResolvedSelection:
        """Persist a new selection and resolve it immediately."""
        selection = Selection.from_values(job, task)
        write_selection(self._store, selection)
        logger.debug("Selection changed to job={job} task={task}", job=selection.job, task=selection.task)
        return self._refresh(self._poller.snapshot)

    def clear(self) -> ResolvedSelection:
        return self.select(None, None)

    def close(self) -> None:
        """Stop following snapshot updates."""
        self._unsubscribe()

    def _on_snapshot(self, snapshot: Snapshot) -> None:
        self._refresh(snapshot)

    def _refresh(self, snapshot: Snapshot | None) -> ResolvedSelection:
        self._current = resolve(snapshot, self.selection)
        for listener in list(self._listeners):
            listener(self._current)
        return self._current
