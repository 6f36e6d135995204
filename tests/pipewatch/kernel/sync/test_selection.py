"""Tests for selection resolution and SelectionController."""

from __future__ import annotations

import pytest

from pipewatch.kernel.domain.models import ResolvedSelection, Selection, Snapshot, TaskStatus
from pipewatch.kernel.ports.selection_store import JOB_KEY, TASK_KEY
from pipewatch.kernel.sync.poller import SnapshotPoller
from pipewatch.kernel.sync.selection import (
    NOTHING_SELECTED,
    SelectionController,
    read_selection,
    resolve,
    write_selection,
)
from pipewatch.stdlib.adapters.mock import MockRemoteState
from pipewatch.stdlib.adapters.selection import FragmentSelectionStore, InMemorySelectionStore

# ---------------------------------------------------------------------------
# resolve()
# ---------------------------------------------------------------------------


class TestResolve:
    def test_job_and_task(self, sample_snapshot) -> None:
        resolved = resolve(sample_snapshot, Selection(job="7", task="build"))

        assert resolved.job is sample_snapshot.jobs[0]
        assert resolved.task is sample_snapshot.jobs[0].tasks[1]

    def test_job_only(self, sample_snapshot) -> None:
        resolved = resolve(sample_snapshot, Selection(job="6"))
        assert resolved.job is sample_snapshot.jobs[1]
        assert resolved.task is None

    def test_unknown_job_resolves_to_nothing(self, sample_snapshot) -> None:
        assert resolve(sample_snapshot, Selection(job="99", task="build")) == NOTHING_SELECTED

    def test_unknown_task_keeps_job(self, sample_snapshot) -> None:
        resolved = resolve(sample_snapshot, Selection(job="7", task="deploy"))
        assert resolved.job is sample_snapshot.jobs[0]
        assert resolved.task is None

    def test_no_snapshot(self) -> None:
        assert resolve(None, Selection(job="7")) == NOTHING_SELECTED

    def test_empty_selection(self, sample_snapshot) -> None:
        assert resolve(sample_snapshot, Selection()) == ResolvedSelection()

    def test_idempotent_object_for_object(self, sample_snapshot) -> None:
        selection = Selection(job="7", task="test")
        first = resolve(sample_snapshot, selection)
        second = resolve(sample_snapshot, selection)

        assert first.job is second.job
        assert first.task is second.task

    def test_task_from_same_job_only(self, make_job, make_task) -> None:
        snapshot = Snapshot(
            jobs=(
                make_job("1", tasks=(make_task("build", TaskStatus.DONE),)),
                make_job("2", tasks=(make_task("build", TaskStatus.ERROR),)),
            )
        )
        resolved = resolve(snapshot, Selection(job="2", task="build"))
        assert resolved.task is snapshot.jobs[1].tasks[0]


# ---------------------------------------------------------------------------
# Store round trip
# ---------------------------------------------------------------------------


def test_read_and_write_selection() -> None:
    store = FragmentSelectionStore("#job=7&task=build")
    assert read_selection(store) == Selection(job="7", task="build")

    write_selection(store, Selection(job="8"))
    assert store.get(JOB_KEY) == "8"
    assert store.get(TASK_KEY) is None


def test_orphan_task_in_store_is_ignored() -> None:
    store = InMemorySelectionStore({TASK_KEY: "build"})
    assert read_selection(store) == Selection()


# ---------------------------------------------------------------------------
# SelectionController
# ---------------------------------------------------------------------------


@pytest.fixture
def remote(sample_snapshot) -> MockRemoteState:
    return MockRemoteState(snapshots=sample_snapshot)


@pytest.fixture
def poller(remote) -> SnapshotPoller:
    return SnapshotPoller(remote, interval_seconds=60)


class TestSelectionController:
    @pytest.mark.asyncio
    async def test_deep_link_resolves_after_first_poll(self, poller, sample_snapshot) -> None:
        controller = SelectionController(FragmentSelectionStore("#job=7&task=build"), poller)
        assert controller.current == NOTHING_SELECTED

        poller.tick()
        await poller.aidle()

        assert controller.current.job is sample_snapshot.jobs[0]
        assert controller.current.task is sample_snapshot.jobs[0].tasks[1]

    @pytest.mark.asyncio
    async def test_select_persists_and_resolves(self, poller, sample_snapshot) -> None:
        store = InMemorySelectionStore()
        controller = SelectionController(store, poller)
        poller.tick()
        await poller.aidle()

        resolved = controller.select(job="6", task="release")

        assert store.get(JOB_KEY) == "6"
        assert store.get(TASK_KEY) == "release"
        assert resolved.task is sample_snapshot.jobs[1].tasks[0]
        assert controller.current == resolved

    @pytest.mark.asyncio
    async def test_job_selection_switch_drops_task(self, poller) -> None:
        store = InMemorySelectionStore({JOB_KEY: "7", TASK_KEY: "build"})
        controller = SelectionController(store, poller)

        controller.select(job="6")

        assert controller.selection == Selection(job="6")
        assert store.get(TASK_KEY) is None

    @pytest.mark.asyncio
    async def test_job_disappears_then_reappears(
        self, poller, remote, sample_snapshot, make_job
    ) -> None:
        without_job = Snapshot(pipelines=sample_snapshot.pipelines, jobs=(make_job("1"),))
        remote.set_snapshots(sample_snapshot, without_job, sample_snapshot)
        store = InMemorySelectionStore({JOB_KEY: "7", TASK_KEY: "test"})
        controller = SelectionController(store, poller)

        poller.tick()
        await poller.aidle()
        assert controller.current.task is not None

        poller.tick()
        await poller.aidle()
        assert controller.current == NOTHING_SELECTED
        assert controller.selection == Selection(job="7", task="test")

        poller.tick()
        await poller.aidle()
        assert controller.current.job is sample_snapshot.jobs[0]
        assert controller.current.task is sample_snapshot.jobs[0].tasks[2]

    @pytest.mark.asyncio
    async def test_resolved_objects_follow_newest_snapshot(
        self, poller, remote, sample_snapshot, make_job, make_task
    ) -> None:
        updated = Snapshot(
            pipelines=sample_snapshot.pipelines,
            jobs=(make_job("7", tasks=(make_task("build", TaskStatus.DONE),)),),
        )
        remote.set_snapshots(sample_snapshot, updated)
        controller = SelectionController(InMemorySelectionStore({JOB_KEY: "7"}), poller)
        controller.select(job="7", task="build")

        poller.tick()
        await poller.aidle()
        assert controller.current.task.status is TaskStatus.RUNNING

        poller.tick()
        await poller.aidle()
        assert controller.current.task is updated.jobs[0].tasks[0]
        assert controller.current.task.status is TaskStatus.DONE

    @pytest.mark.asyncio
    async def test_listeners_and_close(self, poller) -> None:
        controller = SelectionController(InMemorySelectionStore({JOB_KEY: "7"}), poller)
        seen: list[ResolvedSelection] = []
        controller.subscribe(seen.append)

        poller.tick()
        await poller.aidle()
        assert len(seen) == 1

        controller.close()
        poller.tick()
        await poller.aidle()
        assert len(seen) == 1

    def test_clear(self, poller) -> None:
        store = InMemorySelectionStore({JOB_KEY: "7", TASK_KEY: "build"})
        controller = SelectionController(store, poller)

        assert controller.clear() == NOTHING_SELECTED
        assert store.get(JOB_KEY) is None
        assert store.get(TASK_KEY) is None
