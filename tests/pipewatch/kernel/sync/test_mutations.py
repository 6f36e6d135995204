"""Tests for MutationCoordinator."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio

from pipewatch.kernel.domain.models import Pipeline, Selection, Snapshot
from pipewatch.kernel.exceptions import RemoteError
from pipewatch.kernel.sync.mutations import MutationCoordinator
from pipewatch.kernel.sync.poller import SnapshotPoller
from pipewatch.kernel.sync.selection import SelectionController
from pipewatch.stdlib.adapters.mock import MockRemoteState
from pipewatch.stdlib.adapters.selection import InMemorySelectionStore


class _CountingPoller(SnapshotPoller):
    """Poller that counts forced refreshes."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.refresh_calls = 0

    def refresh_now(self) -> bool:
        self.refresh_calls += 1
        return super().refresh_now()


class _Harness:
    def __init__(self, snapshot: Snapshot, job_ids: list[str] | None = None) -> None:
        self.remote = MockRemoteState(snapshots=snapshot, job_ids=job_ids)
        self.poller = _CountingPoller(self.remote, interval_seconds=60)
        self.store = InMemorySelectionStore()
        self.selection = SelectionController(self.store, self.poller)
        self.coordinator = MutationCoordinator(self.remote, self.poller, self.selection)

    async def aload(self) -> None:
        self.poller.tick()
        await self.poller.aidle()


@pytest_asyncio.fixture
async def harness(sample_snapshot) -> AsyncIterator[_Harness]:
    harness = _Harness(sample_snapshot, job_ids=["42"])
    await harness.aload()
    yield harness
    await harness.poller.astop()


# ---------------------------------------------------------------------------
# Starting pipelines
# ---------------------------------------------------------------------------


class TestStartPipeline:
    @pytest.mark.asyncio
    async def test_start_selects_new_job(self, harness) -> None:
        job_id = await harness.coordinator.astart_pipeline("build")

        assert job_id == "42"
        assert [c.args for c in harness.remote.calls_to("aschedule")] == [("build",)]
        assert harness.poller.refresh_calls == 1
        assert harness.selection.selection == Selection(job="42")
        assert not harness.coordinator.is_starting("build")

    @pytest.mark.asyncio
    async def test_rapid_double_start_sends_one_request(self, harness) -> None:
        results = await asyncio.gather(
            harness.coordinator.astart_pipeline("build"),
            harness.coordinator.astart_pipeline("build"),
        )

        assert results == ["42", None]
        assert len(harness.remote.calls_to("aschedule")) == 1

    @pytest.mark.asyncio
    async def test_in_flight_flag_visible_while_pending(self, harness) -> None:
        harness.remote.hold("aschedule")
        before = harness.coordinator.starting

        pending = asyncio.create_task(harness.coordinator.astart_pipeline("build"))
        await asyncio.sleep(0)

        assert harness.coordinator.is_starting("build")
        assert not harness.coordinator.can_start("build")
        assert await harness.coordinator.astart_pipeline("build") is None
        assert dict(before) == {}

        harness.remote.release("aschedule")
        assert await pending == "42"
        assert harness.coordinator.starting == {}

    @pytest.mark.asyncio
    async def test_in_flight_view_is_read_only(self, harness) -> None:
        with pytest.raises(TypeError):
            harness.coordinator.starting["build"] = True  # type: ignore[index]

    @pytest.mark.asyncio
    async def test_failed_start_leaves_selection(self, harness) -> None:
        harness.selection.select(job="6")
        harness.remote.fail_next("aschedule", RemoteError(409, "HTTP 409: busy"))

        with pytest.raises(RemoteError) as exc_info:
            await harness.coordinator.astart_pipeline("build")

        assert exc_info.value.status_code == 409
        assert harness.selection.selection == Selection(job="6")
        assert harness.poller.refresh_calls == 0
        assert not harness.coordinator.is_starting("build")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["deploy", "ghost"])
    async def test_rejected_without_request(self, harness, name) -> None:
        assert not harness.coordinator.can_start(name)
        assert await harness.coordinator.astart_pipeline(name) is None
        assert harness.remote.calls_to("aschedule") == []

    @pytest.mark.asyncio
    async def test_rejected_before_first_snapshot(self, sample_snapshot) -> None:
        harness = _Harness(sample_snapshot)
        assert await harness.coordinator.astart_pipeline("build") is None
        assert harness.remote.calls_to("aschedule") == []

    @pytest.mark.asyncio
    async def test_distinct_pipelines_start_concurrently(self) -> None:
        snapshot = Snapshot(
            pipelines=(
                Pipeline(name="build", schedulable=True),
                Pipeline(name="lint", schedulable=True),
            )
        )
        harness = _Harness(snapshot, job_ids=["1", "2"])
        await harness.aload()
        harness.remote.hold("aschedule")

        tasks = [
            asyncio.create_task(harness.coordinator.astart_pipeline(name))
            for name in ("build", "lint")
        ]
        await asyncio.sleep(0)
        assert dict(harness.coordinator.starting) == {"build": True, "lint": True}

        harness.remote.release("aschedule")
        assert await asyncio.gather(*tasks) == ["1", "2"]
        assert harness.coordinator.starting == {}
        await harness.poller.astop()


# ---------------------------------------------------------------------------
# Canceling jobs
# ---------------------------------------------------------------------------


class TestCancelJob:
    @pytest.mark.asyncio
    async def test_cancel_running_job(self, harness) -> None:
        assert await harness.coordinator.acancel_job("7") is True

        assert [c.args for c in harness.remote.calls_to("acancel")] == [("7",)]
        assert harness.poller.refresh_calls == 1
        assert not harness.coordinator.is_canceling("7")

    @pytest.mark.asyncio
    async def test_failed_cancel_still_refreshes_once(self, harness) -> None:
        harness.remote.fail_next("acancel")

        with pytest.raises(RemoteError):
            await harness.coordinator.acancel_job("7")

        assert harness.poller.refresh_calls == 1
        assert not harness.coordinator.is_canceling("7")

    @pytest.mark.asyncio
    async def test_double_cancel_sends_one_request(self, harness) -> None:
        results = await asyncio.gather(
            harness.coordinator.acancel_job("7"),
            harness.coordinator.acancel_job("7"),
        )

        assert results == [True, False]
        assert len(harness.remote.calls_to("acancel")) == 1
        assert harness.poller.refresh_calls == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("job_id", ["6", "99"])
    async def test_rejected_when_not_running(self, harness, job_id) -> None:
        assert not harness.coordinator.can_cancel(job_id)
        assert await harness.coordinator.acancel_job(job_id) is False
        assert harness.remote.calls_to("acancel") == []
        assert harness.poller.refresh_calls == 0

    @pytest.mark.asyncio
    async def test_cancel_does_not_touch_selection(self, harness) -> None:
        harness.selection.select(job="7", task="build")
        await harness.coordinator.acancel_job("7")
        assert harness.selection.selection == Selection(job="7", task="build")
