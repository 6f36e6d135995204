"""Client-side state synchronization: poller, mutations and selection."""

from pipewatch.kernel.sync.mutations import MutationCoordinator
from pipewatch.kernel.sync.poller import PollState, SnapshotPoller
from pipewatch.kernel.sync.selection import (
    NOTHING_SELECTED,
    SelectionController,
    read_selection,
    resolve,
    write_selection,
)

__all__ = [
    "NOTHING_SELECTED",
    "MutationCoordinator",
    "PollState",
    "SelectionController",
    "SnapshotPoller",
    "read_selection",
    "resolve",
    "write_selection",
]
