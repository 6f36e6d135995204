"""Built-in adapters for pipewatch ports."""

from pipewatch.stdlib.adapters.mock import MockRemoteState
from pipewatch.stdlib.adapters.selection import FragmentSelectionStore, InMemorySelectionStore

__all__ = ["FragmentSelectionStore", "InMemorySelectionStore", "MockRemoteState"]
