"""Selection store adapters."""

from pipewatch.stdlib.adapters.selection.stores import (
    FragmentSelectionStore,
    InMemorySelectionStore,
)

__all__ = ["FragmentSelectionStore", "InMemorySelectionStore"]
