"""SelectionStore port: where the operator's selection is persisted.

The sync engine only reads and writes two string keys, ``job`` and
``task``. A browser would keep them in the URL fragment; the CLI keeps
them in memory.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol, runtime_checkable

JOB_KEY = "job"
TASK_KEY = "task"


@runtime_checkable
class SelectionStore(Protocol):
    """Simple get/set accessor for selection keys."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None when unset."""
        ...

    @abstractmethod
    def set(self, key: str, value: str | None) -> None:
        """Store a value; None removes the key."""
        ...
