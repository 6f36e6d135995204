"""Port interfaces for pipewatch."""

from pipewatch.kernel.ports.remote_state import RemoteState
from pipewatch.kernel.ports.selection_store import JOB_KEY, TASK_KEY, SelectionStore

__all__ = ["JOB_KEY", "TASK_KEY", "RemoteState", "SelectionStore"]
