"""pipewatch: live view and control of pipeline jobs on a job-running service.

The sync engine polls the service for pipelines and jobs, coordinates
start/cancel requests and resolves the operator's (job, task) selection
against the latest snapshot.
"""

try:
    from importlib.metadata import version

    __version__ = version("pipewatch")
except Exception:
    __version__ = "0.0.0.dev0"  # Fallback for development installs

from pipewatch.dashboard import Dashboard, TaskLogsResult
from pipewatch.drivers.http_client.http_client import HttpClientDriver
from pipewatch.kernel.config import DashboardConfig, load_config
from pipewatch.kernel.domain import (
    Job,
    Pipeline,
    ResolvedSelection,
    Selection,
    Snapshot,
    Task,
    TaskLogs,
    TaskStatus,
)
from pipewatch.kernel.exceptions import PipewatchError, RemoteError
from pipewatch.kernel.sync import MutationCoordinator, SelectionController, SnapshotPoller, resolve
from pipewatch.visualization import TaskGraph, project

__all__ = [
    "Dashboard",
    "DashboardConfig",
    "HttpClientDriver",
    "Job",
    "MutationCoordinator",
    "Pipeline",
    "PipewatchError",
    "RemoteError",
    "ResolvedSelection",
    "Selection",
    "SelectionController",
    "Snapshot",
    "SnapshotPoller",
    "Task",
    "TaskGraph",
    "TaskLogs",
    "TaskLogsResult",
    "TaskStatus",
    "load_config",
    "project",
    "resolve",
]
