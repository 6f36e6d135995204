"""Task graph projection: a job's tasks as nodes and dependency edges.

The projection only describes the graph. Laying it out is left to an
external engine (Graphviz via :mod:`pipewatch.visualization.dot_export`).
Layout is expensive, so :class:`LayoutTracker` reports whether the graph
shape actually changed between polls.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from pipewatch.kernel.domain.models import TaskStatus

if TYPE_CHECKING:
    from pipewatch.kernel.domain.models import Job

LayoutKey = tuple[tuple[str, ...], frozenset[tuple[str, str]]]


class VisualState(StrEnum):
    """Presentation tag of a task node; colours are up to the renderer."""

    NEUTRAL = "neutral"
    ACTIVE = "active"
    SUCCESS = "success"
    FAILURE = "failure"
    MUTED = "muted"


STATUS_VISUAL_STATES: dict[TaskStatus, VisualState] = {
    TaskStatus.PENDING: VisualState.NEUTRAL,
    TaskStatus.RUNNING: VisualState.ACTIVE,
    TaskStatus.DONE: VisualState.SUCCESS,
    TaskStatus.ERROR: VisualState.FAILURE,
    TaskStatus.CANCELED: VisualState.MUTED,
}


class GraphNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    visual_state: VisualState


class GraphEdge(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    target: str


class TaskGraph(BaseModel):
    """Node/edge description of one job's tasks."""

    model_config = ConfigDict(frozen=True)

    nodes: tuple[GraphNode, ...] = ()
    edges: tuple[GraphEdge, ...] = ()

    @property
    def layout_key(self) -> LayoutKey:
        """Shape of the graph; status changes do not affect it."""
        return (
            tuple(node.id for node in self.nodes),
            frozenset((edge.source, edge.target) for edge in self.edges),
        )


def visual_state(status: TaskStatus) -> VisualState:
    return STATUS_VISUAL_STATES[status]


def project(job: Job) -> TaskGraph:
    """Project a job's tasks into a graph description.

    Emits one node per task in task order, and one edge per dependency in
    task order then dependency order. Dependencies naming a task that is
    not part of the job are dropped, so malformed input renders as
    isolated nodes instead of failing.
    """
    names = {task.name for task in job.tasks}
    nodes = tuple(
        GraphNode(id=task.name, label=task.name, visual_state=visual_state(task.status))
        for task in job.tasks
    )
    edges = tuple(
        GraphEdge(source=dependency, target=task.name)
        for task in job.tasks
        for dependency in task.depends_on
        if dependency in names
    )
    return TaskGraph(nodes=nodes, edges=edges)


class LayoutTracker:
    """Remembers the last laid-out graph shape.

    Example::

        tracker = LayoutTracker()
        if tracker.needs_layout(graph):
            positions = engine.layout(graph)
    """

    def __init__(self) -> None:
        self._key: LayoutKey | None = None

    def needs_layout(self, graph: TaskGraph) -> bool:
        key = graph.layout_key
        if key == self._key:
            return False
        self._key = key
        return True

    def reset(self) -> None:
        self._key = None
