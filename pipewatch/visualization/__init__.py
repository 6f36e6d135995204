"""Task graph projection and export."""

from pipewatch.visualization.task_graph import (
    GraphEdge,
    GraphNode,
    LayoutTracker,
    TaskGraph,
    VisualState,
    project,
    visual_state,
)

__all__ = [
    "GraphEdge",
    "GraphNode",
    "LayoutTracker",
    "TaskGraph",
    "VisualState",
    "project",
    "visual_state",
]
