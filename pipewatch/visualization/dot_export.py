"""Graphviz DOT export for task graphs.

Graphviz is the external layout engine: this module only builds the DOT
source, rendering with ``dot`` happens outside pipewatch.
"""

from __future__ import annotations

try:
    import graphviz
except ImportError as e:
    raise ImportError(
        "Graphviz is not installed. Please install with:\n  pip install pipewatch[viz]"
    ) from e

from pipewatch.visualization.task_graph import TaskGraph, VisualState

# fill, font
NODE_COLORS: dict[VisualState, tuple[str, str]] = {
    VisualState.NEUTRAL: ("#9ca3af", "#1f2937"),
    VisualState.ACTIVE: ("#f59e0b", "#1f2937"),
    VisualState.SUCCESS: ("#10b981", "#ffffff"),
    VisualState.FAILURE: ("#ef4444", "#ffffff"),
    VisualState.MUTED: ("#6b7280", "#ffffff"),
}


def to_dot(graph: TaskGraph, title: str = "Tasks", selected: str | None = None) -> str:
    """Build DOT source for a task graph.

    Args
    ----
        graph: Projected task graph
        title: Graph comment
        selected: Name of a task to highlight with a bold outline

    Returns
    -------
        DOT format string
    """
    dot = graphviz.Digraph(comment=title)
    dot.attr(rankdir="TB")
    dot.attr("node", shape="box", style="filled,rounded", fontname="Arial")

    for node in graph.nodes:
        fill, font = NODE_COLORS[node.visual_state]
        attrs = {"fillcolor": fill, "fontcolor": font}
        if node.id == selected:
            attrs["penwidth"] = "3"
            attrs["color"] = "#3b82f6"
        dot.node(node.id, label=node.label, **attrs)

    for edge in graph.edges:
        dot.edge(edge.source, edge.target)

    return dot.source
