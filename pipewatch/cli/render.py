"""Rich renderables for the terminal dashboard."""

from __future__ import annotations

import json
from datetime import datetime
from typing import TYPE_CHECKING

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from pipewatch.kernel.domain.models import TaskStatus
from pipewatch.kernel.domain.presentation import (
    describe_job,
    format_timestamp,
    job_visual_state,
)
from pipewatch.visualization.task_graph import VisualState, project, visual_state

if TYPE_CHECKING:
    from pipewatch.dashboard import Dashboard, TaskLogsResult
    from pipewatch.kernel.domain.models import Job, ResolvedSelection, Snapshot, Task, TaskLogs
    from pipewatch.kernel.sync.mutations import MutationCoordinator

STYLES: dict[VisualState, str] = {
    VisualState.NEUTRAL: "grey62",
    VisualState.ACTIVE: "dark_orange",
    VisualState.SUCCESS: "green",
    VisualState.FAILURE: "red",
    VisualState.MUTED: "grey42",
}


def task_badge(task: Task) -> Text:
    return Text(task.status.value.upper(), style=f"bold {STYLES[visual_state(task.status)]}")


def render_pipelines(snapshot: Snapshot, mutations: MutationCoordinator | None = None) -> Table:
    table = Table(title="Pipelines", show_header=True, header_style="bold magenta")
    table.add_column("Pipeline")
    table.add_column("Start")
    for pipeline in snapshot.pipelines:
        if mutations is not None and mutations.is_starting(pipeline.name):
            action = Text("starting...", style="yellow")
        elif pipeline.schedulable:
            action = Text("ready", style="green")
        else:
            action = Text("busy", style="grey50")
        table.add_row(pipeline.name, action)
    return table


def render_jobs(
    snapshot: Snapshot,
    selected_job: str | None = None,
    now: datetime | None = None,
) -> Table:
    table = Table(title="Jobs", show_header=True, header_style="bold magenta")
    table.add_column("Id")
    table.add_column("Pipeline")
    table.add_column("Status")
    table.add_column("Tasks")
    for job in snapshot.jobs:
        style = STYLES[job_visual_state(job)]
        marker = "> " if job.id == selected_job else ""
        tasks = Text()
        for task in job.tasks:
            tasks.append("■", style=STYLES[visual_state(task.status)])
        table.add_row(
            Text(marker + job.id, style="bold" if marker else ""),
            job.pipeline,
            Text(describe_job(job, now), style=style),
            tasks,
        )
    return table


def render_job_detail(job: Job, selected_task: str | None = None) -> RenderableType:
    header = Table.grid(padding=(0, 2))
    header.add_row("Created", format_timestamp(job.created))
    header.add_row("Start", format_timestamp(job.start))
    if job.end is not None:
        header.add_row("End", format_timestamp(job.end))
    header.add_row("Id", job.id)

    graph = project(job)
    depends = {node.id: [] for node in graph.nodes}
    for edge in graph.edges:
        depends[edge.target].append(edge.source)
    tasks = Table(show_header=True, header_style="bold")
    tasks.add_column("Task")
    tasks.add_column("Status")
    tasks.add_column("Depends on")
    for node, task in zip(graph.nodes, job.tasks, strict=True):
        name = Text(("> " if node.id == selected_task else "") + node.label)
        tasks.add_row(name, task_badge(task), ", ".join(depends[node.id]))
    return Panel(Group(header, tasks), title=f"Job {job.pipeline}")


def render_logs(logs: TaskLogs) -> RenderableType:
    if logs.is_empty:
        return Text("Empty command output", style="italic grey50")
    panels: list[RenderableType] = []
    if logs.stdout:
        panels.append(Panel(logs.stdout.rstrip(), title="stdout"))
    if logs.stderr:
        panels.append(Panel(logs.stderr.rstrip(), title="stderr", border_style="red"))
    return Group(*panels)


def render_task_detail(
    job: Job, task: Task, logs_result: TaskLogsResult | None = None
) -> RenderableType:
    parts: list[RenderableType] = [
        Text.assemble(("Task ", "bold"), task.name, " ", task_badge(task))
    ]
    if task.status is TaskStatus.ERROR or task.errored:
        parts.append(Text(f"Task failed with exit code {task.exit_code}", style="bold red"))
    if job.variables:
        parts.append(Panel(json.dumps(job.variables, indent=4), title="Variables"))
    if logs_result is not None:
        if logs_result.error is not None:
            parts.append(Text(f"Logs could not be loaded: {logs_result.error}", style="red"))
        elif logs_result.logs is not None:
            parts.append(render_logs(logs_result.logs))
    return Panel(Group(*parts), title=f"Job {job.pipeline}")


def render_selection(
    resolved: ResolvedSelection, logs_result: TaskLogsResult | None = None
) -> RenderableType | None:
    if resolved.job is None:
        return None
    if resolved.task is not None:
        return render_task_detail(resolved.job, resolved.task, logs_result)
    return render_job_detail(resolved.job)


def render_dashboard(
    dashboard: Dashboard, logs_result: TaskLogsResult | None = None
) -> RenderableType:
    poller = dashboard.poller
    snapshot = dashboard.snapshot
    if snapshot is None:
        if poller.error is not None:
            return Text(f"Error: {poller.error.message}", style="red")
        return Text("Loading...")

    parts: list[RenderableType] = [
        render_pipelines(snapshot, dashboard.mutations),
        render_jobs(snapshot, dashboard.selection.selection.job),
    ]
    detail = render_selection(dashboard.current, logs_result)
    if detail is not None:
        parts.append(detail)
    if poller.error is not None:
        parts.append(
            Text(
                f"Last poll failed at {format_timestamp(poller.last_error_at)}: "
                f"{poller.error.message}",
                style="red",
            )
        )
    return Group(*parts)
