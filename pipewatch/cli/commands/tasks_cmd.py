"""Task commands: output logs and the dependency graph of a job."""

from __future__ import annotations

import typer

from pipewatch.cli.render import render_logs
from pipewatch.cli.utils import (
    EXIT_REJECTED,
    EXIT_REMOTE_ERROR,
    console,
    err_console,
    open_dashboard,
    print_output,
    run_async,
    wants_json,
)
from pipewatch.dashboard import TaskLogsResult
from pipewatch.visualization.task_graph import TaskGraph


def logs(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="Job id"),
    task: str = typer.Argument(..., help="Task name"),
) -> None:
    """Print stdout and stderr of a task."""

    async def _run() -> TaskLogsResult | None:
        async with open_dashboard(ctx) as dashboard:
            dashboard.select(job=job_id, task=task)
            return await dashboard.afetch_task_logs()

    result = run_async(_run())
    if result is None:
        err_console.print(f"[yellow]No task {task!r} in job {job_id!r}[/yellow]")
        raise typer.Exit(EXIT_REJECTED)
    if result.error is not None or result.logs is None:
        message = result.error.message if result.error is not None else "empty response"
        err_console.print(f"[red]Logs could not be loaded:[/red] {message}")
        raise typer.Exit(EXIT_REMOTE_ERROR)
    if wants_json(ctx):
        print_output(result.logs, ctx)
    else:
        console.print(render_logs(result.logs))


def graph(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="Job id"),
    task: str | None = typer.Option(None, "--task", "-t", help="Task to highlight"),
) -> None:
    """Print the task graph of a job as Graphviz DOT."""

    async def _run() -> TaskGraph | None:
        async with open_dashboard(ctx) as dashboard:
            dashboard.select(job=job_id)
            return dashboard.task_graph()

    task_graph = run_async(_run())
    if task_graph is None:
        err_console.print(f"[yellow]No job {job_id!r}[/yellow]")
        raise typer.Exit(EXIT_REJECTED)
    if wants_json(ctx):
        print_output(task_graph, ctx)
        return

    from pipewatch.visualization.dot_export import to_dot  # lazy: graphviz is optional

    typer.echo(to_dot(task_graph, title=f"Job {job_id}", selected=task))
