"""Pipeline and job commands: list, start and cancel."""

from __future__ import annotations

import typer

from pipewatch.cli.render import render_jobs, render_pipelines
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


def list_pipelines(ctx: typer.Context) -> None:
    """List pipelines and whether they can be started."""

    async def _run() -> None:
        async with open_dashboard(ctx) as dashboard:
            snapshot = dashboard.snapshot
            if snapshot is None:
                raise typer.Exit(EXIT_REMOTE_ERROR)
            if wants_json(ctx):
                print_output(list(snapshot.pipelines), ctx)
            else:
                console.print(render_pipelines(snapshot))

    run_async(_run())


def list_jobs(ctx: typer.Context) -> None:
    """List jobs, newest first as sent by the server."""

    async def _run() -> None:
        async with open_dashboard(ctx) as dashboard:
            snapshot = dashboard.snapshot
            if snapshot is None:
                raise typer.Exit(EXIT_REMOTE_ERROR)
            if wants_json(ctx):
                print_output(list(snapshot.jobs), ctx)
            else:
                console.print(render_jobs(snapshot))

    run_async(_run())


def start(
    ctx: typer.Context,
    pipeline: str = typer.Argument(..., help="Name of the pipeline to start"),
) -> None:
    """Start a pipeline and print the new job id."""

    async def _run() -> str | None:
        async with open_dashboard(ctx) as dashboard:
            return await dashboard.astart_pipeline(pipeline)

    job_id = run_async(_run())
    if job_id is None:
        err_console.print(f"[yellow]Pipeline {pipeline!r} cannot be started right now[/yellow]")
        raise typer.Exit(EXIT_REJECTED)
    print_output({"jobId": job_id} if wants_json(ctx) else job_id, ctx)


def cancel(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="Id of the running job"),
) -> None:
    """Cancel a running job."""

    async def _run() -> bool:
        async with open_dashboard(ctx) as dashboard:
            return await dashboard.acancel_job(job_id)

    if not run_async(_run()):
        err_console.print(f"[yellow]Job {job_id!r} is not running[/yellow]")
        raise typer.Exit(EXIT_REJECTED)
    print_output({"canceled": job_id} if wants_json(ctx) else f"Cancel requested for {job_id}", ctx)
