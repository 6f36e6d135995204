"""Live terminal dashboard."""

from __future__ import annotations

import asyncio

import typer
from rich.live import Live

from pipewatch.cli.render import render_dashboard
from pipewatch.cli.utils import console, get_config, open_dashboard, run_async
from pipewatch.dashboard import Dashboard, TaskLogsResult

_REDRAW_SECONDS = 0.25


async def _alogs_for_selection(dashboard: Dashboard) -> TaskLogsResult | None:
    if dashboard.current.task is None:
        return None
    return await dashboard.afetch_task_logs()


def watch(
    ctx: typer.Context,
    job: str | None = typer.Option(None, "--job", "-j", help="Job to inspect"),
    task: str | None = typer.Option(None, "--task", "-t", help="Task to inspect (needs --job)"),
    once: bool = typer.Option(False, "--once", help="Render a single snapshot and exit"),
) -> None:
    """Poll the service and render pipelines, jobs and the selected job or task."""
    if task and not job:
        raise typer.BadParameter("--task requires --job", param_hint="--task")
    interval = get_config(ctx).refresh_interval_seconds

    async def _run() -> None:
        async with open_dashboard(ctx) as dashboard:
            dashboard.select(job=job, task=task)
            logs_result = await _alogs_for_selection(dashboard)
            if once:
                console.print(render_dashboard(dashboard, logs_result))
                return

            dashboard.start()
            loop = asyncio.get_running_loop()
            next_logs_at = loop.time() + interval
            with Live(render_dashboard(dashboard, logs_result), console=console) as live:
                while True:
                    await asyncio.sleep(_REDRAW_SECONDS)
                    if loop.time() >= next_logs_at:
                        logs_result = await _alogs_for_selection(dashboard)
                        next_logs_at = loop.time() + interval
                    live.update(render_dashboard(dashboard, logs_result))

    try:
        run_async(_run())
    except KeyboardInterrupt:
        console.print("Stopped.")
