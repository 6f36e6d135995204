"""CLI helper utilities for pipewatch commands."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Coroutine
from contextlib import asynccontextmanager
from typing import Any, Protocol, TypeVar

import typer
from pydantic import BaseModel
from rich.console import Console

from pipewatch.dashboard import Dashboard
from pipewatch.drivers.http_client.http_client import HttpClientDriver
from pipewatch.kernel.config.models import DashboardConfig
from pipewatch.kernel.exceptions import RemoteError
from pipewatch.kernel.ports.remote_state import RemoteState

T = TypeVar("T")

EXIT_REJECTED = 1
EXIT_REMOTE_ERROR = 2

console = Console()
err_console = Console(stderr=True)


class ContextProtocol(Protocol):
    """Protocol for common interface between Click and Typer contexts."""

    @property
    def obj(self) -> dict[str, Any] | None: ...


def get_config(ctx: ContextProtocol) -> DashboardConfig:
    obj = ctx.obj or {}
    return obj.get("config") or DashboardConfig()


def wants_json(ctx: ContextProtocol) -> bool:
    obj = ctx.obj or {}
    return obj.get("output_format") == "json"


def create_remote(config: DashboardConfig) -> RemoteState:
    """Build the remote accessor used by all commands."""
    return HttpClientDriver.from_config(config)


@asynccontextmanager
async def open_dashboard(ctx: ContextProtocol) -> AsyncIterator[Dashboard]:
    """Dashboard with a fresh snapshot, closed again on exit.

    The interval loop is not started; ``watch`` starts it explicitly.

    Raises
    ------
    RemoteError
        If the initial snapshot cannot be fetched
    """
    config = get_config(ctx)
    remote = create_remote(config)
    dashboard = Dashboard(config, remote=remote)
    try:
        dashboard.poller.refresh_now()
        await dashboard.poller.aidle()
        if dashboard.snapshot is None:
            raise dashboard.poller.error or RemoteError(None, "No snapshot received")
        yield dashboard
    finally:
        await dashboard.aclose()
        if isinstance(remote, HttpClientDriver):
            await remote.aclose()


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine, turning RemoteError into exit code 2."""
    try:
        return asyncio.run(coro)
    except RemoteError as e:
        err_console.print(f"[red]Request failed:[/red] {e.message}")
        raise typer.Exit(EXIT_REMOTE_ERROR) from e


def to_plain(obj: Any) -> Any:
    """Convert models (and containers of them) into JSON-ready data."""
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", by_alias=True)
    if isinstance(obj, (list, tuple)):
        return [to_plain(item) for item in obj]
    if isinstance(obj, dict):
        return {key: to_plain(value) for key, value in obj.items()}
    return obj


def print_output(obj: Any, ctx: ContextProtocol | None = None) -> None:
    """Print ``obj`` as JSON when ``--json`` was given, else via rich."""
    if ctx is not None and wants_json(ctx):
        typer.echo(json.dumps(to_plain(obj), default=str, indent=2))
    elif isinstance(obj, (str, int, float)):
        typer.echo(str(obj))
    else:
        console.print(obj)
