"""pipewatch CLI - Main entrypoint."""

from __future__ import annotations

import dataclasses

import typer

from pipewatch.cli.commands import jobs_cmd, tasks_cmd, watch_cmd
from pipewatch.cli.utils import EXIT_REMOTE_ERROR, err_console
from pipewatch.kernel.config.loader import load_config
from pipewatch.kernel.exceptions import ConfigurationError, ValidationError
from pipewatch.kernel.logging import configure_logging

app = typer.Typer(
    name="pipewatch",
    help="pipewatch - observe and control pipeline jobs of a job-running service.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
)

app.command("watch")(watch_cmd.watch)
app.command("pipelines")(jobs_cmd.list_pipelines)
app.command("jobs")(jobs_cmd.list_jobs)
app.command("start")(jobs_cmd.start)
app.command("cancel")(jobs_cmd.cancel)
app.command("logs")(tasks_cmd.logs)
app.command("graph")(tasks_cmd.graph)


def _parse_headers(values: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for value in values:
        name, sep, content = value.partition(":")
        if not sep or not name.strip():
            raise typer.BadParameter(f"expected NAME:VALUE, got {value!r}", param_hint="--header")
        headers[name.strip()] = content.strip()
    return headers


@app.callback()
def callback(
    ctx: typer.Context,
    *,
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="kind: Config YAML or TOML with [tool.pipewatch]"
    ),
    api_base_url: str | None = typer.Option(None, "--api-base-url", help="Service base URL"),
    token: str | None = typer.Option(None, "--token", help="Bearer token"),
    header: list[str] = typer.Option(
        [], "--header", "-H", help="Extra request header as NAME:VALUE (repeatable)"
    ),
    interval: int | None = typer.Option(None, "--interval", help="Poll interval in ms"),
    json_out: bool = typer.Option(False, "--json", help="Output machine-readable JSON"),
    verbose: bool = typer.Option(False, "-V", "--verbose", help="Enable verbose logging"),
) -> None:
    """Global options shared by all commands."""
    try:
        config = load_config(config_path)
    except (ConfigurationError, FileNotFoundError) as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(EXIT_REMOTE_ERROR) from e

    configure_logging(
        level="DEBUG" if verbose else config.logging.level,
        format=config.logging.format,
        output_file=config.logging.output_file,
        use_color=config.logging.use_color,
        include_timestamp=config.logging.include_timestamp,
    )

    overrides: dict[str, object] = {}
    if api_base_url:
        overrides["api_base_url"] = api_base_url
    if token:
        overrides["auth_token"] = token
    if interval is not None:
        overrides["refresh_interval_ms"] = interval
    if header:
        overrides["extra_api_headers"] = {
            **config.dashboard.extra_api_headers,
            **_parse_headers(header),
        }
    try:
        dashboard_config = dataclasses.replace(config.dashboard, **overrides)
    except ValidationError as e:
        raise typer.BadParameter(str(e)) from e

    ctx.ensure_object(dict)
    ctx.obj["config"] = dashboard_config
    ctx.obj["output_format"] = "json" if json_out else None


def main() -> None:
    app()


if __name__ == "__main__":
    main()
