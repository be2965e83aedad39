"""Command-line interface for making calls and running listeners."""

from __future__ import annotations

import dataclasses
import json
import logging
import os

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from homelab_httpkit.clients.http import CONTENT_NONE, METHOD_GET, call
from homelab_httpkit.deps import ENV_VARS, HttpkitEnv, build_client, parse_timeout
from homelab_httpkit.errors import AppError, ServerStartError
from homelab_httpkit.server.apps import echo_app, health_app
from homelab_httpkit.server.listener import ServerHandle, health, serve

app = typer.Typer(
    name="httpkit",
    help="Make HTTP calls and serve envelope-formatted endpoints.",
    no_args_is_help=True,
)

console = Console()

STARTUP_TIMEOUT = 10.0


def _configure_logging(settings: HttpkitEnv, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _parse_headers(raw_headers: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for raw in raw_headers:
        key, sep, value = raw.partition(":")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected 'Name: value', got {raw!r}", param_hint="--header")
        headers[key.strip()] = value.strip()
    return headers


@app.command("call")
def call_cmd(
    url: str = typer.Argument(..., help="Target URL"),
    method: str = typer.Option(METHOD_GET, "--method", "-X", help="HTTP method"),
    data: str = typer.Option("", "--data", "-d", help="Raw request body"),
    content_type: str = typer.Option(
        CONTENT_NONE,
        "--content-type",
        "-t",
        help="Content-Type header (omitted when empty)",
    ),
    header: list[str] = typer.Option(
        [],
        "--header",
        "-H",
        help="Extra header as 'Name: value' (repeatable)",
    ),
    request_id: str = typer.Option("cli", "--id", help="Identifier used in log lines"),
    timeout: str | None = typer.Option(
        None,
        "--timeout",
        help="Timeout in seconds, or 'none' for unbounded (default: HTTPKIT_CALL_TIMEOUT)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Perform a single HTTP call and print the response body."""
    settings = HttpkitEnv.from_env(os.environ)
    _configure_logging(settings, verbose)

    if timeout is not None:
        try:
            settings = dataclasses.replace(settings, call_timeout=parse_timeout(timeout))
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="--timeout") from None

    headers = _parse_headers(header)

    try:
        with build_client(settings) as client:
            body = call(
                request_id,
                url,
                method,
                data,
                content_type,
                headers=headers,
                client=client,
            )
    except AppError as e:
        console.print(f"[red]Error ({e.code}):[/red] {escape(str(e))}", highlight=False)
        raise typer.Exit(code=1) from None

    try:
        json.loads(body)
    except ValueError:
        console.print(body, markup=False, highlight=False)
    else:
        console.print_json(body)


@app.command("serve")
def serve_cmd(
    addr: str | None = typer.Option(
        None,
        "--addr",
        "-a",
        help="Listen address (default: HTTPKIT_SERVE_ADDR)",
    ),
    health_addr: str | None = typer.Option(
        None,
        "--health-addr",
        help="Health listener address (default: HTTPKIT_HEALTH_ADDR)",
    ),
    with_health: bool = typer.Option(
        True,
        "--health/--no-health",
        help="Start the health listener",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Run the echo endpoint (and a health endpoint) until interrupted.

    Example:
        httpkit serve --addr :8080 --health-addr :8081
    """
    settings = HttpkitEnv.from_env(os.environ)
    _configure_logging(settings, verbose)

    handles: list[ServerHandle] = [serve(addr or settings.serve_addr, echo_app)]
    if with_health:
        handles.append(health(health_addr or settings.health_addr, health_app))

    try:
        for handle in handles:
            handle.wait_ready(timeout=STARTUP_TIMEOUT)
            console.print(f"[cyan]{handle.name}:[/cyan] listening on port {handle.port}")

        # Any listener stopping ends the command
        while all(not handle.wait_stopped(0.5) for handle in handles):
            pass
    except ServerStartError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from None
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted, shutting down[/yellow]")
    finally:
        for handle in handles:
            handle.shutdown(timeout=STARTUP_TIMEOUT)

    failed = [handle for handle in handles if handle.error is not None]
    for handle in failed:
        console.print(f"[red]✗ {handle.name}:[/red] {escape(str(handle.error))}")
    raise typer.Exit(code=1 if failed else 0)


@app.command("env")
def env_cmd() -> None:
    """Show the HTTPKIT_* environment variables and their current values."""
    table = Table(title="HTTPKIT Environment Variables")
    table.add_column("Variable", style="cyan", no_wrap=True)
    table.add_column("Setting", style="yellow")
    table.add_column("Current Value", style="green")

    for field_name, env_var in sorted(ENV_VARS.items(), key=lambda x: x[1]):
        value = os.environ.get(env_var, "(not set)")
        if len(value) > 50:
            value = value[:47] + "..."
        table.add_row(env_var, field_name, value)

    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
