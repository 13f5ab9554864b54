from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for triggering the sensor producer service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Producer API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each HTTP response.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("send")
def send_command(
    ctx: typer.Context,
    count: int = typer.Option(1, "--count", "-n", min=1, help="Number of readings to publish."),
) -> None:
    """Ask the service to publish random sensor readings."""
    state = _get_state(ctx)
    typer.echo(f"Triggering {count} message(s) on {state.config.base_url} ...")
    for index in range(1, count + 1):
        ack = state.client.send_random_message()
        typer.secho(f"[{index}/{count}] {ack}", fg=typer.colors.GREEN)


@app.command("health")
def health_command(ctx: typer.Context) -> None:
    """Show service health."""
    state = _get_state(ctx)
    payload = state.client.health()
    typer.echo(f"status: {payload.get('status')}")
