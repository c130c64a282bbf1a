"""CLI commands for the webhook multiplexer."""

import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from slackmux import __version__
from slackmux.core.config import get_settings
from slackmux.core.exceptions import ConfigurationException
from slackmux.mux.loader import load_app_config
from slackmux.mux.models import AppConfig

app = typer.Typer(name="slackmux", help="Slack webhook multiplexer CLI")
console = Console()


def _load_or_exit(path: Path) -> AppConfig:
    try:
        return load_app_config(path)
    except ConfigurationException as e:
        console.print(f"[bold red]✗ {e.message}[/bold red]")
        for error in e.details.get("errors", []):
            location = ".".join(str(part) for part in error.get("loc", ()))
            console.print(f"  [red]{location}: {error.get('msg')}[/red]")
        raise typer.Exit(code=1) from e


@app.command()
def version() -> None:
    """Show version."""
    console.print(f"[bold green]slackmux v{__version__}[/bold green]")


@app.command()
def serve(
    config: Optional[Path] = typer.Option(None, help="Mux configuration file"),
    host: Optional[str] = typer.Option(None, help="Interface to bind"),
    port: Optional[int] = typer.Option(None, help="Port to bind"),
    socket: Optional[str] = typer.Option(None, help="Unix socket path to bind"),
) -> None:
    """Start the multiplexer."""
    from slackmux.server import resolve_listen_target, run_server

    if config is not None:
        # The application lifespan reads the path from settings.
        os.environ["SLACKMUX_CONFIG"] = str(config)
        get_settings.cache_clear()

    settings = get_settings()
    app_config = _load_or_exit(Path(settings.mux_config_path))

    overrides = {
        key: value
        for key, value in {"interface": host, "port": port, "unix_socket": socket}.items()
        if value is not None
    }
    if overrides:
        settings = settings.model_copy(update=overrides)

    target = resolve_listen_target(settings, app_config)
    console.print(f"[yellow]Starting slackmux on {target.describe()}[/yellow]")
    run_server(target, log_level=settings.log_level)


@app.command("check-config")
def check_config(
    config: Optional[Path] = typer.Argument(None, help="Mux configuration file"),
) -> None:
    """Validate a configuration file and report dangling references."""
    path = config or Path(get_settings().mux_config_path)
    app_config = _load_or_exit(path)
    mux = app_config.mux

    table = Table(title=f"Endpoints in {path}")
    table.add_column("Endpoint")
    table.add_column("Token")
    table.add_column("Destinations")
    for name, endpoint in mux.source_endpoints.items():
        table.add_row(
            name,
            endpoint.token or "-",
            ", ".join(directive.dest for directive in endpoint.mux_to) or "-",
        )
    console.print(table)
    console.print(
        f"{len(mux.source_endpoints)} endpoints, {len(mux.destinations)} destinations, "
        f"{len(mux.source_tokens)} tokens"
    )

    problems = 0
    for endpoint, destination in mux.unresolved_destinations():
        console.print(f"[red]✗ {endpoint}: destination '{destination}' is not configured[/red]")
        problems += 1
    for endpoint, token_name in mux.unresolved_tokens():
        console.print(f"[red]✗ {endpoint}: token '{token_name}' is not configured[/red]")
        problems += 1

    if problems:
        raise typer.Exit(code=1)
    console.print("[green]✓ Configuration OK[/green]")


if __name__ == "__main__":
    app()
