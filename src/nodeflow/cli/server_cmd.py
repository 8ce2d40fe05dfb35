"""Server commands."""

from pathlib import Path

import httpx
from rich.console import Console

from nodeflow.config.loader import load_config
from nodeflow.config.log import configure_logging
from nodeflow.errors import ConfigError

console = Console()


def serve_command(config_path: str | None = None, host: str | None = None, port: int | None = None) -> None:
    """Run the API server in the foreground.

    Args:
        config_path: Optional path to config file
        host: Bind address override
        port: Port override
    """
    import uvicorn

    from nodeflow.server.app import build_app

    try:
        config = load_config(Path(config_path) if config_path else None)
    except ConfigError as e:
        console.print(f"[red]Failed to load config: {e}[/red]")
        raise SystemExit(1) from e

    if host:
        config.server.host = host
    if port:
        config.server.port = port

    configure_logging(config.logging)
    app = build_app(config)

    console.print(
        f"[green]Starting nodeflow server on {config.server.host}:{config.server.port}[/green]"
    )
    console.print(f"Flows: {', '.join(f.id for f in config.flows) or '(none)'}")
    console.print("\nPress Ctrl+C to stop")

    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.logging.level.lower(),
    )


def status_command(config_path: str | None = None) -> None:
    """Check whether the API server answers its health endpoint."""
    try:
        config = load_config(Path(config_path) if config_path else None)
        host, port = config.server.host, config.server.port
    except ConfigError:
        host, port = "127.0.0.1", 3000

    try:
        resp = httpx.get(f"http://{host}:{port}/health", timeout=3.0)
        data = resp.json()
    except httpx.HTTPError:
        console.print("[yellow]Server is not running.[/yellow]")
        console.print("Start with: [bold]nodeflow serve[/bold]")
        return

    console.print("[green]Server is running[/green]")
    console.print(f"  URL:     http://{host}:{port}")
    console.print(f"  Version: {data.get('version', 'unknown')}")
    console.print(f"  Flows:   {', '.join(data.get('flows', [])) or '(none)'}")
