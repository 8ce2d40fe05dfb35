"""Main CLI application using Typer."""

import typer
from rich.console import Console

from nodeflow import __version__

app = typer.Typer(
    name="nodeflow",
    help="Nodeflow - flow runtime for composable LLM applications",
    no_args_is_help=True,
)

console = Console()


@app.command()
def version():
    """Show nodeflow version."""
    console.print(f"nodeflow version {__version__}")


@app.command()
def serve(
    config_path: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file (default: ~/.nodeflow/nodeflow.yaml)",
    ),
    host: str = typer.Option(None, "--host", help="Bind address"),
    port: int = typer.Option(None, "--port", "-p", help="Port"),
):
    """Start the nodeflow API server."""
    from nodeflow.cli.server_cmd import serve_command

    serve_command(config_path=config_path, host=host, port=port)


@app.command()
def status(
    config_path: str = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """Check nodeflow API server status."""
    from nodeflow.cli.server_cmd import status_command

    status_command(config_path=config_path)


@app.command()
def history(
    session_id: str = typer.Argument(..., help="Session id"),
    chatflow_id: str = typer.Option("", "--flow", "-f", help="Flow id"),
    window: int = typer.Option(None, "--window", "-k", help="Show only the last-k memory window"),
    config_path: str = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """Show the stored conversation of a session."""
    from nodeflow.cli.history_cmd import history_command

    history_command(session_id, chatflow_id=chatflow_id, window=window, config_path=config_path)


if __name__ == "__main__":
    app()
