"""Typer CLI for Keygate."""

from typing import Optional

import typer
from rich.console import Console

app = typer.Typer(name="keygate", help="Keygate: access key issuance and verification service")
console = Console()


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind host (default: KEYGATE_HOST)"),
    port: Optional[int] = typer.Option(None, help="Bind port (default: KEYGATE_PORT)"),
):
    """Start the Keygate API server."""
    import uvicorn
    from keygate.app import create_app
    from keygate.common.config import get_settings

    settings = get_settings()
    host = host or settings.host
    port = port or settings.port
    console.print(f"[bold green]Starting Keygate on {host}:{port} ({settings.backend} backend)[/bold green]")
    uvicorn.run(create_app(settings), host=host, port=port)


@app.command()
def generate(
    length: int = typer.Option(16, min=1, help="Key length"),
    count: int = typer.Option(1, min=1, help="Number of keys to print"),
):
    """Generate random keys (offline, nothing is stored)."""
    from keygate.keygen.generator import random_key

    for _ in range(count):
        console.print(f"[bold]{random_key(length)}[/bold]")


@app.command()
def ping(
    url: str = typer.Option("http://localhost:3000", help="Server URL"),
):
    """Check that a Keygate server is alive."""
    from keygate.client import KeyStoreClient

    with KeyStoreClient(url, max_retries=1, timeout=5) as client:
        alive = client.ping()
    if alive:
        console.print("[bold green]pong[/bold green]")
    else:
        console.print(f"[bold red]Error:[/bold red] no answer from {url}")
        raise typer.Exit(1)


@app.command()
def verify(
    key: str = typer.Argument(..., help="Access key to verify"),
    url: str = typer.Option("http://localhost:3000", help="Server URL"),
):
    """Verify an access key against a running server."""
    from keygate.client import KeyStoreClient

    with KeyStoreClient(url) as client:
        result = client.verify(key)

    if result.valid:
        console.print(f"[bold green]VALID[/bold green]: {result.message}")
        console.print(f"  Owner: {result.owner}")
    else:
        console.print(f"[bold red]INVALID[/bold red]: {result.message}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
