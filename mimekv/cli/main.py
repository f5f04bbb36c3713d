"""
mimekv CLI entry point.

Commands:
    mimekv serve    — Run the HTTP server
    mimekv version  — Print the version
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.panel import Panel

from mimekv import __version__

app = typer.Typer(
    name="mimekv",
    help="mimekv — a key-value store that remembers what your bytes are.",
    add_completion=False,
)

console = Console()


@app.command()
def version() -> None:
    """Show the mimekv version."""
    console.print(f"mimekv {__version__}")


@app.command()
def serve(
    host: str = typer.Option(None, "--host", "-h", help="Bind address"),
    port: int = typer.Option(None, "--port", "-p", help="Bind port"),
    backend: str = typer.Option(
        None, "--backend", "-b", help="Storage backend: memory, sqlite or logfile"
    ),
    path: Path = typer.Option(None, "--path", help="Data file for sqlite/logfile"),
    allow_octet_stream: bool = typer.Option(
        False,
        "--allow-octet-stream",
        help="Accept application/octet-stream as a storable type",
    ),
    config_file: Path = typer.Option(None, "--config", "-c", help="Project config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
) -> None:
    """Run the HTTP server."""
    from mimekv.core.config import MimeKVConfig
    from mimekv.core.errors import ConfigError
    from mimekv.core.logging import setup_logging

    overrides: dict[str, Any] = {}
    if host is not None:
        overrides.setdefault("server", {})["host"] = host
    if port is not None:
        overrides.setdefault("server", {})["port"] = port
    if backend is not None:
        overrides.setdefault("store", {})["backend"] = backend
    if path is not None:
        overrides.setdefault("store", {})["path"] = str(path)
    if allow_octet_stream:
        overrides.setdefault("media", {})["allow_octet_stream"] = True

    try:
        config = MimeKVConfig.load(overrides=overrides, project_path=config_file)
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {e.message}")
        raise typer.Exit(1)

    setup_logging(
        level=logging.DEBUG if verbose else config.logging.level,
        log_dir=Path(config.logging.dir) if config.logging.dir else None,
    )

    store_line = config.store.backend
    if config.store.backend != "memory":
        store_line += f" ({config.store.resolved_path()})"
    octet = "accepted" if config.media.allow_octet_stream else "rejected"
    console.print(
        Panel(
            f"Listening on [bold]http://{config.server.host}:{config.server.port}[/bold]\n"
            f"Store: {store_line}\n"
            f"application/octet-stream: {octet}",
            title=f"mimekv {__version__}",
        )
    )

    import uvicorn

    from mimekv.server.app import create_app

    uvicorn.run(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
        log_level="debug" if verbose else "info",
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
