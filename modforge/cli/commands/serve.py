"""``modforge serve-reload``: standalone live-reload server.

Watches built output (not sources) and broadcasts ``reload`` to every
connected client on each change, optionally running a restart command.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console

from modforge.bridge.reload_server import ReloadServer
from modforge.config import load_config

console = Console()


async def serve(server: ReloadServer, paths: list[Path]) -> None:
    await server.start()
    try:
        await server.watch_outputs(paths)
    finally:
        await server.stop()


def serve_reload_cmd(
    paths: list[Path] = typer.Argument(
        None,
        help="Directories to watch (defaults to the build output directory).",
    ),
    project_root: Path = typer.Option(
        None,
        "--project-root",
        "-C",
        help="Project directory (defaults to MODFORGE_PROJECT_ROOT or '.').",
    ),
    port: int = typer.Option(
        None,
        "--port",
        "-p",
        help="WebSocket port (defaults to MODFORGE_WS_PORT or 3414).",
    ),
) -> None:
    """Broadcast ``reload`` whenever built output changes."""
    config = load_config(project_root=project_root, ws_port=port)
    watch_paths = [config.resolve(p) for p in paths] if paths else [config.output_dir]

    missing = [p for p in watch_paths if not p.exists()]
    if len(missing) == len(watch_paths):
        console.print(
            "[bold red]Nothing to watch:[/bold red] "
            + ", ".join(str(p) for p in missing)
        )
        raise typer.Exit(code=1)

    server = ReloadServer(
        host=config.ws_host,
        port=config.ws_port,
        restart_command=config.restart_command,
    )
    console.print(
        f"[bold]Hot-reload server[/bold] on ws://{config.ws_host}:{config.ws_port}, "
        f"watching {len(watch_paths) - len(missing)} path(s)"
    )
    try:
        asyncio.run(serve(server, watch_paths))
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")
