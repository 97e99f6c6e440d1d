"""``modforge dev``: build everything, then watch and hot-reload.

Runs until interrupted.  Source changes are debounced per target and
rebuilt one at a time; each success is synced with the host and broadcast
to live-reload clients.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from modforge.bridge.reload_server import ReloadServer
from modforge.config import load_config
from modforge.core.orchestrator import Orchestrator
from modforge.errors import StructuralError

console = Console()


def dev_cmd(
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
        help="Live-reload WebSocket port (defaults to MODFORGE_WS_PORT or 3414).",
    ),
    debounce_ms: int = typer.Option(
        None,
        "--debounce",
        help="Quiet period in milliseconds before a change triggers a rebuild.",
    ),
) -> None:
    """Start the dev loop: initial build, file watching, live reload."""
    config = load_config(project_root=project_root, ws_port=port, debounce_ms=debounce_ms)

    reload_server = ReloadServer(
        host=config.ws_host,
        port=config.ws_port,
        restart_command=config.restart_command,
    )
    orchestrator = Orchestrator(config, reload_server=reload_server)

    console.print(
        Panel(
            f"Modules: {len(orchestrator.snapshot)}  "
            f"Targets: {len(orchestrator.targets())}\n"
            f"Output: {config.output_dir}\n"
            f"Reload: ws://{config.ws_host}:{config.ws_port}",
            title="[bold]modforge dev[/bold]",
            border_style="blue",
        )
    )

    try:
        asyncio.run(orchestrator.run())
    except StructuralError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")
