"""Main Typer application. Imports and registers all CLI commands.

Entry point: ``modforge`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from modforge.cli.commands.build import build_cmd
from modforge.cli.commands.check import check_cmd
from modforge.cli.commands.dev import dev_cmd
from modforge.cli.commands.resources import resources_cmd, restart_cmd
from modforge.cli.commands.serve import serve_reload_cmd
from modforge.config import DevConfig

app = typer.Typer(
    name="modforge",
    help="Modforge: build orchestration and live reload for modular game-server resources.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Logging level (defaults to MODFORGE_LOG_LEVEL or INFO).",
    ),
) -> None:
    """Configure logging for every command."""
    level = (log_level or DevConfig().log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


# Register subcommands
app.command(name="dev", help="Build, watch sources, and live-reload.")(dev_cmd)
app.command(name="build", help="Build every target once, in tier order.")(build_cmd)
app.command(name="check", help="Validate module layout and manifests.")(check_cmd)
app.command(name="resources", help="List resources known to the host.")(resources_cmd)
app.command(name="restart", help="Restart one host resource, or all.")(restart_cmd)
app.command(name="serve-reload", help="Run a standalone live-reload server.")(serve_reload_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
