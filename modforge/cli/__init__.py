"""Modforge CLI: Typer-based command-line interface.

Provides the ``modforge`` command with subcommands for the watch-and-rebuild
dev loop, one-shot builds, structural checks, host resource control, and a
standalone live-reload server.

All output uses Rich for formatted terminal display.
"""
