"""External command runner.

Compiler, UI bundler, and restart commands all run through here as awaited
subprocesses that return a typed CommandResult instead of only logging.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

from modforge.models.results import CommandResult

logger = logging.getLogger(__name__)

ENTRIES_PLACEHOLDER = "{entries}"


def render_command(
    template: Sequence[str],
    *,
    entries: Sequence[str] = (),
    **values: object,
) -> list[str]:
    """Substitute placeholders in an argv template.

    ``{entries}`` as a whole argument expands to one argument per entry;
    any other ``{name}`` is replaced textually with ``values[name]``.
    """
    argv: list[str] = []
    for part in template:
        if part == ENTRIES_PLACEHOLDER:
            argv.extend(entries)
            continue
        for name, value in values.items():
            part = part.replace("{" + name + "}", str(value))
        argv.append(part)
    return argv


async def run_command(
    argv: Sequence[str],
    *,
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Run ``argv`` to completion and capture its output.

    A command that cannot be spawned yields exit code 127 with the OS
    error as stderr rather than raising.
    """
    argv = [str(a) for a in argv]
    logger.debug("Running %s (cwd=%s)", argv, cwd)
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(cwd) if cwd else None,
            env=env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        logger.error("Could not start %s: %s", argv[0] if argv else "<empty>", exc)
        return CommandResult(argv=argv, exit_code=127, stderr=str(exc))

    stdout, stderr = await proc.communicate()
    result = CommandResult(
        argv=argv,
        exit_code=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
    logger.debug("%s exited with %d", argv[0], result.exit_code)
    return result
