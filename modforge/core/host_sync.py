"""Mirror built resources into a local host server directory.

Layout: ``{server_dir}/resources/[GENERATED]/{resource}``.  The host's
``server.cfg`` is given an ``ensure [GENERATED]`` line so it loads them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from modforge.core.promotion import promote_tree

logger = logging.getLogger(__name__)

GENERATED_DIRNAME = "[GENERATED]"
ENSURE_GENERATED = f"ensure {GENERATED_DIRNAME}"
SKIPPED_OUTPUTS = frozenset({"scripts"})


def mirror_to_host(
    output_root: Path,
    server_dir: Path,
    names: Iterable[str] | None = None,
) -> list[str]:
    """Copy top-level entries of ``output_root`` into the host resources.

    Parameters
    ----------
    names:
        Restrict the mirror to these top-level entries.  ``None`` mirrors
        every built resource.

    Returns the names that were mirrored.

    Raises
    ------
    ArtifactMoveError
        If a resource cannot be put in place.
    """
    output_root, server_dir = Path(output_root), Path(server_dir)
    wanted = set(names) if names is not None else None
    generated = server_dir / "resources" / GENERATED_DIRNAME

    mirrored: list[str] = []
    if not output_root.is_dir():
        return mirrored
    for entry in sorted(output_root.iterdir()):
        if not entry.is_dir() or entry.name in SKIPPED_OUTPUTS or entry.name.startswith("."):
            continue
        if wanted is not None and entry.name not in wanted:
            continue
        promote_tree(entry, generated / entry.name, keep_source=True)
        logger.info("Mirrored resource '%s' to host resources", entry.name)
        mirrored.append(entry.name)
    return mirrored


def ensure_generated_entry(cfg_path: Path) -> bool:
    """Add ``ensure [GENERATED]`` to ``server.cfg`` if it is missing.

    The line goes after the last existing ``ensure`` directive, or at the
    end.  Returns whether the file was changed.
    """
    cfg_path = Path(cfg_path)
    lines = cfg_path.read_text(encoding="utf-8").split("\n")
    if any(line.strip().startswith(ENSURE_GENERATED) for line in lines):
        return False

    last_ensure = -1
    for index, line in enumerate(lines):
        if line.strip().startswith("ensure "):
            last_ensure = index
    if last_ensure >= 0:
        lines.insert(last_ensure + 1, ENSURE_GENERATED)
    else:
        lines.append(ENSURE_GENERATED)

    cfg_path.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Added '%s' to %s", ENSURE_GENERATED, cfg_path)
    return True
