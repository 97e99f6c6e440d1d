"""Artifact promotion: swap a staged tree into its live location.

The new tree is first placed next to the destination under a hidden
temporary name, then swapped in with two renames.  A watcher on the live
tree sees either the old build or the new one, never a mix.
"""

from __future__ import annotations

import logging
import shutil
import uuid
from pathlib import Path

from modforge.errors import ArtifactMoveError

logger = logging.getLogger(__name__)


def promote_tree(source: Path, destination: Path, *, keep_source: bool = False) -> Path:
    """Replace ``destination`` with the contents of ``source``.

    ``source`` is moved unless ``keep_source`` is set, in which case it is
    copied.  On failure the previous ``destination`` is left in place.

    Raises
    ------
    ArtifactMoveError
        If the tree cannot be staged or swapped.
    """
    source, destination = Path(source), Path(destination)
    if not source.is_dir():
        raise ArtifactMoveError(f"Nothing to promote: {source} is not a directory")

    token = uuid.uuid4().hex[:8]
    incoming = destination.with_name(f".{destination.name}.incoming-{token}")
    retired = destination.with_name(f".{destination.name}.retired-{token}")

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        if keep_source:
            shutil.copytree(source, incoming)
        else:
            shutil.move(str(source), str(incoming))
    except OSError as exc:
        shutil.rmtree(incoming, ignore_errors=True)
        raise ArtifactMoveError(
            f"Failed to stage {source} next to {destination}: {exc}"
        ) from exc

    try:
        if destination.exists():
            destination.rename(retired)
        incoming.rename(destination)
    except OSError as exc:
        if retired.exists() and not destination.exists():
            retired.rename(destination)
        shutil.rmtree(incoming, ignore_errors=True)
        raise ArtifactMoveError(
            f"Failed to swap {destination} into place: {exc}"
        ) from exc

    shutil.rmtree(retired, ignore_errors=True)
    logger.debug("Promoted %s -> %s", source, destination)
    return destination
