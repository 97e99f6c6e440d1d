"""Module discovery: find every directory holding a ``plugin.json``.

The result is an immutable ModuleSnapshot taken once at process start and
passed explicitly to the components that need it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from modforge.models.manifest import MANIFEST_FILENAME
from modforge.models.targets import Module, ModuleSnapshot

logger = logging.getLogger(__name__)

# Build output and dependency caches are never descended into.
EXCLUDED_DIRS: frozenset[str] = frozenset({"node_modules", "dist"})


def _excluded(extra: Iterable[str]) -> frozenset[str]:
    return EXCLUDED_DIRS.union(extra)


def discover_module_dirs(base_path: Path, excluded_dirs: Iterable[str] = ()) -> list[Path]:
    """Recursively list directories under ``base_path`` with a manifest.

    ``excluded_dirs`` names extra directories to skip, such as a custom
    staging directory.
    """
    base_path = Path(base_path)
    if not base_path.is_dir():
        logger.warning("Directory does not exist: %s", base_path)
        return []

    skipped = _excluded(excluded_dirs)
    found: list[Path] = []

    def _walk(directory: Path) -> None:
        if (directory / MANIFEST_FILENAME).is_file():
            found.append(directory)
        try:
            children = sorted(p for p in directory.iterdir() if p.is_dir())
        except OSError as exc:
            logger.error("Error reading directory %s: %s", directory, exc)
            return
        for child in children:
            if child.name not in skipped:
                _walk(child)

    _walk(base_path)
    return found


def module_from_dir(base_path: Path, module_dir: Path) -> Module:
    """Derive a module's namespace and name from its location.

    ``<base>/<ns>/<name>`` gives namespace ``ns``; deeper nesting joins the
    remaining parts with ``_``; a module directly under the base has no
    namespace.
    """
    rel = module_dir.relative_to(base_path)
    parts = rel.parts
    if len(parts) <= 1:
        namespace, name = "", rel.name
    else:
        namespace, name = parts[0], "_".join(parts[1:])
    return Module(namespace=namespace, name=name, root=module_dir, rel_path=rel)


def discover_modules(base_path: Path, excluded_dirs: Iterable[str] = ()) -> ModuleSnapshot:
    """Take a snapshot of the modules under ``base_path``."""
    base_path = Path(base_path).resolve()
    modules = tuple(
        module_from_dir(base_path, d)
        for d in discover_module_dirs(base_path, excluded_dirs)
        if d != base_path
    )
    logger.info("Discovered %d module(s) under %s", len(modules), base_path)
    return ModuleSnapshot(base_path=base_path, modules=modules)


def list_namespaced_dirs(base_path: Path, excluded_dirs: Iterable[str] = ()) -> list[Path]:
    """List the directories the structural check treats as modules.

    Normally ``<base>/<namespace>/<module>``, manifest or not.  A top-level
    directory that holds its own ``plugin.json`` is a module without a
    namespace and is listed itself instead of its children.
    """
    base_path = Path(base_path)
    if not base_path.is_dir():
        return []
    skipped = _excluded(excluded_dirs)
    module_dirs: list[Path] = []
    for ns_dir in sorted(p for p in base_path.iterdir() if p.is_dir()):
        if ns_dir.name in skipped:
            continue
        if (ns_dir / MANIFEST_FILENAME).is_file():
            module_dirs.append(ns_dir)
            continue
        module_dirs.extend(
            p for p in sorted(ns_dir.iterdir()) if p.is_dir() and p.name not in skipped
        )
    return module_dirs
