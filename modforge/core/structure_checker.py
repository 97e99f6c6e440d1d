"""Structural checker: required layout and manifest validity per module.

Every module is checked and every violation collected before anything is
reported, so a single run shows all the problems at once.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from modforge.core.discovery import list_namespaced_dirs
from modforge.core.manifest_validator import load_manifest
from modforge.errors import ManifestError, ManifestSchemaError, StructuralError
from modforge.models.manifest import MANIFEST_FILENAME

logger = logging.getLogger(__name__)

REQUIRED_DIRS: tuple[str, ...] = ("client", "server", "translations", "html", "types")


def check_module(
    module_root: Path, required_dirs: Sequence[str] = REQUIRED_DIRS
) -> list[str]:
    """Return the structural errors for one module; empty means valid."""
    module_root = Path(module_root)
    errors: list[str] = []

    manifest_path = module_root / MANIFEST_FILENAME
    if not manifest_path.is_file():
        errors.append(f"Missing {MANIFEST_FILENAME} manifest")
    else:
        try:
            load_manifest(manifest_path)
        except ManifestSchemaError as exc:
            errors.extend(f"Invalid manifest: {e}" for e in exc.errors)
        except ManifestError as exc:
            errors.append(f"Invalid manifest: {exc}")

    for dirname in required_dirs:
        if not (module_root / dirname).is_dir():
            errors.append(f"Missing directory: {dirname}")

    return errors


def collect_errors(
    base_path: Path,
    required_dirs: Sequence[str] = REQUIRED_DIRS,
    excluded_dirs: Iterable[str] = (),
) -> dict[str, list[str]]:
    """Check every module directory under ``base_path``.

    Returns only the modules that have errors, keyed by relative path.
    """
    base_path = Path(base_path)
    failures: dict[str, list[str]] = {}
    for module_dir in list_namespaced_dirs(base_path, excluded_dirs):
        errors = check_module(module_dir, required_dirs)
        if errors:
            failures[module_dir.relative_to(base_path).as_posix()] = errors
    return failures


def check_all(
    base_path: Path,
    required_dirs: Sequence[str] = REQUIRED_DIRS,
    excluded_dirs: Iterable[str] = (),
) -> list[str]:
    """Validate all modules; return the checked modules' relative paths.

    Modules are expected at ``<base>/<namespace>/<module>``.  A top-level
    directory with its own ``plugin.json`` is checked as a module without a
    namespace; any other top-level directory is a namespace, and each of its
    subdirectories must be a complete module.  Modules nested deeper than
    that are built but not checked.

    Raises
    ------
    StructuralError
        If any module is invalid.  The error lists every failing module
        and each of its violations.
    """
    base_path = Path(base_path)
    failures = collect_errors(base_path, required_dirs, excluded_dirs)
    if failures:
        logger.error("%d module(s) failed structural validation", len(failures))
        raise StructuralError(failures)
    return [
        d.relative_to(base_path).as_posix()
        for d in list_namespaced_dirs(base_path, excluded_dirs)
    ]
