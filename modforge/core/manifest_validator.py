"""Manifest validator: ``plugin.json`` bytes in, ModuleManifest out.

Uses a Draft-07 validator and collects *every* violation rather than
stopping at the first one.  Pure apart from reading the file in
``load_manifest``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from jsonschema import Draft7Validator
from pydantic import ValidationError

from modforge.errors import ManifestParseError, ManifestSchemaError
from modforge.models.manifest import MANIFEST_SCHEMA, ModuleManifest

_validator = Draft7Validator(MANIFEST_SCHEMA)


def schema_errors(data: Any) -> list[str]:
    """Return one message per schema violation, ordered by location."""
    errors = sorted(_validator.iter_errors(data), key=lambda e: e.json_path)
    messages = []
    for error in errors:
        location = "/".join(str(p) for p in error.absolute_path) or "(root)"
        messages.append(f"{location}: {error.message}")
    return messages


def validate_manifest(raw: bytes | str) -> ModuleManifest:
    """Parse and validate a manifest document.

    Raises
    ------
    ManifestParseError
        If ``raw`` is not valid JSON.
    ManifestSchemaError
        If the document violates the schema; ``errors`` lists all of them.
    """
    try:
        data = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as exc:
        raise ManifestParseError(f"Failed to parse JSON: {exc}") from exc

    errors = schema_errors(data)
    if errors:
        raise ManifestSchemaError(errors)

    try:
        return ModuleManifest.model_validate(data)
    except ValidationError as exc:
        raise ManifestSchemaError(
            [f"{'/'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()]
        ) from exc


def load_manifest(manifest_path: Path) -> ModuleManifest:
    """Read and validate a manifest file.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ManifestParseError, ManifestSchemaError
        As for ``validate_manifest``; parse errors name the file.
    """
    raw = Path(manifest_path).read_bytes()
    try:
        return validate_manifest(raw)
    except ManifestParseError as exc:
        raise ManifestParseError(f"{manifest_path}: {exc}") from exc
