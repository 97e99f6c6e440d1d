"""Module manifest model and the fixed ``plugin.json`` schema."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

MANIFEST_FILENAME = "plugin.json"

_STRING_LIST: dict[str, Any] = {"type": "array", "items": {"type": "string"}}

# Draft-07 JSON Schema for plugin.json.  Unknown top-level keys are allowed.
MANIFEST_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Plugin manifest",
    "type": "object",
    "required": ["name", "version"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "version": {"type": "string", "pattern": r"^\d+\.\d+\.\d+"},
        "description": {"type": "string"},
        "author": {"type": "string"},
        "dependencies": _STRING_LIST,
        "exports": {
            "type": "object",
            "properties": {
                "client": _STRING_LIST,
                "server": _STRING_LIST,
            },
            "additionalProperties": False,
        },
        "permissions": _STRING_LIST,
        "shared_scripts": _STRING_LIST,
        "server_dependencies": _STRING_LIST,
        "metadata": {"type": "object"},
        "fx_version": {"type": "string"},
        "game": {"type": "string"},
        "lua54": {"type": "string"},
    },
    "additionalProperties": True,
}


class ManifestExports(BaseModel):
    """Explicit entry points per side.

    ``None`` means "not declared" (fall back to the default entry); an empty
    list means "declared empty" (skip the side).
    """

    model_config = ConfigDict(frozen=True)

    client: list[str] | None = None
    server: list[str] | None = None


class ModuleManifest(BaseModel):
    """A validated ``plugin.json``."""

    model_config = ConfigDict(frozen=True, extra="allow")

    name: str
    version: str
    description: str = ""
    author: str = ""
    dependencies: list[str] = Field(default_factory=list)
    exports: ManifestExports = Field(default_factory=ManifestExports)
    permissions: list[str] = Field(default_factory=list)
    shared_scripts: list[str] | None = None
    server_dependencies: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    # Host manifest keys
    fx_version: str = "cerulean"
    game: str = "gta5"
    lua54: str = "yes"
