"""Host manifest (``fxmanifest.lua``) generation.

Line-oriented output: each metadata key as ``key 'value'``, then array
sections as::

    client_scripts {
    	'client/client.js',
    }

The file is regenerated from scratch on every build, never merged.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from modforge.models.manifest import ModuleManifest

HOST_MANIFEST_FILENAME = "fxmanifest.lua"


class HostManifest(BaseModel):
    """Everything the host needs to load one built resource."""

    model_config = ConfigDict(frozen=True)

    metadata: dict[str, str] = Field(default_factory=dict)
    files: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    client_scripts: list[str] = Field(default_factory=list)
    server_scripts: list[str] = Field(default_factory=list)
    ui_page: str | None = None


def _render_metadata(metadata: dict[str, str]) -> str:
    return "".join(f"{key} '{value}'\n" for key, value in metadata.items() if value)


def _render_section(name: str, items: Sequence[str]) -> str:
    items = [item for item in items if item]
    if not items:
        return ""
    body = "".join(f"\n\t'{item}'," for item in items)
    return f"\n{name} {{{body}\n}}\n"


def render_host_manifest(manifest: HostManifest) -> str:
    """Render a HostManifest to its text form."""
    output = _render_metadata(manifest.metadata)
    output += _render_section("files", manifest.files)
    output += _render_section("dependencies", manifest.dependencies)
    output += _render_section("client_scripts", manifest.client_scripts)
    output += _render_section("server_scripts", manifest.server_scripts)
    if manifest.ui_page:
        output += f"\nui_page '{manifest.ui_page}'\n"
    return output


def write_host_manifest(manifest: HostManifest, directory: Path) -> Path:
    """Write ``fxmanifest.lua`` into ``directory``, replacing any old one."""
    path = Path(directory) / HOST_MANIFEST_FILENAME
    path.write_text(render_host_manifest(manifest), encoding="utf-8")
    return path


def metadata_for(manifest: ModuleManifest) -> dict[str, str]:
    """Host metadata keys derived from a module manifest.

    Nested ``metadata`` has the lowest precedence; declared identity keys
    win over it.
    """
    metadata = {str(k): str(v) for k, v in manifest.metadata.items()}
    metadata.update(
        fx_version=manifest.fx_version,
        game=manifest.game,
        lua54=manifest.lua54,
        name=manifest.name,
        author=manifest.author,
        version=manifest.version,
        description=manifest.description,
    )
    return metadata
