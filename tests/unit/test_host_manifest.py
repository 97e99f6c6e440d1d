"""Unit tests for fxmanifest.lua rendering."""

from __future__ import annotations

from pathlib import Path

from modforge.core.host_manifest import (
    HOST_MANIFEST_FILENAME,
    HostManifest,
    metadata_for,
    render_host_manifest,
    write_host_manifest,
)
from modforge.core.manifest_validator import validate_manifest


class TestRenderHostManifest:
    def test_full_layout(self):
        manifest = HostManifest(
            metadata={"fx_version": "cerulean", "game": "gta5", "name": "foo"},
            files=["shared/data.json"],
            dependencies=["core"],
            client_scripts=["client/client.js"],
            server_scripts=["shared/config.lua", "server/server.js"],
            ui_page="index.html",
        )
        assert render_host_manifest(manifest) == (
            "fx_version 'cerulean'\n"
            "game 'gta5'\n"
            "name 'foo'\n"
            "\nfiles {\n\t'shared/data.json',\n}\n"
            "\ndependencies {\n\t'core',\n}\n"
            "\nclient_scripts {\n\t'client/client.js',\n}\n"
            "\nserver_scripts {\n\t'shared/config.lua',\n\t'server/server.js',\n}\n"
            "\nui_page 'index.html'\n"
        )

    def test_empty_sections_and_falsy_metadata_omitted(self):
        manifest = HostManifest(
            metadata={"name": "foo", "description": ""},
            server_scripts=["server/server.js"],
        )
        text = render_host_manifest(manifest)
        assert "description" not in text
        assert "client_scripts" not in text
        assert "files" not in text
        assert "ui_page" not in text
        assert text == "name 'foo'\n\nserver_scripts {\n\t'server/server.js',\n}\n"

    def test_write_replaces_existing_file(self, tmp_path: Path):
        (tmp_path / HOST_MANIFEST_FILENAME).write_text("stale")
        path = write_host_manifest(HostManifest(metadata={"name": "x"}), tmp_path)
        assert path.read_text() == "name 'x'\n"


class TestMetadataFor:
    def test_identity_keys_override_nested_metadata(self):
        manifest = validate_manifest(
            '{"name": "foo", "version": "1.0.0", "author": "team",'
            ' "metadata": {"name": "ignored", "repository": "git://x"}}'
        )
        metadata = metadata_for(manifest)
        assert metadata["name"] == "foo"
        assert metadata["repository"] == "git://x"
        assert metadata["author"] == "team"
        assert metadata["fx_version"] == "cerulean"
        assert list(metadata)[0] == "name"
