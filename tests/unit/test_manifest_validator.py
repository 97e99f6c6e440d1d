"""Unit tests for plugin.json validation."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from modforge.core.manifest_validator import load_manifest, schema_errors, validate_manifest
from modforge.errors import ManifestParseError, ManifestSchemaError


class TestValidateManifest:
    def test_minimal_manifest_gets_defaults(self):
        manifest = validate_manifest('{"name": "foo", "version": "1.0.0"}')
        assert manifest.name == "foo"
        assert manifest.version == "1.0.0"
        assert manifest.exports.client is None
        assert manifest.exports.server is None
        assert manifest.dependencies == []
        assert manifest.shared_scripts is None
        assert manifest.fx_version == "cerulean"
        assert manifest.game == "gta5"
        assert manifest.lua54 == "yes"

    def test_unknown_top_level_keys_are_kept(self):
        manifest = validate_manifest(
            json.dumps({"name": "foo", "version": "1.2.3", "homepage": "https://x"})
        )
        assert manifest.model_extra == {"homepage": "https://x"}

    def test_explicit_empty_exports_stay_empty(self):
        manifest = validate_manifest(
            json.dumps({"name": "foo", "version": "1.0.0", "exports": {"client": []}})
        )
        assert manifest.exports.client == []
        assert manifest.exports.server is None

    def test_version_may_carry_prerelease_suffix(self):
        manifest = validate_manifest('{"name": "foo", "version": "2.0.0-beta.1"}')
        assert manifest.version == "2.0.0-beta.1"

    def test_malformed_json_is_a_parse_error(self):
        with pytest.raises(ManifestParseError):
            validate_manifest('{"name": "foo",')

    def test_missing_name_is_reported(self):
        with pytest.raises(ManifestSchemaError) as exc_info:
            validate_manifest('{"version": "1.0.0"}')
        assert len(exc_info.value.errors) == 1
        assert "'name' is a required property" in exc_info.value.errors[0]

    def test_every_violation_is_reported(self):
        """Three independent violations produce three messages."""
        data = {
            "name": "",
            "version": "one",
            "exports": {"client": "client/index.ts"},
        }
        with pytest.raises(ManifestSchemaError) as exc_info:
            validate_manifest(json.dumps(data))
        errors = exc_info.value.errors
        assert len(errors) == 3
        assert any(e.startswith("name:") for e in errors)
        assert any(e.startswith("version:") for e in errors)
        assert any(e.startswith("exports/client:") for e in errors)

    def test_unknown_export_side_is_rejected(self):
        with pytest.raises(ManifestSchemaError) as exc_info:
            validate_manifest(
                json.dumps({"name": "foo", "version": "1.0.0", "exports": {"ui": []}})
            )
        assert exc_info.value.errors[0].startswith("exports:")

    def test_non_object_document(self):
        with pytest.raises(ManifestSchemaError) as exc_info:
            validate_manifest("[1, 2, 3]")
        assert exc_info.value.errors[0].startswith("(root):")

    def test_error_message_lists_violations(self):
        with pytest.raises(ManifestSchemaError) as exc_info:
            validate_manifest("{}")
        message = str(exc_info.value)
        assert message.startswith("Invalid plugin manifest:")
        assert "'name' is a required property" in message
        assert "'version' is a required property" in message


class TestSchemaErrors:
    def test_valid_document_has_no_errors(self):
        assert schema_errors({"name": "a", "version": "0.0.1"}) == []

    def test_wrong_list_item_types(self):
        errors = schema_errors(
            {"name": "a", "version": "0.0.1", "dependencies": ["ok", 3]}
        )
        assert errors == ["dependencies/1: 3 is not of type 'string'"]


class TestLoadManifest:
    def test_reads_file(self, tmp_path: Path):
        path = tmp_path / "plugin.json"
        path.write_text('{"name": "bar", "version": "0.1.0", "author": "me"}')
        assert load_manifest(path).author == "me"

    def test_missing_file_raises_file_not_found(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_manifest(tmp_path / "plugin.json")

    def test_parse_error_names_the_file(self, tmp_path: Path):
        path = tmp_path / "plugin.json"
        path.write_text("not json")
        with pytest.raises(ManifestParseError, match="plugin.json"):
            load_manifest(path)
