"""Unit tests for the CLI: Typer command registration and basic behavior."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from modforge.cli.app import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("MODFORGE_API_KEY", "MODFORGE_PROJECT_ROOT", "MODFORGE_COMPILER_COMMAND"):
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Test: CLI help and registration
# ---------------------------------------------------------------------------


class TestCliApp:
    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert result.exit_code in (0, 2)
        assert "usage" in result.output.lower()

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for name in ("dev", "build", "check", "resources", "restart", "serve-reload"):
            assert name in result.output

    @pytest.mark.parametrize(
        "command", ["dev", "build", "check", "resources", "restart", "serve-reload"]
    )
    def test_command_help(self, command):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0


# ---------------------------------------------------------------------------
# Test: commands
# ---------------------------------------------------------------------------


class TestCheckCommand:
    def test_valid_project(self, project_root, make_module):
        make_module("ns", "foo")
        result = runner.invoke(app, ["check", "-C", str(project_root)])
        assert result.exit_code == 0
        assert "passed validation" in result.output

    def test_invalid_project_exits_1(self, project_root, make_module):
        make_module("ns", "foo", dirs=("client",))
        result = runner.invoke(app, ["check", "-C", str(project_root)])
        assert result.exit_code == 1
        assert "Missing directory" in result.output

    def test_missing_modules_dir(self, tmp_path):
        result = runner.invoke(app, ["check", "-C", str(tmp_path)])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestBuildCommand:
    def test_builds_modules(self, project_root, make_module, fake_compiler, monkeypatch):
        monkeypatch.setenv("MODFORGE_COMPILER_COMMAND", json.dumps(fake_compiler))
        make_module("ns", "foo", files={"server/index.ts": "1"})
        result = runner.invoke(app, ["build", "-C", str(project_root)])
        assert result.exit_code == 0, result.output
        assert (project_root / "dist" / "ns" / "foo" / "fxmanifest.lua").is_file()

    def test_failed_build_exits_1(self, project_root, make_module, fake_compiler, monkeypatch):
        monkeypatch.setenv("MODFORGE_COMPILER_COMMAND", json.dumps(fake_compiler))
        make_module("ns", "foo", files={"server/index.ts": "SYNTAX ERROR"})
        result = runner.invoke(app, ["build", "-C", str(project_root)])
        assert result.exit_code == 1

    def test_structural_errors_stop_the_build(self, project_root, make_module):
        make_module("ns", "foo", with_manifest=False)
        result = runner.invoke(app, ["build", "-C", str(project_root)])
        assert result.exit_code == 1
        assert not (project_root / "dist").exists()


class TestLifecycleCommands:
    def test_resources_without_credential(self, project_root):
        result = runner.invoke(app, ["resources", "-C", str(project_root)])
        assert result.exit_code == 1
        assert "Lifecycle API error" in result.output

    def test_restart_without_credential(self, project_root):
        result = runner.invoke(app, ["restart", "foo", "-C", str(project_root)])
        assert result.exit_code == 1


class TestServeReloadCommand:
    def test_nothing_to_watch(self, project_root):
        result = runner.invoke(app, ["serve-reload", "-C", str(project_root)])
        assert result.exit_code == 1
        assert "Nothing to watch" in result.output
