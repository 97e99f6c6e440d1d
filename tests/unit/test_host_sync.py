"""Unit tests for mirroring built resources into a host server directory."""

from __future__ import annotations

from pathlib import Path

from modforge.core.host_sync import ENSURE_GENERATED, ensure_generated_entry, mirror_to_host


def _built(output: Path, name: str, content: str = "x") -> Path:
    path = output / name
    path.mkdir(parents=True)
    (path / "fxmanifest.lua").write_text(content)
    return path


class TestMirrorToHost:
    def test_copies_each_resource(self, tmp_path: Path):
        out = tmp_path / "dist"
        _built(out, "core")
        _built(out, "webview")
        _built(out, "scripts")
        (out / ".hidden").mkdir()
        server = tmp_path / "txData" / "dev"

        mirrored = mirror_to_host(out, server)

        assert mirrored == ["core", "webview"]
        generated = server / "resources" / "[GENERATED]"
        assert sorted(p.name for p in generated.iterdir()) == ["core", "webview"]
        assert (out / "core" / "fxmanifest.lua").exists()

    def test_replaces_stale_copy(self, tmp_path: Path):
        out = tmp_path / "dist"
        _built(out, "core", "new")
        server = tmp_path / "server"
        stale = server / "resources" / "[GENERATED]" / "core"
        stale.mkdir(parents=True)
        (stale / "old.lua").write_text("old")

        mirror_to_host(out, server)

        assert (stale / "fxmanifest.lua").read_text() == "new"
        assert not (stale / "old.lua").exists()

    def test_restrict_to_names(self, tmp_path: Path):
        out = tmp_path / "dist"
        _built(out, "core")
        _built(out, "[ns]")
        assert mirror_to_host(out, tmp_path / "server", ["[ns]"]) == ["[ns]"]

    def test_missing_output_root(self, tmp_path: Path):
        assert mirror_to_host(tmp_path / "none", tmp_path / "server") == []


class TestEnsureGeneratedEntry:
    def test_inserted_after_last_ensure(self, tmp_path: Path):
        cfg = tmp_path / "server.cfg"
        cfg.write_text("endpoint_add_tcp \"0.0.0.0:30120\"\nensure mapmanager\nensure chat\nsv_hostname dev\n")
        assert ensure_generated_entry(cfg) is True
        lines = cfg.read_text().split("\n")
        assert lines.index(ENSURE_GENERATED) == lines.index("ensure chat") + 1

    def test_appended_when_no_ensure_lines(self, tmp_path: Path):
        cfg = tmp_path / "server.cfg"
        cfg.write_text("sv_hostname dev")
        ensure_generated_entry(cfg)
        assert cfg.read_text() == f"sv_hostname dev\n{ENSURE_GENERATED}"

    def test_idempotent(self, tmp_path: Path):
        cfg = tmp_path / "server.cfg"
        cfg.write_text("ensure chat\n")
        assert ensure_generated_entry(cfg) is True
        content = cfg.read_text()
        assert ensure_generated_entry(cfg) is False
        assert cfg.read_text() == content
