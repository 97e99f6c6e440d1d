"""Shared test fixtures for modforge."""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from aiohttp import web

from modforge.config import DevConfig
from modforge.core.structure_checker import REQUIRED_DIRS

# Stand-in for the JS compiler: argv[1] is the outfile, the rest are entry
# points relative to the cwd.  An entry containing SYNTAX ERROR fails.
FAKE_COMPILER = """\
import sys
from pathlib import Path

outfile = Path(sys.argv[1])
chunks = []
for entry in sys.argv[2:]:
    text = Path(entry).read_text()
    if "SYNTAX ERROR" in text:
        sys.stderr.write(f"{entry}: syntax error\\n")
        sys.exit(1)
    chunks.append(f"// {entry}\\n{text}")
outfile.parent.mkdir(parents=True, exist_ok=True)
outfile.write_text("\\n".join(chunks))
"""

# Stand-in for the UI bundler: argv[1] is the output directory.
FAKE_BUNDLER = """\
import sys
from pathlib import Path

out = Path(sys.argv[1])
assets = out / "assets"
assets.mkdir(parents=True, exist_ok=True)
(out / "index.html").write_text("<!doctype html><div id=root></div>")
(assets / "index-abc123.js").write_text("console.log('app')")
(assets / "vendor-def456.js").write_text("console.log('vendor')")
(assets / "index-abc123.css").write_text("body {}")
"""


def _manifest_data(name: str = "foo", **extra: Any) -> dict[str, Any]:
    data: dict[str, Any] = {"name": name, "version": "1.0.0"}
    data.update(extra)
    return data


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Provide an empty project directory."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def modules_dir(project_root: Path) -> Path:
    path = project_root / "src" / "plugins"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def make_module(modules_dir: Path) -> Callable[..., Path]:
    """Factory: write a module with a manifest, required dirs, and files."""

    def _make(
        namespace: str,
        name: str,
        *,
        manifest: dict[str, Any] | str | None = None,
        dirs: tuple[str, ...] = REQUIRED_DIRS,
        files: dict[str, str] | None = None,
        with_manifest: bool = True,
    ) -> Path:
        root = modules_dir / namespace / name
        root.mkdir(parents=True)
        if with_manifest:
            data = manifest if manifest is not None else _manifest_data(name)
            text = data if isinstance(data, str) else json.dumps(data)
            (root / "plugin.json").write_text(text, encoding="utf-8")
        for dirname in dirs:
            (root / dirname).mkdir(exist_ok=True)
        for rel, content in (files or {}).items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return _make


@pytest.fixture
def fake_compiler(tmp_path: Path) -> list[str]:
    script = tmp_path / "fake_compiler.py"
    script.write_text(FAKE_COMPILER, encoding="utf-8")
    return [sys.executable, str(script), "{outfile}", "{entries}"]


@pytest.fixture
def fake_bundler(tmp_path: Path) -> list[str]:
    script = tmp_path / "fake_bundler.py"
    script.write_text(FAKE_BUNDLER, encoding="utf-8")
    return [sys.executable, str(script), "{outdir}"]


@pytest.fixture
def dev_config(
    project_root: Path,
    modules_dir: Path,
    fake_compiler: list[str],
    fake_bundler: list[str],
) -> DevConfig:
    """DevConfig pointing at the temp project, with fake build commands."""
    return DevConfig(
        project_root=project_root,
        compiler_command=fake_compiler,
        ui_build_command=fake_bundler,
        debounce_ms=20,
        sync_lifecycle=False,
        api_key="",
        restart_command=[],
        host_server_dir=None,
    )


# ---------------------------------------------------------------------------
# Fake host lifecycle API
# ---------------------------------------------------------------------------


class FakeHost:
    """In-process stand-in for the host's lifecycle API."""

    def __init__(self, resources: list[str] | None = None, api_key: str = "secret") -> None:
        self.resources = list(resources or [])
        self.api_key = api_key
        self.calls: list[tuple[str, str, str | None]] = []
        self.restart_status = 200
        self.app = web.Application()
        self.app.router.add_get("/resources", self._list)
        self.app.router.add_post("/restart", self._restart)
        self.app.router.add_post("/start", self._start)

    def _authorized(self, request: web.Request) -> bool:
        return request.headers.get("Authorization") == f"Bearer {self.api_key}"

    async def _list(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.json_response({"error": "Unauthorized"}, status=401)
        self.calls.append(("GET", "/resources", None))
        return web.json_response(
            {"success": True, "resources": self.resources, "count": len(self.resources)}
        )

    async def _restart(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.json_response({"error": "Unauthorized"}, status=401)
        name = request.query.get("resource")
        self.calls.append(("POST", "/restart", name))
        if self.restart_status != 200:
            return web.json_response(
                {"success": False, "message": "restart exploded"},
                status=self.restart_status,
            )
        if name is None:
            return web.json_response({
                "success": True,
                "message": f"Restarted {len(self.resources)} resources",
                "results": {r: True for r in self.resources},
            })
        return web.json_response(
            {"success": True, "resource": name, "message": f"Resource {name} restarted"}
        )

    async def _start(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.json_response({"error": "Unauthorized"}, status=401)
        name = request.query.get("resource")
        self.calls.append(("POST", "/start", name))
        if name and name not in self.resources:
            self.resources.append(name)
        return web.json_response(
            {"success": True, "resource": name, "message": f"Resource {name} started"}
        )


@pytest.fixture
def fake_host() -> FakeHost:
    """Provide a fake lifecycle API with no resources loaded."""
    return FakeHost()
