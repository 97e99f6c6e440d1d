"""Build graph executor: build one target and promote its output.

Foundation and module targets follow the same sequence::

    validate manifest -> compile per side -> copy assets
        -> write host manifest -> promote staging into output tree

The shared front-end target generates the UI entry from every module's
page, runs the UI bundler, writes its host manifest, and promotes.

``build()`` never raises for build or promotion failures.  They come back
as a failed BuildResult, and nothing partial reaches the output tree.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path

from modforge.config import DevConfig
from modforge.core.host_manifest import HostManifest, metadata_for, write_host_manifest
from modforge.core.manifest_validator import load_manifest
from modforge.core.process import render_command, run_command
from modforge.core.promotion import promote_tree
from modforge.errors import ArtifactMoveError, BuildError, ManifestError
from modforge.models.manifest import MANIFEST_FILENAME, ModuleManifest
from modforge.models.results import BuildPhase, BuildResult, CommandResult
from modforge.models.targets import (
    SHARED_FRONTEND_KEY,
    BuildTarget,
    BuildTier,
    ModuleSnapshot,
)

logger = logging.getLogger(__name__)

SIDES: tuple[str, ...] = ("client", "server")
ASSET_DIRS: tuple[str, ...] = ("shared", "server", "client", "locales")
SCRIPT_SUFFIX = ".lua"
DATA_SUFFIX = ".json"
UI_PAGE_SOURCE = Path("html") / "Page.tsx"
UI_ENTRY_FILENAME = "App.tsx"
UI_PAGE_FILENAME = "index.html"


# ---------------------------------------------------------------------------
# Entry points and script ordering
# ---------------------------------------------------------------------------


def resolve_entries(source_root: Path, manifest: ModuleManifest, side: str) -> list[str]:
    """Entry points for one side.

    Explicit ``exports.<side>`` wins, even when empty.  Otherwise
    ``<side>/index.ts`` is used if it exists.  Otherwise the side is skipped.
    """
    declared = getattr(manifest.exports, side)
    if declared is not None:
        return [f"./{p}" for p in declared]
    if (source_root / side / "index.ts").is_file():
        return [f"./{side}/index.ts"]
    return []


@dataclass
class CollectedAssets:
    """Relative paths of the non-compiled files copied into staging."""

    scripts: list[str] = field(default_factory=list)
    data_files: list[str] = field(default_factory=list)

    def scripts_under(self, prefix: str) -> list[str]:
        return [p for p in self.scripts if p.startswith(f"{prefix}/")]


def copy_assets(source_root: Path, staging: Path) -> CollectedAssets:
    """Copy ``.lua`` and ``.json`` files, keeping their relative paths."""
    assets = CollectedAssets()
    for dirname in ASSET_DIRS:
        src_dir = source_root / dirname
        if not src_dir.is_dir():
            continue
        for path in sorted(src_dir.rglob("*")):
            if not path.is_file() or path.suffix not in (SCRIPT_SUFFIX, DATA_SUFFIX):
                continue
            rel = path.relative_to(source_root).as_posix()
            dest = staging / rel
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, dest)
            if path.suffix == SCRIPT_SUFFIX:
                assets.scripts.append(rel)
            else:
                assets.data_files.append(rel)
    return assets


def resolve_script_lists(
    manifest: ModuleManifest,
    compiled: dict[str, str],
    assets: CollectedAssets,
) -> tuple[list[str], list[str]]:
    """Return ``(client_scripts, server_scripts)`` in load order.

    Each side that has anything to load gets: shared scripts, localization,
    (server only) declared server dependencies, the compiled bundle, then
    its remaining side scripts.  A side with nothing to load stays empty.
    """
    if manifest.shared_scripts:
        common = list(manifest.shared_scripts)
    else:
        common = assets.scripts_under("shared") + assets.scripts_under("locales")

    lists: dict[str, list[str]] = {}
    for side in SIDES:
        own = ([compiled[side]] if side in compiled else []) + assets.scripts_under(side)
        if not own:
            lists[side] = []
            continue
        extra = list(manifest.server_dependencies) if side == "server" else []
        lists[side] = common + extra + own
    return lists["client"], lists["server"]


# ---------------------------------------------------------------------------
# UI helpers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UiPage:
    import_name: str
    import_path: str
    key: str


def collect_ui_pages(snapshot: ModuleSnapshot, webview_root: Path) -> list[UiPage]:
    """Every module with ``html/Page.tsx``, as imports relative to the webview."""
    pages = []
    for module in snapshot.modules:
        page = module.root / UI_PAGE_SOURCE
        if not page.is_file():
            continue
        ns = module.namespace.strip("[]")
        import_name = re.sub(r"\W", "_", f"Page_{ns}_{module.name}" if ns else f"Page_{module.name}")
        pages.append(UiPage(
            import_name=import_name,
            import_path=Path(os.path.relpath(page, webview_root)).as_posix(),
            key=module.module_id,
        ))
    return pages


def render_ui_entry(pages: list[UiPage]) -> str:
    content = "// Auto-generated by modforge: shared front-end build\n"
    for page in pages:
        content += f"import {page.import_name} from '{page.import_path}';\n"
    content += "\nconst App = () => {\n  return (\n    <div className=\"h-dvh\">\n"
    for page in pages:
        content += f"      <{page.import_name} />\n"
    content += "    </div>\n  );\n};\n\nexport default App;\n"
    return content


def write_if_changed(path: Path, content: str) -> bool:
    """Write ``content`` only if it differs; return whether it was written."""
    if path.is_file() and path.read_text(encoding="utf-8") == content:
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return True


def render_ui_page(title: str, assets_dir: Path) -> str | None:
    """Standalone HTML page loading the shared front-end bundle.

    Returns ``None`` if the bundle's entry, vendor, or stylesheet assets
    are not present yet.
    """
    if not assets_dir.is_dir():
        return None
    names = sorted(p.name for p in assets_dir.iterdir())
    index_js = next((n for n in names if re.match(r"^index-.*\.js$", n)), None)
    vendor_js = next((n for n in names if re.match(r"^vendor-.*\.js$", n)), None)
    index_css = next((n for n in names if re.match(r"^index-.*\.css$", n)), None)
    if not (index_js and vendor_js and index_css):
        return None
    base = f"https://cfx-nui-{SHARED_FRONTEND_KEY}/assets"
    return f"""<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>{title}</title>
    <script type="module" crossorigin src="{base}/{index_js}"></script>
    <link rel="modulepreload" crossorigin href="{base}/{vendor_js}" />
    <link rel="stylesheet" crossorigin href="{base}/{index_css}" />
  </head>
  <body>
    <div id="root"></div>
  </body>
</html>
"""


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------


@dataclass
class _BuildState:
    phase: BuildPhase = BuildPhase.VALIDATE
    staging: Path | None = None
    commands: list[CommandResult] = field(default_factory=list)


class BuildGraphExecutor:
    """Builds targets and promotes their output into the canonical tree.

    Parameters
    ----------
    config:
        Dev configuration (commands, paths, staging directory name).
    snapshot:
        Modules discovered at start; used to compose the shared front-end.
    """

    def __init__(self, config: DevConfig, snapshot: ModuleSnapshot) -> None:
        self.config = config
        self.snapshot = snapshot

    async def build(self, target: BuildTarget) -> BuildResult:
        """Build ``target``; failures are returned, not raised."""
        started = time.monotonic()
        state = _BuildState()
        try:
            if target.tier is BuildTier.SHARED_FRONTEND:
                await self._build_frontend(target, state)
            else:
                await self._build_scripts(target, state)
        except (ManifestError, BuildError, ArtifactMoveError, OSError) as exc:
            logger.error(
                "Build of %s failed during %s: %s", target.key, state.phase.value, exc
            )
            if state.staging is not None:
                shutil.rmtree(state.staging, ignore_errors=True)
            return BuildResult(
                target_key=target.key,
                succeeded=False,
                phase=state.phase,
                error=str(exc),
                duration_seconds=time.monotonic() - started,
                command_results=state.commands,
            )

        artifacts = sorted(p for p in target.output_root.rglob("*") if p.is_file())
        elapsed = time.monotonic() - started
        logger.info(
            "Built %s: %d artifact(s) in %.2fs", target.key, len(artifacts), elapsed
        )
        return BuildResult(
            target_key=target.key,
            succeeded=True,
            artifact_paths=artifacts,
            duration_seconds=elapsed,
            command_results=state.commands,
        )

    # ------------------------------------------------------------------
    # Foundation and module targets
    # ------------------------------------------------------------------

    async def _build_scripts(self, target: BuildTarget, state: _BuildState) -> None:
        source_root = target.source_root

        state.phase = BuildPhase.VALIDATE
        # Re-read every time; the manifest may have changed since the last build.
        manifest = load_manifest(source_root / MANIFEST_FILENAME)

        staging = self._fresh_staging(source_root / self.config.staging_dirname)
        state.staging = staging

        state.phase = BuildPhase.COMPILE
        compiled: dict[str, str] = {}
        for side in SIDES:
            entries = resolve_entries(source_root, manifest, side)
            if not entries:
                logger.debug("%s: no %s entry points, skipping", target.key, side)
                continue
            outfile = staging / side / f"{side}.js"
            outfile.parent.mkdir(parents=True, exist_ok=True)
            argv = render_command(
                self.config.compiler_command,
                entries=entries,
                outfile=outfile,
                side=side,
                cwd=source_root,
            )
            result = await run_command(argv, cwd=source_root)
            state.commands.append(result)
            if not result.ok:
                raise BuildError(
                    f"{side} compile exited with code {result.exit_code}: "
                    f"{result.stderr.strip()[-500:]}",
                    result=result,
                )
            if outfile.is_file():
                compiled[side] = f"{side}/{side}.js"
            else:
                logger.warning("%s: compiler produced no %s bundle", target.key, side)

        state.phase = BuildPhase.ASSETS
        assets = copy_assets(source_root, staging)

        state.phase = BuildPhase.MANIFEST
        ui_page = self._write_module_ui_page(target, manifest, staging)
        client_scripts, server_scripts = resolve_script_lists(manifest, compiled, assets)
        files = list(assets.data_files)
        if ui_page:
            files.append(ui_page)
        write_host_manifest(
            HostManifest(
                metadata=metadata_for(manifest),
                files=files,
                dependencies=list(manifest.dependencies),
                client_scripts=client_scripts,
                server_scripts=server_scripts,
                ui_page=ui_page,
            ),
            staging,
        )

        state.phase = BuildPhase.PROMOTE
        await asyncio.to_thread(promote_tree, staging, target.output_root)
        state.staging = None

    def _write_module_ui_page(
        self, target: BuildTarget, manifest: ModuleManifest, staging: Path
    ) -> str | None:
        if not (target.source_root / UI_PAGE_SOURCE).is_file():
            return None
        assets_dir = self.config.output_dir / SHARED_FRONTEND_KEY / "assets"
        html = render_ui_page(manifest.name or "UI Resource", assets_dir)
        if html is None:
            logger.warning(
                "%s has a UI page but the shared front-end assets are missing "
                "under %s; skipping ui_page",
                target.key,
                assets_dir,
            )
            return None
        (staging / UI_PAGE_FILENAME).write_text(html, encoding="utf-8")
        return UI_PAGE_FILENAME

    # ------------------------------------------------------------------
    # Shared front-end target
    # ------------------------------------------------------------------

    async def _build_frontend(self, target: BuildTarget, state: _BuildState) -> None:
        source_root = target.source_root

        state.phase = BuildPhase.UI_BUNDLE
        pages = collect_ui_pages(self.snapshot, source_root)
        if write_if_changed(source_root / UI_ENTRY_FILENAME, render_ui_entry(pages)):
            logger.info("Regenerated UI entry with %d page(s)", len(pages))

        staging = self._fresh_staging(source_root / self.config.staging_dirname)
        state.staging = staging
        argv = render_command(
            self.config.ui_build_command,
            outdir=staging,
            cwd=self.config.resolve(Path(".")),
        )
        result = await run_command(argv, cwd=self.config.resolve(Path(".")))
        state.commands.append(result)
        if not result.ok:
            raise BuildError(
                f"UI bundler exited with code {result.exit_code}: "
                f"{result.stderr.strip()[-500:]}",
                result=result,
            )
        if not any(staging.iterdir()):
            raise BuildError(f"UI bundler produced no output in {staging}", result=result)

        state.phase = BuildPhase.MANIFEST
        write_host_manifest(
            HostManifest(
                metadata={
                    "fx_version": "cerulean",
                    "game": "gta5",
                    "name": target.resource_name,
                },
                files=[UI_PAGE_FILENAME, "assets/**/*"],
                ui_page=UI_PAGE_FILENAME,
            ),
            staging,
        )

        state.phase = BuildPhase.PROMOTE
        await asyncio.to_thread(promote_tree, staging, target.output_root)
        state.staging = None

    @staticmethod
    def _fresh_staging(staging: Path) -> Path:
        shutil.rmtree(staging, ignore_errors=True)
        staging.mkdir(parents=True)
        return staging
