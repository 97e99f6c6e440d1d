"""Dev orchestrator: the central coordinator for a watch-and-rebuild session.

The Orchestrator wires together module discovery, the structural checker,
the BuildGraphExecutor, the DebouncedScheduler, the WatchDispatcher, the
host lifecycle client and the ReloadServer into one dev loop.

Every rebuild runs as a single guarded unit of work::

    build -> mirror to host (optional) -> lifecycle sync -> reload broadcast

so a later change never observes a half-promoted output tree.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from modforge.bridge.lifecycle_client import LifecycleClient, sync_resource
from modforge.bridge.reload_server import ReloadServer
from modforge.config import DevConfig
from modforge.core.discovery import discover_modules
from modforge.core.executor import UI_ENTRY_FILENAME, BuildGraphExecutor
from modforge.core.host_sync import ensure_generated_entry, mirror_to_host
from modforge.core.scheduler import DebouncedScheduler
from modforge.core.structure_checker import check_all
from modforge.core.watcher import WatchDispatcher, WatchEvent
from modforge.errors import ArtifactMoveError
from modforge.models.results import BuildResult
from modforge.models.targets import BuildTarget, ModuleSnapshot

logger = logging.getLogger(__name__)

LifecycleFactory = Callable[[], LifecycleClient]

HOST_CONFIG_FILENAME = "server.cfg"


class Orchestrator:
    """Builds, watches, and hot-reloads one project.

    Parameters
    ----------
    config:
        Dev configuration. Uses defaults if not provided.
    snapshot:
        Modules to build. Discovered from ``config.modules_dir`` if None.
    lifecycle_factory:
        Creates a LifecycleClient per sync. Defaults to one built from
        ``config.api_base_url`` and ``config.api_key``.
    reload_server:
        Server used for reload broadcasts. Broadcasting is skipped if None.
    """

    def __init__(
        self,
        config: DevConfig | None = None,
        snapshot: ModuleSnapshot | None = None,
        *,
        lifecycle_factory: LifecycleFactory | None = None,
        reload_server: ReloadServer | None = None,
    ) -> None:
        self.config = config or DevConfig()
        if snapshot is None:
            snapshot = discover_modules(
                self.config.modules_dir, [self.config.staging_dirname]
            )
        self.snapshot = snapshot
        self.executor = BuildGraphExecutor(self.config, self.snapshot)
        self.scheduler = DebouncedScheduler(
            self.config.debounce_ms, policy=self.config.contention_policy
        )
        self.reload_server = reload_server
        self.results: list[BuildResult] = []

        self._lifecycle_enabled = self.config.sync_lifecycle and (
            lifecycle_factory is not None or bool(self.config.api_key)
        )
        self._lifecycle_factory = lifecycle_factory or self._default_lifecycle_client
        self._targets = {t.key: t for t in self._collect_targets()}

    def _default_lifecycle_client(self) -> LifecycleClient:
        return LifecycleClient(self.config.api_base_url, self.config.api_key)

    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------

    def _collect_targets(self) -> list[BuildTarget]:
        out = self.config.output_dir
        targets: list[BuildTarget] = []
        if self.config.foundation_dir.is_dir():
            targets.append(BuildTarget.foundation(self.config.foundation_dir, out))
        targets.extend(BuildTarget.for_module(m, out) for m in self.snapshot.modules)
        if self.config.webview_dir.is_dir():
            targets.append(BuildTarget.shared_frontend(self.config.webview_dir, out))
        return targets

    def targets(self) -> list[BuildTarget]:
        """Every build target, lowest tier first."""
        return sorted(self._targets.values(), key=lambda t: t.tier)

    def target_for_key(self, key: str) -> BuildTarget | None:
        return self._targets.get(key)

    # ------------------------------------------------------------------
    # Guarded work
    # ------------------------------------------------------------------

    async def rebuild(self, target: BuildTarget) -> BuildResult:
        """Build one target, then mirror, sync, and notify reload clients.

        Must run under the scheduler's guard; see ``schedule_rebuild``.
        """
        result = await self.executor.build(target)
        self.results.append(result)
        if not result.succeeded:
            logger.error(
                "[%s] %s failed: %s", target.key, result.phase.value, result.error
            )
            return result
        logger.info(
            "[%s] %s: %d artifact(s) in %.2fs",
            target.key,
            result.phase.value,
            len(result.artifact_paths),
            result.duration_seconds,
        )

        host_dir = self.config.host_dir
        if host_dir is not None:
            await self._mirror(target, host_dir)

        if self._lifecycle_enabled:
            async with self._lifecycle_factory() as client:
                await sync_resource(client, target.resource_name)

        if self.reload_server is not None:
            await self.reload_server.notify_change(result.artifact_paths)
        return result

    async def _mirror(self, target: BuildTarget, host_dir: Path) -> None:
        top_level = target.output_root.relative_to(self.config.output_dir).parts[0]
        try:
            await asyncio.to_thread(
                mirror_to_host, self.config.output_dir, host_dir, [top_level]
            )
            cfg = host_dir / HOST_CONFIG_FILENAME
            if cfg.is_file():
                await asyncio.to_thread(ensure_generated_entry, cfg)
        except (ArtifactMoveError, OSError, ValueError) as exc:
            logger.warning("Could not mirror %s to host: %s", target.key, exc)

    async def initial_build(self) -> list[BuildResult]:
        """Build every target once, in tier order, holding the guard."""
        results: list[BuildResult] = []

        async def _build_all() -> None:
            for target in self.targets():
                results.append(await self.rebuild(target))

        await self.scheduler.run_exclusive("initial", _build_all)
        failed = [r.target_key for r in results if not r.succeeded]
        if failed:
            logger.warning("Initial build finished with failures: %s", ", ".join(failed))
        else:
            logger.info("Initial build finished: %d target(s)", len(results))
        return results

    def schedule_rebuild(self, target: BuildTarget) -> None:
        """Debounce a rebuild of ``target`` under the guard."""
        self.scheduler.schedule(target.key, lambda: self.rebuild(target))

    def handle_event(self, event: WatchEvent) -> None:
        """Schedule a rebuild for the target a watch event belongs to."""
        target = self.target_for_key(event.key)
        if target is None:
            logger.debug("No build target for %s (%s)", event.key, event.path)
            return
        logger.info("%s %s", event.kind.lower(), event.path)
        self.schedule_rebuild(target)

    # ------------------------------------------------------------------
    # Dev loop
    # ------------------------------------------------------------------

    def create_watcher(self) -> WatchDispatcher:
        roots = [self.config.modules_dir]
        roots.extend(
            d for d in (self.config.foundation_dir, self.config.webview_dir) if d.is_dir()
        )
        return WatchDispatcher(
            roots,
            self.snapshot,
            foundation_root=self.config.foundation_dir,
            webview_root=self.config.webview_dir,
            on_event=self.handle_event,
            ignore_dirs=[self.config.staging_dirname],
            ignore_paths=[self.config.webview_dir / UI_ENTRY_FILENAME],
            ignore_globs=self.config.ignore_patterns,
        )

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """Check, build everything, then watch until ``stop_event`` is set.

        Raises
        ------
        StructuralError
            If any module fails the structural check; nothing is built.
        """
        checked = check_all(
            self.config.modules_dir,
            self.config.required_dirs,
            [self.config.staging_dirname],
        )
        logger.info("All %d module(s) passed structural validation", len(checked))

        await self.initial_build()

        if self.reload_server is not None:
            await self.reload_server.start()
        watcher = self.create_watcher()
        try:
            await watcher.watch(stop_event)
        finally:
            self.scheduler.cancel_all()
            if self.reload_server is not None:
                await self.reload_server.stop()
