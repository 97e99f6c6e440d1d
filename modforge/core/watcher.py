"""File watch dispatcher: filesystem changes in, scheduler keys out.

One ``watchfiles`` loop runs per watch root.  A root that cannot be watched
is reported as a WatchSetupError and skipped; the others keep running.

Key resolution for a changed path:

- under the webview sources, or under a module's ``html/`` -> ``webview``
- inside a discovered module (longest prefix)              -> ``module:<id>``
- under the foundation sources                             -> ``foundation``
- anything else                                            -> ignored
"""

from __future__ import annotations

import asyncio
import fnmatch
import logging
from collections.abc import Callable, Sequence
from pathlib import Path

from pydantic import BaseModel, ConfigDict
from watchfiles import Change, DefaultFilter, awatch

from modforge.errors import WatchSetupError
from modforge.models.targets import FOUNDATION_KEY, SHARED_FRONTEND_KEY, ModuleSnapshot

logger = logging.getLogger(__name__)

# Output trees, dependency caches and the host mirror never trigger builds.
OUTPUT_DIRS: tuple[str, ...] = ("dist", "node_modules", "[GENERATED]")
SOURCE_EXTENSIONS: tuple[str, ...] = (".ts", ".tsx", ".json", ".lua", ".css", ".html")


class WatchEvent(BaseModel):
    """A filtered filesystem change mapped to its scheduler key."""

    model_config = ConfigDict(frozen=True)

    kind: str
    path: Path
    key: str


class SourceFilter(DefaultFilter):
    """Accept source files only; reject output trees and ignored globs."""

    extensions = SOURCE_EXTENSIONS

    def __init__(
        self,
        *,
        ignore_dirs: Sequence[str] = (),
        ignore_paths: Sequence[Path] = (),
        ignore_globs: Sequence[str] = (),
    ) -> None:
        super().__init__(
            ignore_dirs=(*DefaultFilter.ignore_dirs, *OUTPUT_DIRS, *ignore_dirs),
            ignore_paths=[str(p) for p in ignore_paths],
        )
        self._globs = tuple(ignore_globs)

    def __call__(self, change: Change, path: str) -> bool:
        if not path.endswith(self.extensions):
            return False
        posix = Path(path).as_posix()
        if any(fnmatch.fnmatch(posix, pattern) for pattern in self._globs):
            return False
        return super().__call__(change, path)


class WatchDispatcher:
    """Watches source roots and reports changes by scheduler key.

    Parameters
    ----------
    roots:
        Directories to watch recursively.
    snapshot:
        Modules discovered at start; used for longest-prefix matching.
    foundation_root, webview_root:
        Fixed prefixes for the foundation and shared front-end keys.
    on_event:
        Called with a WatchEvent for every accepted change.
    ignore_dirs, ignore_paths, ignore_globs:
        Extra directory names, paths and glob patterns that never trigger
        builds.
    """

    def __init__(
        self,
        roots: Sequence[Path],
        snapshot: ModuleSnapshot,
        *,
        foundation_root: Path,
        webview_root: Path,
        on_event: Callable[[WatchEvent], None],
        ignore_dirs: Sequence[str] = (),
        ignore_paths: Sequence[Path] = (),
        ignore_globs: Sequence[str] = (),
    ) -> None:
        self.roots = [Path(r) for r in roots]
        self.snapshot = snapshot
        self.foundation_root = Path(foundation_root)
        self.webview_root = Path(webview_root)
        self._on_event = on_event
        self.watch_filter = SourceFilter(
            ignore_dirs=ignore_dirs, ignore_paths=ignore_paths, ignore_globs=ignore_globs
        )
        self.setup_errors: list[WatchSetupError] = []

    # ------------------------------------------------------------------
    # Key resolution
    # ------------------------------------------------------------------

    def resolve_key(self, path: Path) -> str | None:
        """Map a changed path to its scheduler key, or ``None``."""
        path = Path(path)
        if path.is_relative_to(self.webview_root):
            return SHARED_FRONTEND_KEY
        module = self.snapshot.find_enclosing(path)
        if module is not None:
            if path.is_relative_to(module.root / "html"):
                return SHARED_FRONTEND_KEY
            return module.key
        if path.is_relative_to(self.foundation_root):
            return FOUNDATION_KEY
        return None

    def dispatch(self, kind: str, path: Path) -> WatchEvent | None:
        """Resolve and forward a single change; return the event sent."""
        key = self.resolve_key(path)
        if key is None:
            logger.debug("Ignoring change outside known roots: %s", path)
            return None
        event = WatchEvent(kind=kind, path=Path(path), key=key)
        logger.debug("%s %s -> %s", kind, path, key)
        self._on_event(event)
        return event

    # ------------------------------------------------------------------
    # Watching
    # ------------------------------------------------------------------

    async def watch(self, stop_event: asyncio.Event | None = None) -> None:
        """Watch every root concurrently until ``stop_event`` is set."""
        await asyncio.gather(*(self._watch_root(root, stop_event) for root in self.roots))

    async def _watch_root(self, root: Path, stop_event: asyncio.Event | None) -> None:
        if not root.is_dir():
            self._setup_failed(root, "directory does not exist")
            return
        logger.info("Watching %s", root)
        try:
            async for changes in awatch(
                root,
                watch_filter=self.watch_filter,
                stop_event=stop_event,
                debounce=50,
                step=20,
            ):
                for change, raw_path in sorted(changes, key=lambda c: c[1]):
                    self.dispatch(change.name, Path(raw_path))
        except OSError as exc:
            self._setup_failed(root, str(exc))

    def _setup_failed(self, root: Path, reason: str) -> None:
        error = WatchSetupError(f"Cannot watch {root}: {reason}")
        self.setup_errors.append(error)
        logger.error("%s", error)
