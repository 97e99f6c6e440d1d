"""Modules, build tiers, and build targets.

Three tiers are built, in a fixed partial order::

    FOUNDATION (0)  ->  MODULE (1)  ->  SHARED_FRONTEND (2)

A tier may only depend on output of lower tiers.  The shared front-end is
composed from every module's UI page, so it sits above the module tier.
"""

from __future__ import annotations

from enum import IntEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

FOUNDATION_KEY = "foundation"
SHARED_FRONTEND_KEY = "webview"
MODULE_KEY_PREFIX = "module:"


class BuildTier(IntEnum):
    """Ordering tier of a build target."""

    FOUNDATION = 0
    MODULE = 1
    SHARED_FRONTEND = 2

    def depends_on(self, other: BuildTier) -> bool:
        """Whether this tier consumes output produced by ``other``."""
        return other in TIER_PREREQUISITES[self]


TIER_PREREQUISITES: dict[BuildTier, frozenset[BuildTier]] = {
    BuildTier.FOUNDATION: frozenset(),
    BuildTier.MODULE: frozenset({BuildTier.FOUNDATION}),
    BuildTier.SHARED_FRONTEND: frozenset({BuildTier.FOUNDATION, BuildTier.MODULE}),
}


class Module(BaseModel):
    """A discovered module: a directory holding a ``plugin.json``.

    ``rel_path`` is the module root relative to the modules base directory,
    e.g. ``[gameplay]/inventory``.
    """

    model_config = ConfigDict(frozen=True)

    namespace: str
    name: str
    root: Path
    rel_path: Path

    @property
    def module_id(self) -> str:
        ns = self.namespace.strip("[]")
        return f"{ns}/{self.name}" if ns else self.name

    @property
    def key(self) -> str:
        return f"{MODULE_KEY_PREFIX}{self.module_id}"


class ModuleSnapshot(BaseModel):
    """Immutable list of modules found at process start."""

    model_config = ConfigDict(frozen=True)

    base_path: Path
    modules: tuple[Module, ...] = ()

    def __len__(self) -> int:
        return len(self.modules)

    def get(self, module_id: str) -> Module | None:
        for module in self.modules:
            if module.module_id == module_id:
                return module
        return None

    def find_enclosing(self, path: Path) -> Module | None:
        """Return the module whose root is the longest prefix of ``path``."""
        path = Path(path)
        best: Module | None = None
        for module in self.modules:
            if path == module.root or path.is_relative_to(module.root):
                if best is None or len(module.root.parts) > len(best.root.parts):
                    best = module
        return best


class BuildTarget(BaseModel):
    """Something the executor can build and promote into the output tree."""

    model_config = ConfigDict(frozen=True)

    tier: BuildTier
    key: str
    source_root: Path
    output_root: Path
    resource_name: str
    module: Module | None = None

    @classmethod
    def foundation(cls, source_root: Path, output_root: Path) -> BuildTarget:
        return cls(
            tier=BuildTier.FOUNDATION,
            key=FOUNDATION_KEY,
            source_root=source_root,
            output_root=output_root / source_root.name,
            resource_name=source_root.name,
        )

    @classmethod
    def for_module(cls, module: Module, output_root: Path) -> BuildTarget:
        return cls(
            tier=BuildTier.MODULE,
            key=module.key,
            source_root=module.root,
            output_root=output_root / module.rel_path,
            resource_name=module.name,
            module=module,
        )

    @classmethod
    def shared_frontend(cls, source_root: Path, output_root: Path) -> BuildTarget:
        return cls(
            tier=BuildTier.SHARED_FRONTEND,
            key=SHARED_FRONTEND_KEY,
            source_root=source_root,
            output_root=output_root / SHARED_FRONTEND_KEY,
            resource_name=SHARED_FRONTEND_KEY,
        )
