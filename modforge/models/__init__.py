"""modforge data models: all Pydantic v2, all frozen (immutable)."""

from modforge.models.manifest import (
    MANIFEST_FILENAME,
    MANIFEST_SCHEMA,
    ManifestExports,
    ModuleManifest,
)
from modforge.models.results import (
    BuildPhase,
    BuildResult,
    CommandResult,
    LifecycleResult,
)
from modforge.models.targets import (
    FOUNDATION_KEY,
    SHARED_FRONTEND_KEY,
    TIER_PREREQUISITES,
    BuildTarget,
    BuildTier,
    Module,
    ModuleSnapshot,
)

__all__ = [
    # manifest
    "MANIFEST_FILENAME",
    "MANIFEST_SCHEMA",
    "ManifestExports",
    "ModuleManifest",
    # targets
    "FOUNDATION_KEY",
    "SHARED_FRONTEND_KEY",
    "TIER_PREREQUISITES",
    "BuildTier",
    "BuildTarget",
    "Module",
    "ModuleSnapshot",
    # results
    "BuildPhase",
    "BuildResult",
    "CommandResult",
    "LifecycleResult",
]
