"""Error taxonomy for modforge.

Validation and structural errors carry every violation they found so the
developer sees the whole picture in one pass.  Build and promotion errors
abort a single target's cycle only; lifecycle errors never fail a build.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from modforge.models.results import CommandResult


class ModforgeError(RuntimeError):
    """Base class for all modforge errors."""


# ---------------------------------------------------------------------------
# Manifest validation
# ---------------------------------------------------------------------------


class ManifestError(ModforgeError):
    """Raised when a module manifest cannot be accepted."""


class ManifestParseError(ManifestError):
    """Raised when a manifest is not well-formed JSON."""


class ManifestSchemaError(ManifestError):
    """Raised when a manifest violates the schema.

    ``errors`` holds one message per violated constraint.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("Invalid plugin manifest:\n" + "\n".join(self.errors))


# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------


class StructuralError(ModforgeError):
    """Raised when one or more modules have an invalid layout.

    ``errors`` maps each failing module's relative path to its violations.
    """

    def __init__(self, errors: dict[str, list[str]]) -> None:
        self.errors = {module: list(errs) for module, errs in errors.items()}
        lines = ["Plugin validation failed:"]
        for module, errs in self.errors.items():
            lines.append(f"- {module}:")
            lines.extend(f"  - {e}" for e in errs)
        super().__init__("\n".join(lines))


# ---------------------------------------------------------------------------
# Build
# ---------------------------------------------------------------------------


class BuildError(ModforgeError):
    """Raised when an external build command fails."""

    def __init__(self, message: str, result: CommandResult | None = None) -> None:
        super().__init__(message)
        self.result = result


class ArtifactMoveError(ModforgeError):
    """Raised when staged output cannot be promoted into place."""


# ---------------------------------------------------------------------------
# Lifecycle API
# ---------------------------------------------------------------------------


class LifecycleApiError(ModforgeError):
    """Raised when the host's lifecycle API cannot be used."""


class NoResponseError(LifecycleApiError):
    """The request was sent but no response came back."""


class HttpStatusError(LifecycleApiError):
    """The host answered with a non-2xx status."""

    def __init__(self, status: int, body: str, message: str = "") -> None:
        self.status = status
        self.body = body
        super().__init__(message or f"HTTP {status}: {body[:200]}")


class RequestSetupError(LifecycleApiError):
    """The request could not be constructed (bad URL, missing credential)."""


# ---------------------------------------------------------------------------
# Watching
# ---------------------------------------------------------------------------


class WatchSetupError(ModforgeError):
    """Raised when a filesystem watch cannot be established for a root."""
