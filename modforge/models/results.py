"""Typed results for external commands, builds, and lifecycle calls."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class CommandResult(BaseModel):
    """Outcome of an awaited external process."""

    model_config = ConfigDict(frozen=True)

    argv: list[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class BuildPhase(str, Enum):
    """Phase a build was in when it finished or failed."""

    VALIDATE = "validate"
    COMPILE = "compile"
    ASSETS = "assets"
    UI_BUNDLE = "ui_bundle"
    MANIFEST = "manifest"
    PROMOTE = "promote"
    DONE = "done"


class BuildResult(BaseModel):
    """Outcome of building one target."""

    model_config = ConfigDict(frozen=True)

    target_key: str
    succeeded: bool
    phase: BuildPhase = BuildPhase.DONE
    artifact_paths: list[Path] = Field(default_factory=list)
    error: str | None = None
    duration_seconds: float = 0.0
    command_results: list[CommandResult] = Field(default_factory=list)


class LifecycleResult(BaseModel):
    """Outcome of a start/restart call against the host."""

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str = ""
    results: dict[str, bool] = Field(default_factory=dict)
