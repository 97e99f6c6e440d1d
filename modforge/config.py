"""Dev-loop configuration, env-driven.

Centralized settings using pydantic-settings.  Reads from a ``.env`` file
and ``MODFORGE_*`` environment variables.  Relative paths are resolved
against ``project_root``.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_WS_PORT = 3414
DEFAULT_DEBOUNCE_MS = 100


class ContentionPolicy(str, Enum):
    """What the build guard does with a trigger that arrives mid-build."""

    QUEUE = "queue"  # keep one pending run per key
    DROP = "drop"    # discard; rely on a later filesystem event


class DevConfig(BaseSettings):
    """Settings for the build orchestrator and live-reload loop.

    Examples
    --------
    Override via environment::

        export MODFORGE_API_KEY=secret
        export MODFORGE_WS_PORT=3415
        export MODFORGE_RESTART_COMMAND='["docker", "compose", "restart", "host"]'

    Or via .env file::

        MODFORGE_HOST_SERVER_DIR=txData/dev
        MODFORGE_DEBOUNCE_MS=250
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="MODFORGE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Source and output layout
    project_root: Path = Path(".")
    modules_path: Path = Path("src/plugins")
    foundation_path: Path = Path("src/core")
    webview_path: Path = Path("src/webview")
    output_path: Path = Path("dist")
    staging_dirname: str = "dist"  # module-local staging directory
    required_dirs: list[str] = ["client", "server", "translations", "html", "types"]

    # External build commands; placeholders are substituted per invocation.
    # {entries} expands to one argument per entry point.
    compiler_command: list[str] = [
        "npx", "esbuild", "{entries}",
        "--bundle", "--platform=node", "--format=cjs", "--keep-names",
        "--outfile={outfile}",
    ]
    ui_build_command: list[str] = [
        "npx", "vite", "build", "--outDir", "{outdir}", "--emptyOutDir",
    ]

    # Scheduling
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    contention_policy: ContentionPolicy = ContentionPolicy.QUEUE
    ignore_patterns: list[str] = []

    # Live-reload channel
    ws_host: str = "0.0.0.0"
    ws_port: int = DEFAULT_WS_PORT
    restart_command: list[str] = []

    # Host lifecycle API
    api_base_url: str = "http://localhost:3414"
    api_key: str = ""
    sync_lifecycle: bool = True

    # Host resource mirror; disabled when unset
    host_server_dir: Path | None = None

    # Observability
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Resolved paths
    # ------------------------------------------------------------------

    def resolve(self, path: Path) -> Path:
        """Resolve ``path`` against the project root."""
        if path.is_absolute():
            return path
        return (self.project_root / path).resolve()

    @property
    def modules_dir(self) -> Path:
        return self.resolve(self.modules_path)

    @property
    def foundation_dir(self) -> Path:
        return self.resolve(self.foundation_path)

    @property
    def webview_dir(self) -> Path:
        return self.resolve(self.webview_path)

    @property
    def output_dir(self) -> Path:
        return self.resolve(self.output_path)

    @property
    def host_dir(self) -> Path | None:
        if self.host_server_dir is None:
            return None
        return self.resolve(self.host_server_dir)


def load_config(**overrides: Any) -> DevConfig:
    """Build a DevConfig, ignoring overrides that are ``None``."""
    return DevConfig(**{k: v for k, v in overrides.items() if v is not None})
