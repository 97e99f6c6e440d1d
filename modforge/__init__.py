"""Modforge: build orchestration and live reload for modular game-server resources.

- Discovers ``<namespace>/<module>`` directories by their ``plugin.json``
- Validates manifests (JSON Schema) and module layout, reporting every error
- Builds foundation, modules, and the shared front-end in tier order
- Promotes output atomically and writes the host manifest per resource
- Watches sources, debounces changes, and serializes rebuilds behind one guard
- Starts or restarts resources through the host lifecycle API
- Broadcasts ``reload`` to WebSocket clients after every successful build
"""

__version__ = "0.1.0"
__description__ = "Build orchestration and live reload for modular game-server resources"

from modforge.config import DevConfig
from modforge.core.orchestrator import Orchestrator
from modforge.cli.app import app as cli

__all__ = ["Orchestrator", "DevConfig", "cli", "__version__"]
