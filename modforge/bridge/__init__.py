"""Bridges to the outside world: the host lifecycle API and reload clients."""

from modforge.bridge.lifecycle_client import LifecycleClient, sync_resource
from modforge.bridge.reload_server import RELOAD_MESSAGE, ReloadServer

__all__ = [
    "LifecycleClient",
    "sync_resource",
    "ReloadServer",
    "RELOAD_MESSAGE",
]
