from __future__ import annotations

from . import config, connect, disconnect, list_devices, scan, status, toggle

COMMAND_MODULES = (status, toggle, list_devices, scan, connect, disconnect, config)

__all__ = ["COMMAND_MODULES"]
