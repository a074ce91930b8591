"""btctl - scan, connect and disconnect Bluetooth devices through BlueZ."""

from __future__ import annotations

from importlib.metadata import version

from .config import AdapterConfig, ScanningConfig, Settings, get_settings
from .core import ConnectionOrchestrator, DeviceRegistry, DiscoverySession
from .models import DeviceRecord, Outcome, RawDeviceProps

__all__ = [
    "AdapterConfig",
    "ConnectionOrchestrator",
    "DeviceRecord",
    "DeviceRegistry",
    "DiscoverySession",
    "Outcome",
    "RawDeviceProps",
    "ScanningConfig",
    "Settings",
    "__version__",
    "get_settings",
]

__version__ = version("btctl")
