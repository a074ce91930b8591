"""BlueZ transport over the system D-Bus."""

from __future__ import annotations

from .client import BluezClient, BusCallError
from .events import (
    BluezEventStream,
    DeviceEventStream,
    address_from_path,
    event_from_signal,
    raw_device_props,
)

__all__ = [
    "BluezClient",
    "BluezEventStream",
    "BusCallError",
    "DeviceEventStream",
    "address_from_path",
    "event_from_signal",
    "raw_device_props",
]
