"""Data models for btctl."""

from btctl.models.device import (
    DeviceAdded,
    DeviceChanged,
    DeviceEvent,
    DeviceOrigin,
    DeviceRecord,
    RawDeviceProps,
    normalize_address,
)
from btctl.models.outcome import Outcome, OutcomeStatus, all_succeeded

__all__ = [
    "DeviceAdded",
    "DeviceChanged",
    "DeviceEvent",
    "DeviceOrigin",
    "DeviceRecord",
    "Outcome",
    "OutcomeStatus",
    "RawDeviceProps",
    "all_succeeded",
    "normalize_address",
]
