"""Device models."""

from __future__ import annotations

import string
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, field_validator


def normalize_address(value: str) -> str:
    """Return ``value`` as an uppercase, colon-separated MAC address."""
    cleaned = value.strip().replace(":", "").replace("-", "").replace("_", "")
    if len(cleaned) == 12 and all(ch in string.hexdigits for ch in cleaned):
        pairs = [cleaned[i : i + 2] for i in range(0, 12, 2)]
        return ":".join(pair.upper() for pair in pairs)
    return value.strip().upper()


class DeviceOrigin(str, Enum):
    KNOWN = "known"
    DISCOVERED = "discovered"


class RawDeviceProps(BaseModel):
    """Typed view of a Device1 property bag; every field may be absent."""

    model_config = {"frozen": True, "extra": "forbid"}

    address: str | None = None
    alias: str | None = None
    rssi: int | None = None
    connected: bool | None = None
    trusted: bool | None = None
    bonded: bool | None = None
    paired: bool | None = None
    battery: int | None = None

    @field_validator("address")
    @classmethod
    def _normalize(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return normalize_address(value)


class DeviceRecord(BaseModel):
    """Unified, deduplicated device entry for one invocation."""

    model_config = {"extra": "forbid", "validate_assignment": True}

    address: str
    alias: str
    rssi: int | None = None
    connected: bool = False
    trusted: bool = False
    bonded: bool = False
    paired: bool = False
    battery: int | None = None
    origin: DeviceOrigin


@dataclass(frozen=True)
class DeviceAdded:
    props: RawDeviceProps


@dataclass(frozen=True)
class DeviceChanged:
    address: str
    props: RawDeviceProps
    invalidated: frozenset[str] = field(default_factory=frozenset)


DeviceEvent = DeviceAdded | DeviceChanged
