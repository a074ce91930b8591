from __future__ import annotations

import logging
from collections.abc import Iterable

from btctl.models import (
    DeviceAdded,
    DeviceEvent,
    DeviceOrigin,
    DeviceRecord,
    RawDeviceProps,
    normalize_address,
)

logger = logging.getLogger(__name__)

_MUTABLE_FIELDS = ("rssi", "connected", "trusted", "bonded", "paired", "battery")
_CLEARABLE_FIELDS = frozenset({"rssi", "battery"})


def alias_for(address: str, alias: str | None) -> str:
    """Explicit alias if non-empty, else the address with dashes."""
    if alias:
        return alias
    return address.replace(":", "-")


def visible_only(records: Iterable[DeviceRecord]) -> list[DeviceRecord]:
    """Records currently broadcasting (RSSI reported)."""
    return [record for record in records if record.rssi is not None]


class DeviceRegistry:
    """Deduplicated device view for one invocation, keyed by address.

    Records keep the position of their first observation; later observations
    update fields in place.
    """

    def __init__(self) -> None:
        self._records: dict[str, DeviceRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and normalize_address(address) in self._records

    def get(self, address: str) -> DeviceRecord | None:
        return self._records.get(normalize_address(address))

    def seed(self, known_devices: Iterable[RawDeviceProps]) -> None:
        for props in known_devices:
            if props.address is None:
                continue
            self._upsert(props.address, props, DeviceOrigin.KNOWN)

    def fold(self, event: DeviceEvent) -> DeviceRecord:
        if isinstance(event, DeviceAdded):
            if event.props.address is None:
                raise ValueError("added device event without an address")
            address = event.props.address
            invalidated: frozenset[str] = frozenset()
        else:
            address = normalize_address(event.address)
            invalidated = event.invalidated
        record = self._upsert(address, event.props, DeviceOrigin.DISCOVERED)
        for name in invalidated & _CLEARABLE_FIELDS:
            setattr(record, name, None)
        return record

    def snapshot(self) -> list[DeviceRecord]:
        return [record.model_copy() for record in self._records.values()]

    def _upsert(
        self, address: str, props: RawDeviceProps, origin: DeviceOrigin
    ) -> DeviceRecord:
        record = self._records.get(address)
        if record is None:
            values = {
                name: getattr(props, name)
                for name in _MUTABLE_FIELDS
                if getattr(props, name) is not None
            }
            record = DeviceRecord(
                address=address,
                alias=alias_for(address, props.alias),
                origin=origin,
                **values,
            )
            self._records[address] = record
            logger.debug("New %s device %s (%s)", origin.value, address, record.alias)
            return record

        if props.alias is not None:
            record.alias = alias_for(address, props.alias)
        for name in _MUTABLE_FIELDS:
            value = getattr(props, name)
            if value is not None:
                setattr(record, name, value)
        return record
