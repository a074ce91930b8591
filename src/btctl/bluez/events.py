"""Device notifications from BlueZ, mapped to typed events.

BlueZ reports new device objects through ``ObjectManager.InterfacesAdded`` and
property updates through ``Properties.PropertiesChanged`` on each device
object. ``DeviceEventStream`` turns both into a single queue of
``DeviceAdded``/``DeviceChanged`` events that a discovery session drains with
a bounded wait.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from dbus_fast import Message, MessageType, Variant
from dbus_fast.aio import MessageBus

from btctl.errors import BtctlError
from btctl.models import (
    DeviceAdded,
    DeviceChanged,
    DeviceEvent,
    RawDeviceProps,
    normalize_address,
)

from .constants import (
    BATTERY_INTERFACE,
    BLUEZ_SERVICE,
    DBUS_PATH,
    DBUS_SERVICE,
    DEVICE_INTERFACE,
    DEVICE_PROPERTY_FIELDS,
    OBJECT_MANAGER_INTERFACE,
    PROPERTIES_INTERFACE,
)

logger = logging.getLogger(__name__)


def _unwrap(value: Any) -> Any:
    return value.value if isinstance(value, Variant) else value


def raw_device_props(
    device_props: Mapping[str, Any],
    battery_props: Mapping[str, Any] | None = None,
) -> RawDeviceProps:
    """Map a Device1 (and optional Battery1) property bag to ``RawDeviceProps``."""
    fields: dict[str, Any] = {}
    for prop, name in DEVICE_PROPERTY_FIELDS.items():
        if prop in device_props:
            fields[name] = _unwrap(device_props[prop])
    if battery_props and "Percentage" in battery_props:
        fields["battery"] = _unwrap(battery_props["Percentage"])
    return RawDeviceProps(**fields)


def is_device_path(path: str, adapter_path: str) -> bool:
    prefix = f"{adapter_path.rstrip('/')}/"
    if not path.startswith(prefix):
        return False
    leaf = path[len(prefix) :]
    return leaf.startswith("dev_") and "/" not in leaf


def address_from_path(path: str) -> str:
    """``/org/bluez/hci0/dev_AA_BB_CC_DD_EE_FF`` -> ``AA:BB:CC:DD:EE:FF``."""
    leaf = path.rstrip("/").rsplit("/", 1)[-1]
    if leaf.startswith("dev_"):
        leaf = leaf[len("dev_") :]
    return normalize_address(leaf.replace("_", ":"))


def event_from_signal(
    interface: str | None,
    member: str | None,
    path: str | None,
    body: list[Any],
    adapter_path: str,
) -> DeviceEvent | None:
    """Translate one bus signal into a device event, or ``None`` if irrelevant."""
    if interface == OBJECT_MANAGER_INTERFACE and member == "InterfacesAdded":
        if len(body) < 2:
            return None
        object_path, interfaces = body[0], body[1]
        if not is_device_path(object_path, adapter_path):
            return None
        if DEVICE_INTERFACE not in interfaces:
            return None
        props = raw_device_props(
            interfaces[DEVICE_INTERFACE], interfaces.get(BATTERY_INTERFACE)
        )
        if props.address is None:
            props = props.model_copy(update={"address": address_from_path(object_path)})
        return DeviceAdded(props=props)

    if interface == PROPERTIES_INTERFACE and member == "PropertiesChanged":
        if path is None or len(body) < 2 or not is_device_path(path, adapter_path):
            return None
        changed_interface, changed = body[0], body[1]
        invalidated_names = body[2] if len(body) > 2 else []
        if changed_interface == DEVICE_INTERFACE:
            props = raw_device_props(changed)
            invalidated = frozenset(
                DEVICE_PROPERTY_FIELDS[name]
                for name in invalidated_names
                if name in DEVICE_PROPERTY_FIELDS
            )
        elif changed_interface == BATTERY_INTERFACE:
            props = raw_device_props({}, changed)
            invalidated = frozenset(
                {"battery"} if "Percentage" in invalidated_names else set()
            )
        else:
            return None
        return DeviceChanged(
            address=address_from_path(path), props=props, invalidated=invalidated
        )

    return None


class DeviceEventStream:
    """Cancellable queue of device events scoped to one discovery session."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[DeviceEvent] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, event: DeviceEvent) -> None:
        if self._closed:
            return
        self._queue.put_nowait(event)

    async def next_event(self, timeout: float) -> DeviceEvent | None:
        """Wait up to ``timeout`` seconds for the next event."""
        if self._closed:
            return None
        try:
            return await asyncio.wait_for(self._queue.get(), timeout)
        except TimeoutError:
            return None

    async def close(self) -> None:
        self._closed = True


def _match_rules(adapter_path: str) -> list[str]:
    return [
        f"type='signal',sender='{BLUEZ_SERVICE}',"
        f"interface='{OBJECT_MANAGER_INTERFACE}',member='InterfacesAdded'",
        f"type='signal',sender='{BLUEZ_SERVICE}',"
        f"interface='{PROPERTIES_INTERFACE}',member='PropertiesChanged',"
        f"path_namespace='{adapter_path.rstrip('/')}'",
    ]


class BluezEventStream(DeviceEventStream):
    """Event stream fed by a message handler on a live ``MessageBus``."""

    def __init__(self, bus: MessageBus, adapter_path: str) -> None:
        super().__init__()
        self._bus = bus
        self._adapter_path = adapter_path
        self._rules = _match_rules(adapter_path)
        self._installed_rules: list[str] = []

    async def open(self) -> None:
        self._bus.add_message_handler(self._on_message)
        try:
            for rule in self._rules:
                await self._bus_daemon_call("AddMatch", rule)
                self._installed_rules.append(rule)
        except BaseException:
            await self.close()
            raise
        logger.debug("Subscribed to device signals under %s", self._adapter_path)

    async def close(self) -> None:
        if self.closed:
            return
        await super().close()
        self._bus.remove_message_handler(self._on_message)
        while self._installed_rules:
            rule = self._installed_rules.pop()
            try:
                await self._bus_daemon_call("RemoveMatch", rule)
            except BtctlError as exc:
                logger.warning("Could not remove match rule %s: %s", rule, exc)
        logger.debug("Unsubscribed from device signals under %s", self._adapter_path)

    async def _bus_daemon_call(self, member: str, rule: str) -> None:
        reply = await self._bus.call(
            Message(
                destination=DBUS_SERVICE,
                path=DBUS_PATH,
                interface=DBUS_SERVICE,
                member=member,
                signature="s",
                body=[rule],
            )
        )
        if reply is not None and reply.message_type == MessageType.ERROR:
            raise BtctlError(f"{member} failed: {reply.error_name}")

    def _on_message(self, message: Message) -> None:
        if message.message_type != MessageType.SIGNAL:
            return
        event = event_from_signal(
            message.interface,
            message.member,
            message.path,
            list(message.body or []),
            self._adapter_path,
        )
        if event is not None:
            logger.debug("Bus event %s", event)
            self.push(event)
