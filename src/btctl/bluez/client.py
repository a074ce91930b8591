from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar, cast

from dbus_fast import BusType
from dbus_fast.aio import MessageBus
from dbus_fast.errors import DBusError, InterfaceNotFoundError

from btctl.config import DEFAULT_ADAPTER_PATH
from btctl.errors import (
    AdapterUnavailable,
    BtctlError,
    ConnectFailed,
    DeviceNotFound,
    DeviceOperationError,
    DisconnectFailed,
    DiscoveryStartFailed,
    DiscoveryStopFailed,
    RemoveFailed,
)
from btctl.models import RawDeviceProps, normalize_address

from .constants import (
    ADAPTER_INTERFACE,
    BATTERY_INTERFACE,
    BLUEZ_SERVICE,
    DEVICE_INTERFACE,
    DOES_NOT_EXIST_ERROR,
    OBJECT_MANAGER_INTERFACE,
    UNKNOWN_OBJECT_ERROR,
)
from .events import (
    BluezEventStream,
    DeviceEventStream,
    is_device_path,
    raw_device_props,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BusCallError(BtctlError):
    """A single bus call failed or timed out."""

    def __init__(self, reason: str, error_name: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.error_name = error_name


def _describe(exc: DBusError) -> str:
    return f"{exc.type}: {exc.text}" if exc.text else str(exc.type)


class BluezClient:
    """BlueZ transport over the system bus.

    Owns one ``MessageBus`` connection for the lifetime of a command. Adapter
    state (power, discovering) is always read from the bus, never cached.
    """

    def __init__(
        self,
        bus: MessageBus,
        adapter_path: str = DEFAULT_ADAPTER_PATH,
        call_timeout: float = 10.0,
    ) -> None:
        self._bus = bus
        self._adapter_path = adapter_path
        self._call_timeout = call_timeout
        self._adapter_iface: Any = None
        self._object_manager: Any = None
        self._discovering = False
        self._stream: DeviceEventStream | None = None

    @classmethod
    async def connect(
        cls,
        adapter_path: str = DEFAULT_ADAPTER_PATH,
        call_timeout: float = 10.0,
    ) -> BluezClient:
        try:
            bus = await MessageBus(bus_type=BusType.SYSTEM).connect()
        except (OSError, DBusError) as exc:
            raise AdapterUnavailable(f"system bus unreachable: {exc}") from exc

        client = cls(bus, adapter_path=adapter_path, call_timeout=call_timeout)
        try:
            await client._adapter()
        except BaseException:
            await client.close()
            raise
        logger.debug("Connected to BlueZ adapter %s", adapter_path)
        return client

    @property
    def adapter_path(self) -> str:
        return self._adapter_path

    async def close(self) -> None:
        if self._stream is not None and not self._stream.closed:
            await self._stream.close()
        self._stream = None
        self._bus.disconnect()

    async def _call(self, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, self._call_timeout)
        except TimeoutError as exc:
            raise BusCallError(
                f"no reply from {BLUEZ_SERVICE} within {self._call_timeout:g}s"
            ) from exc
        except DBusError as exc:
            raise BusCallError(_describe(exc), exc.type) from exc

    async def _interface(self, path: str, interface: str) -> Any:
        introspection = await self._call(self._bus.introspect(BLUEZ_SERVICE, path))
        proxy = self._bus.get_proxy_object(BLUEZ_SERVICE, path, introspection)
        return cast(Any, proxy.get_interface(interface))

    async def _adapter(self) -> Any:
        if self._adapter_iface is None:
            try:
                self._adapter_iface = await self._interface(
                    self._adapter_path, ADAPTER_INTERFACE
                )
            except (BusCallError, InterfaceNotFoundError) as exc:
                raise AdapterUnavailable(
                    f"adapter {self._adapter_path} is not available: {exc}"
                ) from exc
        return self._adapter_iface

    async def _managed_objects(self) -> dict[str, dict[str, dict[str, Any]]]:
        if self._object_manager is None:
            try:
                self._object_manager = await self._interface(
                    "/", OBJECT_MANAGER_INTERFACE
                )
            except (BusCallError, InterfaceNotFoundError) as exc:
                raise AdapterUnavailable(
                    f"{BLUEZ_SERVICE} is not available: {exc}"
                ) from exc
        try:
            return await self._call(self._object_manager.call_get_managed_objects())
        except BusCallError as exc:
            raise AdapterUnavailable(f"unable to list bus objects: {exc}") from exc

    async def list_known_devices(self) -> list[RawDeviceProps]:
        objects = await self._managed_objects()
        devices: list[RawDeviceProps] = []
        for path in sorted(objects):
            interfaces = objects[path]
            if DEVICE_INTERFACE not in interfaces:
                continue
            if not is_device_path(path, self._adapter_path):
                continue
            props = raw_device_props(
                interfaces[DEVICE_INTERFACE], interfaces.get(BATTERY_INTERFACE)
            )
            if props.address is None:
                logger.debug("Skipping device object without address: %s", path)
                continue
            devices.append(props)
        logger.debug("Adapter %s knows %d device(s)", self._adapter_path, len(devices))
        return devices

    async def _device_path(self, address: str) -> str:
        wanted = normalize_address(address)
        objects = await self._managed_objects()
        for path, interfaces in objects.items():
            props = interfaces.get(DEVICE_INTERFACE)
            if props is None or not is_device_path(path, self._adapter_path):
                continue
            if raw_device_props(props).address == wanted:
                return path
        raise DeviceNotFound(wanted)

    async def get_adapter_power(self) -> bool:
        adapter = await self._adapter()
        try:
            return bool(await self._call(adapter.get_powered()))
        except BusCallError as exc:
            raise AdapterUnavailable(f"unable to read adapter power: {exc}") from exc

    async def set_adapter_power(self, powered: bool) -> None:
        adapter = await self._adapter()
        try:
            await self._call(adapter.set_powered(powered))
        except BusCallError as exc:
            raise AdapterUnavailable(f"unable to set adapter power: {exc}") from exc
        logger.debug("Adapter %s powered=%s", self._adapter_path, powered)

    async def start_discovery(self) -> None:
        if self._discovering:
            return
        adapter = await self._adapter()
        try:
            await self._call(adapter.call_start_discovery())
        except BusCallError as exc:
            raise DiscoveryStartFailed(
                f"unable to start device discovery: {exc}"
            ) from exc
        self._discovering = True
        logger.debug("Discovery started on %s", self._adapter_path)

    async def stop_discovery(self) -> None:
        if not self._discovering:
            return
        self._discovering = False
        adapter = await self._adapter()
        try:
            await self._call(adapter.call_stop_discovery())
        except BusCallError as exc:
            raise DiscoveryStopFailed(
                f"unable to stop device discovery: {exc}"
            ) from exc
        logger.debug("Discovery stopped on %s", self._adapter_path)

    async def subscribe_device_events(self) -> DeviceEventStream:
        if self._stream is not None and not self._stream.closed:
            raise RuntimeError("a device event subscription is already active")
        stream = BluezEventStream(self._bus, self._adapter_path)
        await stream.open()
        self._stream = stream
        return stream

    async def _device_call(
        self, address: str, method: str, error_cls: type[DeviceOperationError]
    ) -> None:
        path = await self._device_path(address)
        try:
            device = await self._interface(path, DEVICE_INTERFACE)
            await self._call(getattr(device, method)())
        except BusCallError as exc:
            if exc.error_name in (UNKNOWN_OBJECT_ERROR, DOES_NOT_EXIST_ERROR):
                raise DeviceNotFound(address) from exc
            raise error_cls(address, exc.reason) from exc
        except InterfaceNotFoundError as exc:
            raise DeviceNotFound(address) from exc

    async def connect_device(self, address: str) -> None:
        await self._device_call(address, "call_connect", ConnectFailed)
        logger.debug("Connected %s", address)

    async def disconnect_device(self, address: str) -> None:
        await self._device_call(address, "call_disconnect", DisconnectFailed)
        logger.debug("Disconnected %s", address)

    async def remove_device(self, address: str) -> None:
        path = await self._device_path(address)
        adapter = await self._adapter()
        try:
            await self._call(adapter.call_remove_device(path))
        except BusCallError as exc:
            if exc.error_name in (UNKNOWN_OBJECT_ERROR, DOES_NOT_EXIST_ERROR):
                raise DeviceNotFound(address) from exc
            raise RemoveFailed(address, exc.reason) from exc
        logger.debug("Removed %s from %s", address, self._adapter_path)
