from __future__ import annotations

import asyncio

import pytest
from dbus_fast import Variant
from dbus_fast.errors import DBusError

from btctl.bluez import (
    BluezClient,
    DeviceEventStream,
    address_from_path,
    event_from_signal,
    raw_device_props,
)
from btctl.bluez.constants import (
    BATTERY_INTERFACE,
    DEVICE_INTERFACE,
    OBJECT_MANAGER_INTERFACE,
    PROPERTIES_INTERFACE,
)
from btctl.errors import (
    AdapterUnavailable,
    ConnectFailed,
    DeviceNotFound,
    DiscoveryStartFailed,
)
from btctl.models import DeviceAdded, DeviceChanged, RawDeviceProps

ADAPTER = "/org/bluez/hci0"
DEVICE_PATH = f"{ADAPTER}/dev_AA_BB_CC_DD_EE_FF"
ADDRESS = "AA:BB:CC:DD:EE:FF"


def test_raw_device_props_unwraps_variants():
    props = raw_device_props(
        {
            "Address": Variant("s", ADDRESS.lower()),
            "Alias": Variant("s", "Headset"),
            "RSSI": Variant("n", -48),
            "Connected": Variant("b", True),
            "Trusted": Variant("b", False),
            "Paired": Variant("b", True),
            "Icon": Variant("s", "audio-headset"),
        },
        {"Percentage": Variant("y", 80)},
    )

    assert props == RawDeviceProps(
        address=ADDRESS,
        alias="Headset",
        rssi=-48,
        connected=True,
        trusted=False,
        paired=True,
        battery=80,
    )
    assert props.bonded is None


def test_address_from_path():
    assert address_from_path(DEVICE_PATH) == ADDRESS
    assert address_from_path("/org/bluez/hci1/dev_00_1a_7d_da_71_13") == (
        "00:1A:7D:DA:71:13"
    )


def test_interfaces_added_maps_to_device_added():
    event = event_from_signal(
        OBJECT_MANAGER_INTERFACE,
        "InterfacesAdded",
        "/",
        [DEVICE_PATH, {DEVICE_INTERFACE: {"RSSI": Variant("n", -70)}}],
        ADAPTER,
    )

    assert event == DeviceAdded(RawDeviceProps(address=ADDRESS, rssi=-70))


def test_interfaces_added_ignores_other_objects():
    for path, interfaces in [
        (ADAPTER, {"org.bluez.Adapter1": {}}),
        (f"{DEVICE_PATH}/service0001", {"org.bluez.GattService1": {}}),
        ("/org/bluez/hci1/dev_AA_BB_CC_DD_EE_FF", {DEVICE_INTERFACE: {}}),
    ]:
        event = event_from_signal(
            OBJECT_MANAGER_INTERFACE,
            "InterfacesAdded",
            "/",
            [path, interfaces],
            ADAPTER,
        )
        assert event is None


def test_properties_changed_maps_to_device_changed_with_invalidated():
    event = event_from_signal(
        PROPERTIES_INTERFACE,
        "PropertiesChanged",
        DEVICE_PATH,
        [DEVICE_INTERFACE, {"Connected": Variant("b", True)}, ["RSSI"]],
        ADAPTER,
    )

    assert event == DeviceChanged(
        address=ADDRESS,
        props=RawDeviceProps(connected=True),
        invalidated=frozenset({"rssi"}),
    )


def test_battery_properties_changed_maps_percentage():
    event = event_from_signal(
        PROPERTIES_INTERFACE,
        "PropertiesChanged",
        DEVICE_PATH,
        [BATTERY_INTERFACE, {"Percentage": Variant("y", 55)}, []],
        ADAPTER,
    )

    assert isinstance(event, DeviceChanged)
    assert event.props.battery == 55


def test_unrelated_signals_are_ignored():
    assert (
        event_from_signal(
            PROPERTIES_INTERFACE,
            "PropertiesChanged",
            ADAPTER,
            ["org.bluez.Adapter1", {"Discovering": Variant("b", True)}, []],
            ADAPTER,
        )
        is None
    )
    assert event_from_signal("org.example.Other", "Ping", "/", [], ADAPTER) is None


def test_event_stream_times_out_and_stops_after_close():
    async def scenario():
        stream = DeviceEventStream()
        assert await stream.next_event(0.01) is None
        event = DeviceChanged(address=ADDRESS, props=RawDeviceProps(rssi=-1))
        stream.push(event)
        assert await stream.next_event(0.01) == event
        await stream.close()
        stream.push(event)
        return await stream.next_event(0.01), stream.closed

    assert asyncio.run(scenario()) == (None, True)


class _FakeAdapter:
    def __init__(self, start_error: Exception | None = None) -> None:
        self.start_error = start_error
        self.calls: list[str] = []

    async def call_start_discovery(self):
        self.calls.append("start")
        if self.start_error is not None:
            raise self.start_error

    async def call_stop_discovery(self):
        self.calls.append("stop")


def _client(adapter: _FakeAdapter) -> BluezClient:
    client = BluezClient(None, ADAPTER, call_timeout=1.0)  # type: ignore[arg-type]
    client._adapter_iface = adapter
    return client


def test_stop_discovery_without_start_is_noop():
    adapter = _FakeAdapter()

    asyncio.run(_client(adapter).stop_discovery())

    assert adapter.calls == []


def test_start_discovery_failure_maps_to_adapter_error():
    adapter = _FakeAdapter(DBusError("org.bluez.Error.NotReady", "Resource Not Ready"))
    client = _client(adapter)

    async def scenario():
        with pytest.raises(DiscoveryStartFailed) as excinfo:
            await client.start_discovery()
        await client.stop_discovery()
        return excinfo.value

    error = asyncio.run(scenario())

    assert isinstance(error, AdapterUnavailable)
    assert "Resource Not Ready" in str(error)
    assert adapter.calls == ["start"]


def test_start_and_stop_discovery_are_idempotent():
    adapter = _FakeAdapter()
    client = _client(adapter)

    async def scenario():
        await client.start_discovery()
        await client.start_discovery()
        await client.stop_discovery()
        await client.stop_discovery()

    asyncio.run(scenario())

    assert adapter.calls == ["start", "stop"]


class _FakeDevice:
    def __init__(self, error: Exception) -> None:
        self.error = error

    async def call_connect(self):
        raise self.error


def _device_client(error: Exception) -> BluezClient:
    client = _client(_FakeAdapter())

    async def device_path(address: str) -> str:
        return DEVICE_PATH

    async def interface(path: str, name: str):
        return _FakeDevice(error)

    client._device_path = device_path  # type: ignore[method-assign]
    client._interface = interface  # type: ignore[method-assign]
    return client


def test_connect_failure_carries_bus_error_reason():
    client = _device_client(
        DBusError("org.bluez.Error.Failed", "br-connection-page-timeout")
    )

    with pytest.raises(ConnectFailed) as excinfo:
        asyncio.run(client.connect_device(ADDRESS))

    assert excinfo.value.reason == (
        "org.bluez.Error.Failed: br-connection-page-timeout"
    )


def test_connect_to_vanished_object_is_device_not_found():
    client = _device_client(
        DBusError("org.freedesktop.DBus.Error.UnknownObject", "gone")
    )

    with pytest.raises(DeviceNotFound):
        asyncio.run(client.connect_device(ADDRESS))
