from __future__ import annotations

import pytest

from btctl.bluez import DeviceEventStream
from btctl.config import get_settings
from btctl.models import DeviceEvent, RawDeviceProps


@pytest.fixture(autouse=True)
def _isolate_settings_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    monkeypatch.delenv("BTCTL_CONFIG", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class FakeBluezClient:
    """In-memory stand-in for ``BluezClient``.

    ``failures`` maps ``(method, address)`` (address ``None`` for adapter-level
    calls) to the exception that call should raise. Every call is appended to
    ``calls``.
    """

    def __init__(
        self,
        known: list[RawDeviceProps] | None = None,
        events: list[DeviceEvent] | None = None,
        powered: bool = True,
        failures: dict[tuple[str, str | None], Exception] | None = None,
    ) -> None:
        self.known = list(known or [])
        self.events = list(events or [])
        self.powered = powered
        self.failures = dict(failures or {})
        self.calls: list[tuple[str, ...]] = []
        self.discovering = False
        self.stream: DeviceEventStream | None = None
        self.closed = False

    def _record(self, method: str, address: str | None = None) -> None:
        self.calls.append((method,) if address is None else (method, address))
        exc = self.failures.get((method, address))
        if exc is not None:
            raise exc

    def called(self, method: str) -> list[tuple[str, ...]]:
        return [call for call in self.calls if call[0] == method]

    async def close(self) -> None:
        self.closed = True

    async def list_known_devices(self) -> list[RawDeviceProps]:
        self._record("list_known_devices")
        return list(self.known)

    async def get_adapter_power(self) -> bool:
        self._record("get_adapter_power")
        return self.powered

    async def set_adapter_power(self, powered: bool) -> None:
        self._record("set_adapter_power")
        self.powered = powered

    async def start_discovery(self) -> None:
        self._record("start_discovery")
        self.discovering = True

    async def stop_discovery(self) -> None:
        if not self.discovering:
            self.calls.append(("stop_discovery",))
            return
        self.discovering = False
        self._record("stop_discovery")

    async def subscribe_device_events(self) -> DeviceEventStream:
        self._record("subscribe_device_events")
        if self.stream is not None and not self.stream.closed:
            raise RuntimeError("a device event subscription is already active")
        self.stream = DeviceEventStream()
        for event in self.events:
            self.stream.push(event)
        return self.stream

    async def connect_device(self, address: str) -> None:
        self._record("connect_device", address)

    async def disconnect_device(self, address: str) -> None:
        self._record("disconnect_device", address)

    async def remove_device(self, address: str) -> None:
        self._record("remove_device", address)


@pytest.fixture
def fake_client_factory():
    return FakeBluezClient
