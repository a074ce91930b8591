"""Bounded discovery sessions.

A session subscribes to device notifications, starts discovery, seeds a
``DeviceRegistry`` from the adapter's known devices and folds events until the
duration elapses or ``cancel()`` is called. Draining (stop discovery, close
the stream) always runs, including when the running task is cancelled.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING

from btctl.config import MAX_SCAN_DURATION, MIN_SCAN_DURATION
from btctl.errors import BtctlError, DiscoveryStopFailed, InvalidDuration
from btctl.models import DeviceRecord

from .registry import DeviceRegistry

if TYPE_CHECKING:
    from btctl.bluez import BluezClient, DeviceEventStream

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL = 0.5


class SessionState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    DRAINING = "draining"
    CLOSED = "closed"


def validate_duration(seconds: int) -> int:
    if isinstance(seconds, bool) or not isinstance(seconds, int):
        raise InvalidDuration(f"scan duration must be an integer, got {seconds!r}")
    if not MIN_SCAN_DURATION <= seconds <= MAX_SCAN_DURATION:
        raise InvalidDuration(
            f"scan duration must be between {MIN_SCAN_DURATION} and "
            f"{MAX_SCAN_DURATION} seconds, got {seconds}"
        )
    return seconds


class DiscoverySession:
    def __init__(
        self,
        client: BluezClient,
        duration: int,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
    ) -> None:
        if tick_interval <= 0:
            raise ValueError("tick_interval must be positive")
        self._client = client
        self._duration = validate_duration(duration)
        self._tick_interval = tick_interval
        self._registry = DeviceRegistry()
        self._cancelled = asyncio.Event()
        self._state = SessionState.IDLE

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def duration(self) -> int:
        return self._duration

    @property
    def registry(self) -> DeviceRegistry:
        return self._registry

    def cancel(self) -> None:
        """Request an early transition to draining."""
        self._cancelled.set()

    async def run(self) -> list[DeviceRecord]:
        if self._state is not SessionState.IDLE:
            raise RuntimeError(f"discovery session already {self._state.value}")

        stream = await self._client.subscribe_device_events()
        try:
            await self._client.start_discovery()
        except BaseException:
            await self._close_stream(stream)
            self._state = SessionState.CLOSED
            raise

        self._state = SessionState.SCANNING
        logger.debug("Scanning for %ds", self._duration)
        try:
            self._registry.seed(await self._client.list_known_devices())
            await self._consume(stream)
        finally:
            await self._drain(stream)

        return self._registry.snapshot()

    async def _consume(self, stream: DeviceEventStream) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._duration
        while not self._cancelled.is_set():
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            event = await stream.next_event(min(self._tick_interval, remaining))
            if event is not None:
                self._registry.fold(event)
        if self._cancelled.is_set():
            logger.debug("Discovery session cancelled")

    async def _drain(self, stream: DeviceEventStream) -> None:
        self._state = SessionState.DRAINING
        try:
            await self._client.stop_discovery()
        except DiscoveryStopFailed as exc:
            logger.warning("%s; returning devices seen so far", exc)
        finally:
            await self._close_stream(stream)
            self._state = SessionState.CLOSED
        logger.debug("Discovery session closed with %d device(s)", len(self._registry))

    async def _close_stream(self, stream: DeviceEventStream) -> None:
        try:
            await stream.close()
        except BtctlError as exc:
            logger.warning("Could not close device event stream: %s", exc)
