from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from btctl.errors import AdapterUnavailable, BtctlError
from btctl.models import Outcome, OutcomeStatus, normalize_address

if TYPE_CHECKING:
    from btctl.bluez import BluezClient

logger = logging.getLogger(__name__)

CONNECT = "connect"
DISCONNECT = "disconnect"


class ConnectionOrchestrator:
    """Connect/disconnect batches with one ``Outcome`` per requested device.

    Device-level failures are captured in the outcome and never stop the rest
    of the batch. ``AdapterUnavailable`` propagates and aborts it.
    """

    def __init__(self, client: BluezClient) -> None:
        self._client = client

    async def connect_one(self, address: str) -> Outcome:
        address = normalize_address(address)
        try:
            await self._client.connect_device(address)
        except AdapterUnavailable:
            raise
        except BtctlError as exc:
            logger.debug("Connect %s failed: %s", address, exc)
            return Outcome(address, CONNECT, OutcomeStatus.FAILED, error=exc)
        return Outcome(address, CONNECT, OutcomeStatus.SUCCEEDED)

    async def connect_many(self, addresses: Iterable[str]) -> list[Outcome]:
        return [await self.connect_one(address) for address in addresses]

    async def disconnect_one(self, address: str, force: bool = False) -> Outcome:
        address = normalize_address(address)
        try:
            await self._client.disconnect_device(address)
        except AdapterUnavailable:
            raise
        except BtctlError as exc:
            logger.debug("Disconnect %s failed: %s", address, exc)
            return Outcome(
                address, DISCONNECT, OutcomeStatus.FAILED, error=exc, forced=force
            )

        if not force:
            return Outcome(address, DISCONNECT, OutcomeStatus.SUCCEEDED)

        try:
            await self._client.remove_device(address)
        except AdapterUnavailable:
            raise
        except BtctlError as exc:
            logger.debug("Remove %s failed after disconnect: %s", address, exc)
            return Outcome(
                address,
                DISCONNECT,
                OutcomeStatus.DISCONNECTED_NOT_REMOVED,
                error=exc,
                forced=True,
            )
        return Outcome(address, DISCONNECT, OutcomeStatus.SUCCEEDED, forced=True)

    async def disconnect_many(
        self, addresses: Iterable[str], force: bool = False
    ) -> list[Outcome]:
        return [await self.disconnect_one(address, force) for address in addresses]
