"""Error taxonomy shared by the bus client, the core and the CLI."""

from __future__ import annotations


class BtctlError(Exception):
    """Base class for every error btctl reports to the user."""


class AdapterUnavailable(BtctlError):
    """The adapter is powered off, missing, or the system bus is unreachable."""


class DiscoveryStartFailed(AdapterUnavailable):
    pass


class DiscoveryStopFailed(BtctlError):
    pass


class DeviceNotFound(BtctlError):
    def __init__(self, target: str) -> None:
        super().__init__(f"device not found: {target}")
        self.target = target


class DeviceOperationError(BtctlError):
    action = "operate on"

    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"unable to {self.action} device {address}: {reason}")
        self.address = address
        self.reason = reason


class ConnectFailed(DeviceOperationError):
    action = "connect to"


class DisconnectFailed(DeviceOperationError):
    action = "disconnect from"


class RemoveFailed(DeviceOperationError):
    action = "remove"


class InvalidInput(BtctlError):
    """Validation error raised before any bus interaction."""


class InvalidProjection(InvalidInput):
    pass


class InvalidDuration(InvalidInput):
    pass


class InvalidSelectionInput(InvalidInput):
    pass
