from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from btctl.errors import BtctlError, DeviceOperationError


class OutcomeStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    DISCONNECTED_NOT_REMOVED = "disconnected-not-removed"


@dataclass(frozen=True)
class Outcome:
    """Result of one connect or disconnect request against one device."""

    address: str
    action: str
    status: OutcomeStatus
    error: BtctlError | None = None
    forced: bool = False

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED

    @property
    def reason(self) -> str | None:
        if self.error is None:
            return None
        if isinstance(self.error, DeviceOperationError):
            return self.error.reason
        return str(self.error)

    def describe(self, label: str | None = None) -> str:
        name = label or self.address
        if self.status is OutcomeStatus.DISCONNECTED_NOT_REMOVED:
            return (
                f"disconnected from device {name} "
                f"but could not remove it: {self.reason}"
            )
        if self.status is OutcomeStatus.FAILED:
            verb = "connect to" if self.action == "connect" else "disconnect from"
            return f"unable to {verb} device {name}: {self.reason}"
        if self.action == "connect":
            return f"connected to device {name}"
        if self.forced:
            return f"disconnected from and removed device {name}"
        return f"disconnected from device {name}"


def all_succeeded(outcomes: Iterable[Outcome]) -> bool:
    return all(outcome.ok for outcome in outcomes)
