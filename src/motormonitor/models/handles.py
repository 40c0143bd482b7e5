"""Device and service handles owned by the connection manager."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from bleak.backends.service import BleakGATTService


class DeviceHandle:
    """Identity of the connected device.

    Created by the connection manager on a successful connect and
    invalidated when the connection is released. An invalid handle must
    not be used for any further GATT operation.
    """

    def __init__(self, identifier: str, name: str | None = None):
        self.identifier = identifier
        self.name = name or identifier
        self._valid = True

    @property
    def is_valid(self) -> bool:
        return self._valid

    def invalidate(self) -> None:
        self._valid = False

    def __repr__(self) -> str:
        state = "valid" if self._valid else "released"
        return f"DeviceHandle({self.identifier!r}, name={self.name!r}, {state})"


class ServiceHandle:
    """GATT service derived from a device handle.

    Valid only while the owning device handle is valid.
    """

    def __init__(
            self,
            device: DeviceHandle,
            uuid: str,
            handle: int,
            gatt: BleakGATTService | Any = None,
            description: str = "",
    ):
        self.device = device
        self.uuid = uuid
        self.handle = handle
        self.gatt = gatt
        self.description = description

    @property
    def is_valid(self) -> bool:
        return self.device.is_valid

    @property
    def display_name(self) -> str:
        if self.description and self.description != "Unknown":
            return f"{self.description} ({self.uuid})"
        return self.uuid

    def __repr__(self) -> str:
        return f"ServiceHandle({self.uuid!r}, handle={self.handle})"
