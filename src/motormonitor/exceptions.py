"""Exceptions raised by the MotorMonitor GATT client."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .models.enums import ErrorKind

if TYPE_CHECKING:
    from .models.handles import ServiceHandle


class MotorMonitorError(Exception):
    """Base exception for all MotorMonitor errors."""

    kind: ErrorKind = ErrorKind.CONNECTION_FAILED


class BLEConnectionError(MotorMonitorError):
    """BLE transport failure that fits no more specific kind."""

    kind = ErrorKind.CONNECTION_FAILED


class BLETimeoutError(MotorMonitorError):
    """BLE operation did not complete within the configured timeout."""

    kind = ErrorKind.TIMEOUT


class DeviceNotFoundError(MotorMonitorError):
    """Device could not be found or the connect call failed."""

    kind = ErrorKind.DEVICE_NOT_FOUND


class ServiceNotFoundError(MotorMonitorError):
    """Requested service is not exposed by the connected device.

    Attributes:
        service_uuid: UUID that was looked up
        services: All services enumerated by the fallback (empty when the
            fallback already ran for this connect attempt)
    """

    kind = ErrorKind.SERVICE_NOT_FOUND

    def __init__(
            self,
            service_uuid: str,
            services: list[ServiceHandle] | None = None,
    ):
        super().__init__(f"Service {service_uuid} not found")
        self.service_uuid = service_uuid
        self.services = services or []


class AccessDeniedError(MotorMonitorError):
    """Platform or peripheral refused access to the attribute."""

    kind = ErrorKind.ACCESS_DENIED


class CharacteristicDiscoveryError(MotorMonitorError):
    """Characteristics of a service could not be enumerated."""

    kind = ErrorKind.CHARACTERISTIC_DISCOVERY_FAILED


class DescriptorWriteError(MotorMonitorError):
    """Client characteristic configuration write failed."""

    kind = ErrorKind.DESCRIPTOR_WRITE_FAILED


class ReadError(MotorMonitorError):
    """Characteristic read failed."""

    kind = ErrorKind.READ_FAILED


class WriteError(MotorMonitorError):
    """Characteristic write failed."""

    kind = ErrorKind.WRITE_FAILED


class UnsupportedOperationError(MotorMonitorError):
    """Characteristic does not support the requested operation."""

    kind = ErrorKind.UNSUPPORTED_OPERATION
