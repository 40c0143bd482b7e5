"""BLE connection management."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Awaitable, Callable, TypeVar

from bleak import BleakClient, BleakScanner
from bleak.exc import BleakDBusError
from bleak_retry_connector import BleakClientWithServiceCache, establish_connection

from ..exceptions import (
    AccessDeniedError,
    BLEConnectionError,
    BLETimeoutError,
    CharacteristicDiscoveryError,
    DescriptorWriteError,
    DeviceNotFoundError,
    MotorMonitorError,
    ReadError,
    WriteError,
)

if TYPE_CHECKING:
    from bleak.backends.characteristic import BleakGATTCharacteristic
    from bleak.backends.device import BLEDevice
    from bleak.backends.service import BleakGATTService

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")

NotificationHandler = Callable[["BleakGATTCharacteristic", bytearray], None]

_ACCESS_DENIED_DBUS_ERRORS = frozenset({
    "org.bluez.Error.NotPermitted",
    "org.bluez.Error.NotAuthorized",
    "org.bluez.Error.InsufficientAuthentication",
    "org.bluez.Error.InsufficientEncryption",
})

_ACCESS_DENIED_MARKERS = ("access denied", "accessdenied", "not permitted")


def _is_access_denied(err: BaseException) -> bool:
    if isinstance(err, BleakDBusError) and err.dbus_error in _ACCESS_DENIED_DBUS_ERRORS:
        return True
    message = str(err).lower()
    return any(marker in message for marker in _ACCESS_DENIED_MARKERS)


def translate_error(
        err: BaseException,
        error_cls: type[MotorMonitorError],
        context: str,
) -> MotorMonitorError:
    """Map a bleak/asyncio failure onto the package error for this operation."""
    if isinstance(err, MotorMonitorError):
        return err
    if isinstance(err, asyncio.TimeoutError):
        return BLETimeoutError(f"{context} timed out")
    if _is_access_denied(err):
        return AccessDeniedError(f"{context}: access denied ({err})")
    return error_cls(f"{context}: {err}")


class BLEConnection:
    """Manages the BLE connection to a MotorMonitor device.

    Features:
    - Automatic retry logic with bleak-retry-connector
    - Fresh GATT discovery on every connection (service cache always off)
    - Explicit timeout on every GATT operation
    - Context manager for automatic cleanup
    - Bleak failures translated into package exceptions at this boundary
    """

    def __init__(
            self,
            identifier: str,
            ble_device: BLEDevice | None = None,
            timeout: float = 10.0,
            max_attempts: int = 3,
            disconnected_callback: Callable[[], None] | None = None,
    ):
        """Initialize BLE connection manager.

        Args:
            identifier: Device MAC address or platform identifier
            ble_device: Optional BLEDevice from a scanner or Home Assistant
            timeout: Timeout in seconds for connect and every GATT operation (default: 10)
            max_attempts: Maximum connection attempts for bleak-retry-connector (default: 3)
            disconnected_callback: Called when the link drops without disconnect() being called
        """
        self.identifier = identifier
        self.ble_device = ble_device
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.device_name: str | None = None

        self._client: BleakClient | None = None
        self._disconnected_callback = disconnected_callback
        self._disconnecting = False

    async def __aenter__(self) -> BLEConnection:
        """Connect to device (context manager entry)."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Disconnect from device (context manager exit)."""
        await self.disconnect()

    async def connect(self) -> None:
        """Establish BLE connection to device.

        Raises:
            DeviceNotFoundError: If the device cannot be found or connect fails
            AccessDeniedError: If the platform refuses the connection
            BLETimeoutError: If connection times out
        """
        if self._client and self._client.is_connected:
            return  # Already connected

        try:
            _LOGGER.debug(
                "Connecting to %s with bleak-retry-connector (max_attempts=%d)",
                self.identifier,
                self.max_attempts,
            )

            # Resolve identifier to BLEDevice if not provided
            if self.ble_device:
                device = self.ble_device
            else:
                device = await BleakScanner.find_device_by_address(
                    self.identifier,
                    timeout=self.timeout,
                )
                if device is None:
                    raise DeviceNotFoundError(
                        f"Device {self.identifier} not found during scan"
                    )

            self._disconnecting = False
            self._client = await asyncio.wait_for(
                establish_connection(
                    client_class=BleakClientWithServiceCache,
                    device=device,
                    name=device.name or self.identifier,
                    disconnected_callback=self._on_disconnected,
                    max_attempts=self.max_attempts,
                    use_services_cache=False,
                    timeout=self.timeout,
                ),
                # Retries may each take up to `timeout`
                timeout=self.timeout * self.max_attempts,
            )
            self.device_name = device.name

            _LOGGER.debug("Connected to %s", self.identifier)

        except Exception as e:
            self._client = None
            raise translate_error(
                e, DeviceNotFoundError, f"Failed to connect to {self.identifier}"
            ) from e

    async def disconnect(self) -> None:
        """Disconnect from device. Safe to call when not connected."""
        client, self._client = self._client, None
        if client is None:
            return

        self._disconnecting = True
        try:
            if client.is_connected:
                _LOGGER.debug("Disconnecting from %s", self.identifier)
                await asyncio.wait_for(client.disconnect(), timeout=self.timeout)
        except Exception as e:
            _LOGGER.warning("Error during disconnect: %s", e)

    def _on_disconnected(self, client: BleakClient) -> None:
        if self._disconnecting or client is not self._client:
            return
        _LOGGER.debug("%s disconnected unexpectedly", self.identifier)
        self._client = None
        if self._disconnected_callback is not None:
            self._disconnected_callback()

    @property
    def is_connected(self) -> bool:
        """Check if currently connected to device."""
        return self._client is not None and self._client.is_connected

    def _require_client(self, error_cls: type[MotorMonitorError]) -> BleakClient:
        if not self._client or not self._client.is_connected:
            raise error_cls("Not connected")
        return self._client

    async def _call(
            self,
            operation: Awaitable[_T],
            error_cls: type[MotorMonitorError],
            context: str,
    ) -> _T:
        try:
            return await asyncio.wait_for(operation, timeout=self.timeout)
        except Exception as e:
            raise translate_error(e, error_cls, context) from e

    def services(self) -> list[BleakGATTService]:
        """All services discovered on this connection.

        Raises:
            BLEConnectionError: If not connected
        """
        client = self._require_client(BLEConnectionError)
        return list(client.services)

    def characteristics(self, service: BleakGATTService) -> list[BleakGATTCharacteristic]:
        """Characteristics of a service, in GATT handle order.

        Raises:
            CharacteristicDiscoveryError: If not connected or the service is stale
        """
        client = self._require_client(CharacteristicDiscoveryError)
        try:
            current = client.services.get_service(service.handle)
        except Exception as e:
            raise translate_error(
                e, CharacteristicDiscoveryError, f"Characteristics of {service.uuid}"
            ) from e
        if current is None:
            raise CharacteristicDiscoveryError(
                f"Service {service.uuid} is no longer available"
            )
        return sorted(current.characteristics, key=lambda char: char.handle)

    async def read_descriptor(self, handle: int) -> bytes:
        """Read a descriptor value by handle.

        Raises:
            ReadError: If read fails
            BLETimeoutError: If read times out
        """
        client = self._require_client(ReadError)
        data = await self._call(
            client.read_gatt_descriptor(handle), ReadError, f"Read descriptor 0x{handle:04x}"
        )
        return bytes(data)

    async def read_characteristic(self, handle: int) -> bytes:
        """Read a characteristic value from the device (never from a cache).

        Raises:
            ReadError: If read fails
            AccessDeniedError: If the peripheral refuses the read
            BLETimeoutError: If read times out
        """
        client = self._require_client(ReadError)
        data = await self._call(
            client.read_gatt_char(handle), ReadError, f"Read characteristic 0x{handle:04x}"
        )
        return bytes(data)

    async def write_characteristic(self, handle: int, data: bytes, response: bool) -> None:
        """Write a characteristic value.

        Args:
            handle: Characteristic handle
            data: Value to write
            response: Wait for write confirmation (write request vs command)

        Raises:
            WriteError: If write fails
            AccessDeniedError: If the peripheral refuses the write
            BLETimeoutError: If write times out
        """
        client = self._require_client(WriteError)
        await self._call(
            client.write_gatt_char(handle, data, response=response),
            WriteError,
            f"Write characteristic 0x{handle:04x}",
        )

    async def start_notify(self, handle: int, callback: NotificationHandler) -> None:
        """Write the CCCD to enable notify/indicate and route values to callback.

        bleak selects notify when the characteristic supports it and
        indicate otherwise.

        Raises:
            DescriptorWriteError: If the CCCD write fails
            BLETimeoutError: If the write times out
        """
        client = self._require_client(DescriptorWriteError)
        await self._call(
            client.start_notify(handle, callback),
            DescriptorWriteError,
            f"Enable notifications on 0x{handle:04x}",
        )

    async def stop_notify(self, handle: int) -> None:
        """Write the CCCD to disable notify/indicate.

        Raises:
            DescriptorWriteError: If the CCCD write fails
            BLETimeoutError: If the write times out
        """
        client = self._require_client(DescriptorWriteError)
        await self._call(
            client.stop_notify(handle),
            DescriptorWriteError,
            f"Disable notifications on 0x{handle:04x}",
        )

