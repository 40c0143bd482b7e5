"""Generic explorer for arbitrary services and characteristics."""

from __future__ import annotations

import logging
import struct
from typing import TYPE_CHECKING, Callable

from ..exceptions import MotorMonitorError, UnsupportedOperationError, WriteError
from ..models.characteristic import CharacteristicDescriptor, DecodedValue
from ..models.enums import CharacteristicProperty
from ..protocol.decoder import decode_value

if TYPE_CHECKING:
    from ..models.handles import ServiceHandle
    from ..status import StatusReporter
    from ..transport import BLEConnection
    from .registry import CharacteristicRegistry
    from .subscriber import NotificationSubscriber

_LOGGER = logging.getLogger(__name__)

_INT32 = struct.Struct("<i")


class GattExplorer:
    """Browse, read, write and watch any characteristic of the device.

    Used when the monitor service is missing (the resolver's fallback fills
    ``services``) or on demand. At most one explorer subscription is
    active at a time. Methods report failures to the status sink and
    never raise.
    """

    def __init__(
            self,
            connection: BLEConnection,
            registry: CharacteristicRegistry,
            subscriber: NotificationSubscriber,
            status: StatusReporter,
            on_subscribed: Callable[[], None] | None = None,
    ):
        self._connection = connection
        self._registry = registry
        self._subscriber = subscriber
        self._status = status
        self._on_subscribed = on_subscribed
        self.services: list[ServiceHandle] = []
        self.characteristics: list[CharacteristicDescriptor] = []
        self.latest_value: str | None = None

    def set_services(self, services: list[ServiceHandle]) -> None:
        """Expose services for manual selection."""
        self.services = list(services)
        self.characteristics = []
        self._status.info(f"Found {len(self.services)} services")

    def clear(self) -> None:
        self.services = []
        self.characteristics = []
        self.latest_value = None

    @property
    def subscribed(self) -> CharacteristicDescriptor | None:
        slot = self._registry.explorer_slot
        return slot.characteristic if slot.is_filled else None

    async def select_service(self, service: ServiceHandle) -> list[CharacteristicDescriptor]:
        """Drop the explorer subscription and list the service's characteristics."""
        await self._release()
        self.characteristics = []
        _LOGGER.debug("Exploring service %s", service.uuid)

        try:
            self.characteristics = await self._registry.discover(service)
        except MotorMonitorError as err:
            self._status.failure("Restricted service. Can't read characteristics", err)
            return []

        return list(self.characteristics)

    async def read(self, characteristic: CharacteristicDescriptor) -> str | None:
        """Read and decode a characteristic value (uncached)."""
        try:
            self._require(characteristic, CharacteristicProperty.READ, "read")
            data = await self._connection.read_characteristic(characteristic.handle)
        except MotorMonitorError as err:
            self._status.failure("Read failed", err)
            return None

        value = decode_value(data, characteristic)
        self._status.info(f"Read result: {value}")
        return value

    async def write(self, characteristic: CharacteristicDescriptor, data: bytes) -> bool:
        """Write raw bytes, with response when the characteristic supports it."""
        try:
            self._require(
                characteristic,
                CharacteristicProperty.WRITE | CharacteristicProperty.WRITE_WITHOUT_RESPONSE,
                "write",
            )
            if not data:
                raise WriteError("No data to write to device")
            await self._connection.write_characteristic(
                characteristic.handle,
                data,
                response=characteristic.supports(CharacteristicProperty.WRITE),
            )
        except MotorMonitorError as err:
            self._status.failure("Write failed", err)
            return False

        self._status.info("Successfully wrote value to device")
        return True

    async def write_text(self, characteristic: CharacteristicDescriptor, text: str) -> bool:
        """Write a string as UTF-8."""
        return await self.write(characteristic, text.encode("utf-8"))

    async def write_int32(self, characteristic: CharacteristicDescriptor, value: int) -> bool:
        """Write a signed 32-bit little-endian integer."""
        try:
            data = _INT32.pack(value)
        except struct.error:
            self._status.error("Data to write has to be an int32")
            return False
        return await self.write(characteristic, data)

    async def toggle_subscription(self, characteristic: CharacteristicDescriptor) -> bool:
        """Subscribe, or unsubscribe if this characteristic is already watched.

        A different watched characteristic is unsubscribed first.

        Returns:
            True if the characteristic is subscribed afterwards
        """
        slot = self._registry.explorer_slot
        if slot.holds(characteristic):
            await self._release()
            self._status.info("Unsubscribe succeeded")
            return False

        await self._release()
        try:
            await self._subscriber.subscribe(
                characteristic,
                self._make_callback(characteristic),
                owner="EXPLORER",
                registry=self._registry,
            )
        except MotorMonitorError as err:
            self._status.failure("Subscribe failed", err)
            return False

        slot.fill(characteristic)
        if self._on_subscribed is not None:
            self._on_subscribed()
        self._status.info("Subscribe succeeded")
        return True

    async def _release(self) -> None:
        characteristic = self._registry.explorer_slot.take()
        if characteristic is not None:
            await self._subscriber.unsubscribe(characteristic)

    def _make_callback(self, characteristic: CharacteristicDescriptor):
        def on_value(value: DecodedValue) -> None:
            self.latest_value = value.text
            stamp = value.timestamp.strftime("%H:%M:%S.%f")[:-3]
            self._status.info(
                f'Value of "{characteristic.display_name}" at {stamp}: {value.text}'
            )

        return on_value

    @staticmethod
    def _require(
            characteristic: CharacteristicDescriptor,
            prop: CharacteristicProperty,
            operation: str,
    ) -> None:
        if not characteristic.supports(prop):
            raise UnsupportedOperationError(
                f"Characteristic {characteristic.uuid} does not support {operation}"
            )
