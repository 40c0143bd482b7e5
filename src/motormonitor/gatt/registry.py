"""Characteristic discovery, role classification and per-role slots."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..exceptions import CharacteristicDiscoveryError, MotorMonitorError
from ..models.characteristic import CharacteristicDescriptor, PresentationFormat
from ..models.enums import MONITOR_ROLES, CharacteristicProperty, Role
from ..protocol.uuids import PRESENTATION_FORMAT_UUID, normalize_uuid

if TYPE_CHECKING:
    from bleak.backends.characteristic import BleakGATTCharacteristic

    from ..models.handles import ServiceHandle
    from ..protocol.profile import MonitorProfile
    from ..transport import BLEConnection

_LOGGER = logging.getLogger(__name__)


class RoleSlot:
    """Holds the characteristic subscribed for one role, or nothing."""

    __slots__ = ("name", "_characteristic")

    def __init__(self, name: str):
        self.name = name
        self._characteristic: CharacteristicDescriptor | None = None

    @property
    def is_filled(self) -> bool:
        return self._characteristic is not None

    @property
    def characteristic(self) -> CharacteristicDescriptor:
        """The held characteristic.

        Raises:
            LookupError: If the slot is empty
        """
        if self._characteristic is None:
            raise LookupError(f"{self.name} slot is empty")
        return self._characteristic

    def holds(self, characteristic: CharacteristicDescriptor) -> bool:
        return (
            self._characteristic is not None
            and self._characteristic.handle == characteristic.handle
        )

    def fill(self, characteristic: CharacteristicDescriptor) -> None:
        self._characteristic = characteristic

    def take(self) -> CharacteristicDescriptor | None:
        """Empty the slot and return what it held."""
        characteristic, self._characteristic = self._characteristic, None
        return characteristic

    def __repr__(self) -> str:
        held = self._characteristic.uuid if self._characteristic else "empty"
        return f"RoleSlot({self.name}: {held})"


class CharacteristicRegistry:
    """Discovers characteristics and tracks which ones are subscribed.

    Keeps the result of the most recent discovery per service so that
    subscriptions can be checked against it, one slot per monitor role and
    a single explorer slot.
    """

    def __init__(self, connection: BLEConnection, profile: MonitorProfile):
        self._connection = connection
        self._profile = profile
        self._discovered: dict[str, list[CharacteristicDescriptor]] = {}
        self._slots: dict[Role, RoleSlot] = {role: RoleSlot(role.name) for role in MONITOR_ROLES}
        self.explorer_slot = RoleSlot("EXPLORER")

    def slot(self, role: Role) -> RoleSlot:
        """Slot for a monitor role.

        Raises:
            KeyError: For UNCLASSIFIED, which has no slot
        """
        return self._slots[role]

    @property
    def slots(self) -> dict[Role, RoleSlot]:
        return dict(self._slots)

    async def discover(self, service: ServiceHandle) -> list[CharacteristicDescriptor]:
        """Enumerate and classify the characteristics of a service.

        Characteristics come back in GATT handle order. Each is matched
        against the profile's role table by exact UUID; anything else is
        UNCLASSIFIED. Presentation format descriptors are read best-effort.

        Raises:
            CharacteristicDiscoveryError: If the service cannot be enumerated
        """
        if not service.is_valid:
            raise CharacteristicDiscoveryError(
                f"Service {service.uuid} belongs to a released device"
            )

        raw = self._connection.characteristics(service.gatt)
        _LOGGER.debug("Service %s has %d characteristic(s)", service.uuid, len(raw))

        discovered = [await self._describe(service, char) for char in raw]
        self._discovered[service.uuid] = discovered
        return list(discovered)

    async def _describe(
            self,
            service: ServiceHandle,
            char: BleakGATTCharacteristic,
    ) -> CharacteristicDescriptor:
        uuid = normalize_uuid(char.uuid)
        return CharacteristicDescriptor(
            uuid=uuid,
            handle=char.handle,
            service_uuid=service.uuid,
            properties=CharacteristicProperty.from_bleak(list(char.properties)),
            presentation_formats=await self._read_presentation_formats(char),
            role=self._profile.classify(uuid),
            description=char.description,
        )

    async def _read_presentation_formats(
            self,
            char: BleakGATTCharacteristic,
    ) -> tuple[PresentationFormat, ...]:
        formats = []
        for descriptor in char.descriptors:
            if normalize_uuid(descriptor.uuid) != PRESENTATION_FORMAT_UUID:
                continue
            try:
                raw = await self._connection.read_descriptor(descriptor.handle)
                formats.append(PresentationFormat.from_bytes(raw))
            except (MotorMonitorError, ValueError) as err:
                _LOGGER.debug(
                    "Ignoring presentation format of %s: %s", char.uuid, err
                )
        return tuple(formats)

    def discovered(self, service_uuid: str | None = None) -> list[CharacteristicDescriptor]:
        """Characteristics from the latest discovery (of one service, or all)."""
        if service_uuid is not None:
            return list(self._discovered.get(normalize_uuid(service_uuid), []))
        return [char for chars in self._discovered.values() for char in chars]

    def is_current(self, characteristic: CharacteristicDescriptor) -> bool:
        """Whether the characteristic came from the latest discovery of its service."""
        return any(
            char.handle == characteristic.handle
            for char in self._discovered.get(characteristic.service_uuid, [])
        )

    def has_subscriptions(self) -> bool:
        return self.explorer_slot.is_filled or any(s.is_filled for s in self._slots.values())

    def reset(self) -> None:
        """Forget all discoveries and empty every slot."""
        self._discovered.clear()
        for slot in self._slots.values():
            slot.take()
        self.explorer_slot.take()
