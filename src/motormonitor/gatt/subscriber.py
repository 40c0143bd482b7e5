"""Notification subscriptions and event routing."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from ..exceptions import MotorMonitorError, UnsupportedOperationError
from ..models.characteristic import CharacteristicDescriptor, DecodedValue
from ..models.enums import MONITOR_ROLES, CccdValue, CharacteristicProperty, Role
from ..protocol.decoder import decode_value
from ..protocol.profile import placeholder_text

if TYPE_CHECKING:
    from bleak.backends.characteristic import BleakGATTCharacteristic

    from ..status import DisplaySink
    from ..transport import BLEConnection
    from .registry import CharacteristicRegistry, RoleSlot

_LOGGER = logging.getLogger(__name__)

ValueCallback = Callable[[DecodedValue], None]


@dataclass(frozen=True)
class Subscription:
    """Registered notification owner for one characteristic."""

    characteristic: CharacteristicDescriptor
    callback: ValueCallback
    cccd: CccdValue
    owner: str


@dataclass(frozen=True)
class SubscribeOutcome:
    """Result of subscribing one role."""

    role: Role
    characteristic: CharacteristicDescriptor
    error: MotorMonitorError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def select_cccd_value(characteristic: CharacteristicDescriptor) -> CccdValue:
    """Notify when supported, else indicate.

    Raises:
        UnsupportedOperationError: If the characteristic supports neither
    """
    if characteristic.supports(CharacteristicProperty.NOTIFY):
        return CccdValue.NOTIFY
    if characteristic.supports(CharacteristicProperty.INDICATE):
        return CccdValue.INDICATE
    raise UnsupportedOperationError(
        f"Characteristic {characteristic.uuid} supports neither notify nor indicate"
    )


class NotificationSubscriber:
    """Enables and disables streaming and routes notification events.

    Every subscription is entered in a registration table keyed by
    characteristic handle. An entry is added before the CCCD write that
    enables streaming, and removed before the CCCD write that disables it,
    so an event that races an unsubscribe finds no owner and is dropped.

    Events are only delivered while the subscriber is resumed, which the
    manager does on entering MONITORING. Events arriving while later roles
    are still being subscribed are therefore dropped, even though their
    registration already exists; the next notification carries the value.
    """

    def __init__(self, connection: BLEConnection, display: DisplaySink | None = None):
        self._connection = connection
        self._display = display
        self._table: dict[int, Subscription] = {}
        self._delivering = False

    @property
    def subscriptions(self) -> list[Subscription]:
        return list(self._table.values())

    def is_subscribed(self, characteristic: CharacteristicDescriptor) -> bool:
        return characteristic.handle in self._table

    def resume(self) -> None:
        """Start delivering events to their owners."""
        self._delivering = True

    def suspend(self) -> None:
        """Drop incoming events until resumed."""
        self._delivering = False

    async def subscribe(
            self,
            characteristic: CharacteristicDescriptor,
            callback: ValueCallback,
            owner: str,
            registry: CharacteristicRegistry | None = None,
    ) -> Subscription:
        """Register callback, then enable notify/indicate on the device.

        Raises:
            UnsupportedOperationError: If the characteristic cannot stream, is
                not part of the latest discovery, or belongs to another owner
            DescriptorWriteError: If the enabling CCCD write fails
            AccessDeniedError: If the peripheral refuses the write
            BLETimeoutError: If the write times out
        """
        existing = self._table.get(characteristic.handle)
        if existing is not None:
            if existing.owner != owner:
                raise UnsupportedOperationError(
                    f"Characteristic {characteristic.uuid} is already subscribed by {existing.owner}"
                )
            return existing

        if registry is not None and not registry.is_current(characteristic):
            raise UnsupportedOperationError(
                f"Characteristic {characteristic.uuid} is not part of the current discovery"
            )

        cccd = select_cccd_value(characteristic)
        subscription = Subscription(characteristic, callback, cccd, owner)

        # Register before enabling so the first event has an owner
        self._table[characteristic.handle] = subscription
        try:
            await self._connection.start_notify(characteristic.handle, self._dispatch)
        except MotorMonitorError:
            self._table.pop(characteristic.handle, None)
            raise

        _LOGGER.debug(
            "Subscribed %s to %s (%s)", owner, characteristic.uuid, cccd.name
        )
        return subscription

    async def unsubscribe(self, characteristic: CharacteristicDescriptor) -> bool:
        """Deregister callback, then disable streaming on the device.

        The local registration is removed even if the CCCD write fails.

        Returns:
            True if the disabling CCCD write succeeded
        """
        if self._table.pop(characteristic.handle, None) is None:
            _LOGGER.debug("%s was not subscribed", characteristic.uuid)

        try:
            await self._connection.stop_notify(characteristic.handle)
        except MotorMonitorError as err:
            _LOGGER.warning(
                "Unable to write CCCD for characteristic %s: %s", characteristic.uuid, err
            )
            return False
        return True

    async def subscribe_all(
            self,
            registry: CharacteristicRegistry,
            characteristics: list[CharacteristicDescriptor],
            on_value: Callable[[Role, DecodedValue], None],
    ) -> dict[Role, SubscribeOutcome]:
        """Subscribe the first discovered characteristic of each monitor role.

        A failure for one role never prevents the remaining roles; the
        failed role's slot stays empty.
        """
        outcomes: dict[Role, SubscribeOutcome] = {}

        for characteristic in characteristics:
            role = characteristic.role
            if role is Role.UNCLASSIFIED:
                _LOGGER.debug("Skipping characteristic %s", characteristic.uuid)
                continue
            if role in outcomes:
                _LOGGER.debug(
                    "Ignoring duplicate %s characteristic %s", role.name, characteristic.uuid
                )
                continue

            try:
                await self.subscribe(
                    characteristic,
                    _bind_role(on_value, role),
                    owner=role.name,
                    registry=registry,
                )
            except MotorMonitorError as err:
                _LOGGER.warning("Failed to subscribe to %s: %s", role.name, err)
                outcomes[role] = SubscribeOutcome(role, characteristic, err)
                continue

            registry.slot(role).fill(characteristic)
            outcomes[role] = SubscribeOutcome(role, characteristic)

        return outcomes

    async def unsubscribe_all(self, registry: CharacteristicRegistry) -> None:
        """Unsubscribe every role slot, then the explorer slot.

        Resets each display field to its placeholder. Safe to call repeatedly.
        """
        for role in MONITOR_ROLES:
            await self._release_slot(registry.slot(role))
            self._show(role, placeholder_text(role))

        await self._release_slot(registry.explorer_slot)

    async def _release_slot(self, slot: RoleSlot) -> None:
        characteristic = slot.take()
        if characteristic is not None:
            await self.unsubscribe(characteristic)

    def drop_all(self, registry: CharacteristicRegistry) -> None:
        """Forget every registration without touching the radio.

        Used when the link is already gone.
        """
        self._delivering = False
        self._table.clear()
        for role in MONITOR_ROLES:
            registry.slot(role).take()
            self._show(role, placeholder_text(role))
        registry.explorer_slot.take()

    def _show(self, role: Role, text: str) -> None:
        if self._display is not None:
            self._display.show(role, text)

    def _dispatch(self, sender: BleakGATTCharacteristic, data: bytearray) -> None:
        subscription = self._table.get(sender.handle)
        if subscription is None:
            _LOGGER.debug("Dropping event from %s: no owner", sender.uuid)
            return
        if not self._delivering:
            _LOGGER.debug("Dropping event from %s: not monitoring", sender.uuid)
            return

        characteristic = subscription.characteristic
        source = characteristic.role if characteristic.role is not Role.UNCLASSIFIED else characteristic.uuid
        value = DecodedValue(source=source, text=decode_value(bytes(data), characteristic))
        subscription.callback(value)


def _bind_role(
        on_value: Callable[[Role, DecodedValue], None],
        role: Role,
) -> ValueCallback:
    def callback(value: DecodedValue) -> None:
        on_value(role, value)

    return callback
