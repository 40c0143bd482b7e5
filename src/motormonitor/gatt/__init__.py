"""GATT session components."""

from .explorer import GattExplorer
from .registry import CharacteristicRegistry, RoleSlot
from .resolver import ServiceResolver
from .subscriber import (
    NotificationSubscriber,
    SubscribeOutcome,
    Subscription,
    select_cccd_value,
)

__all__ = [
    "CharacteristicRegistry",
    "GattExplorer",
    "NotificationSubscriber",
    "RoleSlot",
    "ServiceResolver",
    "SubscribeOutcome",
    "Subscription",
    "select_cccd_value",
]
