"""BLE transport layer."""

from .connection import BLEConnection, NotificationHandler, translate_error

__all__ = ["BLEConnection", "NotificationHandler", "translate_error"]
