from __future__ import annotations

from enum import Enum, IntEnum, IntFlag
from typing import Final


class Role(Enum):
    """Application meaning assigned to a characteristic UUID."""
    SPEED = "speed"
    TEMP = "temp"
    RUNTIME = "runtime"
    UNCLASSIFIED = "unclassified"


# Fixed processing order for the monitor roles
MONITOR_ROLES: Final[tuple[Role, ...]] = (Role.SPEED, Role.TEMP, Role.RUNTIME)


class CharacteristicProperty(IntFlag):
    """Supported GATT operations of a characteristic.

    Values follow the characteristic properties bit field of the
    characteristic declaration.
    """
    NONE = 0
    BROADCAST = 0x01
    READ = 0x02
    WRITE_WITHOUT_RESPONSE = 0x04
    WRITE = 0x08
    NOTIFY = 0x10
    INDICATE = 0x20
    AUTHENTICATED_SIGNED_WRITES = 0x40
    EXTENDED_PROPERTIES = 0x80

    @classmethod
    def from_bleak(cls, properties: list[str]) -> CharacteristicProperty:
        """Convert bleak's property name list to flags (unknown names ignored)."""
        flags = cls.NONE
        for name in properties:
            flags |= _BLEAK_PROPERTY_NAMES.get(name, cls.NONE)
        return flags


_BLEAK_PROPERTY_NAMES: Final[dict[str, CharacteristicProperty]] = {
    "broadcast": CharacteristicProperty.BROADCAST,
    "read": CharacteristicProperty.READ,
    "write-without-response": CharacteristicProperty.WRITE_WITHOUT_RESPONSE,
    "write": CharacteristicProperty.WRITE,
    "notify": CharacteristicProperty.NOTIFY,
    "indicate": CharacteristicProperty.INDICATE,
    "authenticated-signed-writes": CharacteristicProperty.AUTHENTICATED_SIGNED_WRITES,
    "extended-properties": CharacteristicProperty.EXTENDED_PROPERTIES,
}


class CccdValue(IntEnum):
    """Client characteristic configuration descriptor values."""
    NONE = 0x0000
    NOTIFY = 0x0001
    INDICATE = 0x0002


class PresentationFormatType(IntEnum):
    """GATT presentation format types (Assigned Numbers, subset)."""
    BOOLEAN = 0x01
    UINT8 = 0x04
    UINT16 = 0x06
    UINT32 = 0x08
    UINT64 = 0x0A
    SINT8 = 0x0C
    SINT16 = 0x0E
    SINT32 = 0x10
    SINT64 = 0x12
    FLOAT32 = 0x14
    FLOAT64 = 0x15
    UTF8S = 0x19
    UTF16S = 0x1A
    STRUCT = 0x1B


class Severity(Enum):
    """Status message severity."""
    INFO = "info"
    ERROR = "error"


class SessionState(Enum):
    """Session-level connection state."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    SUBSCRIBING = "subscribing"
    MONITORING = "monitoring"


class ErrorKind(Enum):
    """Failure categories reported to the status sink."""
    DEVICE_NOT_FOUND = "device_not_found"
    SERVICE_NOT_FOUND = "service_not_found"
    ACCESS_DENIED = "access_denied"
    CHARACTERISTIC_DISCOVERY_FAILED = "characteristic_discovery_failed"
    DESCRIPTOR_WRITE_FAILED = "descriptor_write_failed"
    READ_FAILED = "read_failed"
    WRITE_FAILED = "write_failed"
    UNSUPPORTED_OPERATION = "unsupported_operation"
    UNEXPECTED_DISCONNECT = "unexpected_disconnect"
    TIMEOUT = "timeout"
    CONNECTION_FAILED = "connection_failed"
