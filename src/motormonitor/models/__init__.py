"""Data models for MotorMonitor sessions."""

from .characteristic import CharacteristicDescriptor, DecodedValue, PresentationFormat
from .enums import (
    MONITOR_ROLES,
    CccdValue,
    CharacteristicProperty,
    ErrorKind,
    PresentationFormatType,
    Role,
    SessionState,
    Severity,
)
from .handles import DeviceHandle, ServiceHandle
from .target import DeviceTarget

__all__ = [
    "CccdValue",
    "CharacteristicDescriptor",
    "CharacteristicProperty",
    "DecodedValue",
    "DeviceHandle",
    "DeviceTarget",
    "ErrorKind",
    "MONITOR_ROLES",
    "PresentationFormat",
    "PresentationFormatType",
    "Role",
    "ServiceHandle",
    "SessionState",
    "Severity",
]
