"""MotorMonitor BLE GATT client.

  Async client for MotorMonitor peripherals: connects, subscribes to the
  speed, temperature and runtime characteristics, and decodes their values.
  """

from .exceptions import (
    AccessDeniedError,
    BLEConnectionError,
    BLETimeoutError,
    CharacteristicDiscoveryError,
    DescriptorWriteError,
    DeviceNotFoundError,
    MotorMonitorError,
    ReadError,
    ServiceNotFoundError,
    UnsupportedOperationError,
    WriteError,
)
from .gatt import (
    CharacteristicRegistry,
    GattExplorer,
    NotificationSubscriber,
    RoleSlot,
    ServiceResolver,
    Subscription,
)
from .manager import ConnectionManager
from .models import (
    MONITOR_ROLES,
    CccdValue,
    CharacteristicDescriptor,
    CharacteristicProperty,
    DecodedValue,
    DeviceHandle,
    DeviceTarget,
    ErrorKind,
    PresentationFormat,
    PresentationFormatType,
    Role,
    ServiceHandle,
    SessionState,
    Severity,
)
from .protocol import (
    MOTOR_MONITOR_PROFILE,
    SERVICE_UUID,
    MonitorProfile,
    decode_value,
)
from .status import DisplayFields, DisplaySink, StatusReporter, StatusSink
from .transport import BLEConnection

__version__ = "0.1.0"

__all__ = [
    # Main API
    "ConnectionManager",
    "GattExplorer",
    "decode_value",
    # Exceptions
    "MotorMonitorError",
    "BLEConnectionError",
    "BLETimeoutError",
    "DeviceNotFoundError",
    "ServiceNotFoundError",
    "AccessDeniedError",
    "CharacteristicDiscoveryError",
    "DescriptorWriteError",
    "ReadError",
    "WriteError",
    "UnsupportedOperationError",
    # Models
    "CharacteristicDescriptor",
    "PresentationFormat",
    "DecodedValue",
    "DeviceHandle",
    "ServiceHandle",
    "DeviceTarget",
    # Enums
    "Role",
    "MONITOR_ROLES",
    "CharacteristicProperty",
    "CccdValue",
    "PresentationFormatType",
    "ErrorKind",
    "SessionState",
    "Severity",
    # Profile
    "MonitorProfile",
    "MOTOR_MONITOR_PROFILE",
    "SERVICE_UUID",
    # Status
    "StatusReporter",
    "StatusSink",
    "DisplaySink",
    "DisplayFields",
    # Components
    "BLEConnection",
    "CharacteristicRegistry",
    "NotificationSubscriber",
    "ServiceResolver",
    "Subscription",
    "RoleSlot",
]
