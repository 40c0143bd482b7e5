"""MotorMonitor GATT protocol: UUIDs, role table and value decoding."""

from .decoder import EMPTY_DATA, decode_value, hex_dump, parse_heart_rate
from .profile import (
    MOTOR_MONITOR_PROFILE,
    MonitorProfile,
    placeholder_text,
    role_label,
)
from .uuids import (
    BATTERY_LEVEL_UUID,
    CCCD_UUID,
    HEART_RATE_MEASUREMENT_UUID,
    PRESENTATION_FORMAT_UUID,
    RESULT_UUIDS,
    RUNTIME_UUID,
    SERVICE_UUID,
    SPEED_UUID,
    TEMP_UUID,
    normalize_uuid,
)

__all__ = [
    "SERVICE_UUID",
    "SPEED_UUID",
    "TEMP_UUID",
    "RUNTIME_UUID",
    "CCCD_UUID",
    "PRESENTATION_FORMAT_UUID",
    "HEART_RATE_MEASUREMENT_UUID",
    "BATTERY_LEVEL_UUID",
    "RESULT_UUIDS",
    "normalize_uuid",
    "MonitorProfile",
    "MOTOR_MONITOR_PROFILE",
    "role_label",
    "placeholder_text",
    "EMPTY_DATA",
    "decode_value",
    "hex_dump",
    "parse_heart_rate",
]
