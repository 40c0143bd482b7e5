"""GATT UUIDs used by the MotorMonitor protocol."""

from __future__ import annotations

from typing import Final

from bleak.uuids import normalize_uuid_16, normalize_uuid_str

# MotorMonitor custom service and characteristics (ESP32 firmware)
SERVICE_UUID: Final = "12345678-1234-1234-1234-1234567890ab"
SPEED_UUID: Final = "12345678-1234-1234-1234-1234567890ac"
TEMP_UUID: Final = "12345678-1234-1234-1234-1234567890ad"
RUNTIME_UUID: Final = "12345678-1234-1234-1234-1234567890ae"

# Standard descriptors
CCCD_UUID: Final = normalize_uuid_16(0x2902)
PRESENTATION_FORMAT_UUID: Final = normalize_uuid_16(0x2904)

# Standard characteristics with dedicated decoding
HEART_RATE_MEASUREMENT_UUID: Final = normalize_uuid_16(0x2A37)
BATTERY_LEVEL_UUID: Final = normalize_uuid_16(0x2A19)

# Calculator sample service result characteristics (signed int32 payloads)
RESULT_UUID: Final = "caec2ebc-e1d9-11e6-bf01-fe55135034f4"
BACKGROUND_RESULT_UUID: Final = "caec2ebc-e1d9-11e6-bf01-fe55135034f5"
RESULT_UUIDS: Final[frozenset[str]] = frozenset({RESULT_UUID, BACKGROUND_RESULT_UUID})


def normalize_uuid(uuid: str) -> str:
    """Normalize a 16-, 32- or 128-bit UUID string to lowercase 128-bit form.

    Raises:
        ValueError: If uuid is not a valid UUID string
    """
    return normalize_uuid_str(uuid.strip().strip("{}"))
