"""Characteristic value decoding for display."""

from __future__ import annotations

import struct

from ..models.characteristic import CharacteristicDescriptor
from ..models.enums import PresentationFormatType
from .uuids import BATTERY_LEVEL_UUID, HEART_RATE_MEASUREMENT_UUID, RESULT_UUIDS

EMPTY_DATA = "<empty data>"
INVALID_UTF8 = "(error: Invalid UTF-8 string)"

# Heart Rate Measurement flags: bit 0 set -> value is uint16
HEART_RATE_VALUE_FORMAT_UINT16 = 0x01


def hex_dump(data: bytes) -> str:
    """Uppercase hex without separators (b'\\x0a\\xff' -> '0AFF')."""
    return data.hex().upper()


def parse_heart_rate(data: bytes) -> int:
    """Extract the heart rate value from a Heart Rate Measurement payload.

    Format: [flags:1][value:1 or 2 (little-endian)][...]

    Raises:
        ValueError: If data is too short for the format selected by flags
    """
    if not data:
        raise ValueError("Heart rate measurement is empty")

    if data[0] & HEART_RATE_VALUE_FORMAT_UINT16:
        if len(data) < 3:
            raise ValueError(f"Heart rate measurement too short: {len(data)} bytes (need 3)")
        return struct.unpack_from("<H", data, 1)[0]

    if len(data) < 2:
        raise ValueError(f"Heart rate measurement too short: {len(data)} bytes (need 2)")
    return data[1]


def _decode_declared(data: bytes, format_type: int) -> str:
    if format_type == PresentationFormatType.UINT32 and len(data) >= 4:
        return str(struct.unpack_from("<I", data)[0])

    if format_type == PresentationFormatType.UTF8S:
        try:
            return data.decode("utf-8").strip()
        except UnicodeDecodeError:
            return INVALID_UTF8

    return f"Unsupported format: {hex_dump(data)}"


def decode_value(data: bytes, characteristic: CharacteristicDescriptor) -> str:
    """Convert a raw characteristic value to display text.

    Rules are tried in order and the first applicable one wins:
    1. Exactly one declared presentation format: UINT32 or UTF-8,
       anything else is reported as unsupported
    2. Empty payload
    3. Heart Rate Measurement
    4. Battery Level
    5. Result characteristics (signed int32)
    6. UTF-8 text, else hex dump

    Never raises; undecodable payloads degrade to a hex dump.

    Args:
        data: Raw value from a read or notification
        characteristic: Metadata of the characteristic that produced it

    Returns:
        Display string
    """
    data = bytes(data)

    formats = characteristic.presentation_formats
    if len(formats) == 1 and data:
        return _decode_declared(data, formats[0].format_type)

    if not data:
        return EMPTY_DATA

    uuid = characteristic.uuid.lower()

    if uuid == HEART_RATE_MEASUREMENT_UUID:
        try:
            return f"Heart Rate: {parse_heart_rate(data)}"
        except ValueError:
            return "Heart Rate: (unable to parse)"

    if uuid == BATTERY_LEVEL_UUID:
        return f"Battery Level: {data[0]}%"

    if uuid in RESULT_UUIDS:
        if len(data) < 4:
            return f"Unknown format: {hex_dump(data)}"
        return str(struct.unpack_from("<i", data)[0])

    try:
        return data.decode("utf-8").strip()
    except UnicodeDecodeError:
        return f"Unknown format: {hex_dump(data)}"
