"""Characteristic metadata models."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from datetime import datetime

from .enums import CharacteristicProperty, PresentationFormatType, Role

PRESENTATION_FORMAT_LENGTH = 7


@dataclass(frozen=True, slots=True)
class PresentationFormat:
    """Characteristic Presentation Format descriptor (0x2904).

    Format (7 bytes, little-endian):
    - [0]: Format type (see PresentationFormatType)
    - [1]: Exponent (signed int8)
    - [2-3]: Unit (Bluetooth SIG assigned number)
    - [4]: Namespace
    - [5-6]: Description
    """

    format_type: int
    exponent: int = 0
    unit: int = 0
    namespace: int = 0
    description: int = 0

    @classmethod
    def from_bytes(cls, data: bytes) -> PresentationFormat:
        """Parse a raw presentation format descriptor value.

        Raises:
            ValueError: If data is shorter than 7 bytes
        """
        if len(data) < PRESENTATION_FORMAT_LENGTH:
            raise ValueError(
                f"Presentation format too short: {len(data)} bytes "
                f"(need {PRESENTATION_FORMAT_LENGTH})"
            )
        format_type, exponent, unit, namespace, description = struct.unpack(
            "<BbHBH", data[:PRESENTATION_FORMAT_LENGTH]
        )
        return cls(
            format_type=format_type,
            exponent=exponent,
            unit=unit,
            namespace=namespace,
            description=description,
        )

    @property
    def known_type(self) -> PresentationFormatType | None:
        """Format type as enum, or None if not a known assigned number."""
        try:
            return PresentationFormatType(self.format_type)
        except ValueError:
            return None


@dataclass(frozen=True)
class CharacteristicDescriptor:
    """Discovered characteristic with its assigned role.

    Attributes:
        uuid: Normalized 128-bit UUID (lowercase)
        handle: GATT attribute handle, unique per connection
        service_uuid: UUID of the owning service
        properties: Supported operations
        presentation_formats: Parsed 0x2904 descriptors, in GATT order
        role: Role from the profile's role table (UNCLASSIFIED if none)
        description: Human-readable name reported by the platform
    """

    uuid: str
    handle: int
    service_uuid: str = ""
    properties: CharacteristicProperty = CharacteristicProperty.NONE
    presentation_formats: tuple[PresentationFormat, ...] = ()
    role: Role = Role.UNCLASSIFIED
    description: str = ""

    def supports(self, prop: CharacteristicProperty) -> bool:
        """Check whether any of the given operation flags are supported."""
        return bool(self.properties & prop)

    @property
    def can_subscribe(self) -> bool:
        return self.supports(CharacteristicProperty.NOTIFY | CharacteristicProperty.INDICATE)

    @property
    def display_name(self) -> str:
        """Description if the platform knows one, else the UUID."""
        if self.description and self.description != "Unknown":
            return self.description
        return self.uuid


@dataclass(frozen=True, slots=True)
class DecodedValue:
    """One decoded notification or read result, kept only for display."""

    source: Role | str
    text: str
    timestamp: datetime = field(default_factory=datetime.now)
