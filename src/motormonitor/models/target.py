"""Connection target: radio address or platform device identifier."""

from __future__ import annotations

from dataclasses import dataclass

MAX_ADDRESS = 0xFFFFFFFFFFFF


@dataclass(frozen=True, slots=True)
class DeviceTarget:
    """Device to connect to.

    The device picker hands over either a 48-bit radio address (as an int)
    or a platform identifier string (MAC on Linux/Windows, CoreBluetooth
    UUID on macOS). Both resolve to the identifier string bleak expects.
    """

    identifier: str
    address: int | None = None

    @classmethod
    def from_address(cls, address: int) -> DeviceTarget:
        """Build target from a numeric radio address.

        Raises:
            ValueError: If address is not a 48-bit unsigned value
        """
        if not 0 <= address <= MAX_ADDRESS:
            raise ValueError(f"Bluetooth address out of range: 0x{address:X}")
        octets = address.to_bytes(6, byteorder="big")
        return cls(identifier=":".join(f"{b:02X}" for b in octets), address=address)

    @classmethod
    def from_identifier(cls, identifier: str) -> DeviceTarget:
        """Build target from a platform identifier string.

        Raises:
            ValueError: If identifier is empty
        """
        identifier = identifier.strip().strip('"')
        if not identifier:
            raise ValueError("Device identifier is empty")
        return cls(identifier=identifier)

    @classmethod
    def parse(cls, target: DeviceTarget | int | str) -> DeviceTarget:
        """Accept either parameterization of a connect target."""
        if isinstance(target, DeviceTarget):
            return target
        if isinstance(target, bool):
            raise ValueError(f"Device target must be an address or identifier, not {target!r}")
        if isinstance(target, int):
            return cls.from_address(target)
        return cls.from_identifier(target)

    def __str__(self) -> str:
        if self.address is not None:
            return f"{self.identifier} (0x{self.address:X})"
        return self.identifier
