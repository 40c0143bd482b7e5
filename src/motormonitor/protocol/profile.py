"""Monitor profile: target service and characteristic role table."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from ..models.enums import Role
from .uuids import RUNTIME_UUID, SERVICE_UUID, SPEED_UUID, TEMP_UUID, normalize_uuid

ROLE_LABELS: Mapping[Role, str] = MappingProxyType({
    Role.SPEED: "SPEED",
    Role.TEMP: "TEMP",
    Role.RUNTIME: "RUNTIME",
})

PLACEHOLDER = "-"


@dataclass(frozen=True)
class MonitorProfile:
    """Service UUID and the static UUID-to-role table for one peripheral type.

    Args:
        service_uuid: Service holding the monitored characteristics
        roles: Characteristic UUID -> Role (UUIDs are normalized on creation)
    """

    service_uuid: str
    roles: Mapping[str, Role] = field(default_factory=dict)

    def __post_init__(self) -> None:
        normalized = {normalize_uuid(uuid): role for uuid, role in self.roles.items()}
        if Role.UNCLASSIFIED in normalized.values():
            raise ValueError("UNCLASSIFIED cannot be assigned in a role table")
        object.__setattr__(self, "service_uuid", normalize_uuid(self.service_uuid))
        object.__setattr__(self, "roles", MappingProxyType(normalized))

    def classify(self, uuid: str) -> Role:
        """Exact UUID match against the role table."""
        return self.roles.get(normalize_uuid(uuid), Role.UNCLASSIFIED)


def role_label(role: Role) -> str:
    return ROLE_LABELS.get(role, role.name)


def placeholder_text(role: Role) -> str:
    """Display text for a role with no data, e.g. 'SPEED: -'."""
    return f"{role_label(role)}: {PLACEHOLDER}"


MOTOR_MONITOR_PROFILE = MonitorProfile(
    service_uuid=SERVICE_UUID,
    roles={
        SPEED_UUID: Role.SPEED,
        TEMP_UUID: Role.TEMP,
        RUNTIME_UUID: Role.RUNTIME,
    },
)
