"""Test role table and display labels."""

import pytest

from motormonitor.models.enums import Role
from motormonitor.protocol.profile import (
    MOTOR_MONITOR_PROFILE,
    MonitorProfile,
    placeholder_text,
    role_label,
)
from motormonitor.protocol.uuids import RUNTIME_UUID, SPEED_UUID, TEMP_UUID, normalize_uuid


class TestClassify:
    @pytest.mark.parametrize(
        "uuid,role",
        [
            (SPEED_UUID, Role.SPEED),
            (TEMP_UUID, Role.TEMP),
            (RUNTIME_UUID, Role.RUNTIME),
        ],
    )
    def test_monitor_roles(self, uuid, role):
        assert MOTOR_MONITOR_PROFILE.classify(uuid) is role

    def test_case_and_braces_normalized(self):
        assert MOTOR_MONITOR_PROFILE.classify("{" + SPEED_UUID.upper() + "}") is Role.SPEED

    def test_unknown_uuid(self):
        assert MOTOR_MONITOR_PROFILE.classify("2a19") is Role.UNCLASSIFIED

    def test_no_prefix_matching(self):
        """Only exact matches count."""
        assert MOTOR_MONITOR_PROFILE.classify(SPEED_UUID[:-1] + "f") is Role.UNCLASSIFIED


class TestMonitorProfile:
    def test_uuids_normalized(self):
        profile = MonitorProfile(
            service_uuid="180D",
            roles={"2A37": Role.SPEED},
        )
        assert profile.service_uuid == "0000180d-0000-1000-8000-00805f9b34fb"
        assert profile.classify("2a37") is Role.SPEED

    def test_unclassified_rejected(self):
        with pytest.raises(ValueError, match="UNCLASSIFIED"):
            MonitorProfile(service_uuid="180d", roles={"2a37": Role.UNCLASSIFIED})

    def test_roles_read_only(self):
        with pytest.raises(TypeError):
            MOTOR_MONITOR_PROFILE.roles["2a19"] = Role.SPEED


def test_labels():
    assert role_label(Role.SPEED) == "SPEED"
    assert placeholder_text(Role.TEMP) == "TEMP: -"
    assert placeholder_text(Role.RUNTIME) == "RUNTIME: -"


def test_normalize_uuid_16bit():
    assert normalize_uuid("2902") == "00002902-0000-1000-8000-00805f9b34fb"
