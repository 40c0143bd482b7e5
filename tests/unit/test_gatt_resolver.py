"""Test service lookup and fallback enumeration."""

from __future__ import annotations

import pytest
from fakes import FakeConnection, FakeService, monitor_service

from motormonitor.exceptions import BLEConnectionError, ServiceNotFoundError
from motormonitor.gatt.resolver import ServiceResolver
from motormonitor.models.handles import DeviceHandle
from motormonitor.protocol.uuids import SERVICE_UUID

GENERIC_ACCESS = FakeService("00001800-0000-1000-8000-00805f9b34fb", 0x0001, description="Generic Access")
BATTERY_SERVICE = FakeService("0000180f-0000-1000-8000-00805f9b34fb", 0x0020, description="Battery Service")


def _connected(services: list[FakeService]) -> FakeConnection:
    connection = FakeConnection(services)
    connection.connected = True
    return connection


def test_resolve_finds_service() -> None:
    device = DeviceHandle("AA:BB:CC:DD:EE:FF")
    resolver = ServiceResolver(_connected([GENERIC_ACCESS, monitor_service()]))

    service = resolver.resolve(device, SERVICE_UUID.upper())

    assert service.uuid == SERVICE_UUID
    assert service.handle == 0x0010
    assert service.device is device
    assert not resolver.fallback_done


def test_fallback_runs_once_per_attempt() -> None:
    device = DeviceHandle("AA:BB:CC:DD:EE:FF")
    fallbacks = []
    resolver = ServiceResolver(
        _connected([BATTERY_SERVICE, GENERIC_ACCESS]), on_fallback=fallbacks.append
    )

    with pytest.raises(ServiceNotFoundError) as first:
        resolver.resolve(device, SERVICE_UUID)
    with pytest.raises(ServiceNotFoundError) as second:
        resolver.resolve(device, SERVICE_UUID)

    assert len(fallbacks) == 1
    assert [s.handle for s in fallbacks[0]] == [0x0001, 0x0020]
    assert [s.display_name for s in first.value.services] == [
        "Generic Access (00001800-0000-1000-8000-00805f9b34fb)",
        "Battery Service (0000180f-0000-1000-8000-00805f9b34fb)",
    ]
    assert second.value.services == []
    assert second.value.service_uuid == SERVICE_UUID

    resolver.begin_attempt()
    with pytest.raises(ServiceNotFoundError):
        resolver.resolve(device, SERVICE_UUID)
    assert len(fallbacks) == 2


def test_resolve_rejects_released_device() -> None:
    device = DeviceHandle("AA:BB:CC:DD:EE:FF")
    device.invalidate()
    resolver = ServiceResolver(_connected([monitor_service()]))

    with pytest.raises(BLEConnectionError, match="released"):
        resolver.resolve(device, SERVICE_UUID)


def test_resolve_requires_connection() -> None:
    resolver = ServiceResolver(FakeConnection([monitor_service()]))

    with pytest.raises(BLEConnectionError):
        resolver.resolve(DeviceHandle("AA:BB:CC:DD:EE:FF"), SERVICE_UUID)
