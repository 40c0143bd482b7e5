"""Test the session lifecycle of ConnectionManager."""

from __future__ import annotations

import pytest
from fakes import FakeConnection, FakeService, missing_device, monitor_service

from motormonitor import ConnectionManager
from motormonitor.exceptions import AccessDeniedError, DeviceNotFoundError
from motormonitor.models.enums import Role, SessionState, Severity
from motormonitor.status import DisplayFields

BATTERY_SERVICE = FakeService("0000180f-0000-1000-8000-00805f9b34fb", 0x0020)


def _manager(connection: FakeConnection, **kwargs) -> tuple[ConnectionManager, list]:
    messages: list[tuple[str, Severity]] = []
    manager = ConnectionManager(
        status_sink=lambda ts, msg, sev: messages.append((msg, sev)),
        connection_factory=connection.factory,
        **kwargs,
    )
    return manager, messages


def _errors(messages) -> list[str]:
    return [msg for msg, sev in messages if sev is Severity.ERROR]


@pytest.mark.asyncio
async def test_start_subscribes_all_roles() -> None:
    """Service found with all three role characteristics."""
    connection = FakeConnection([monitor_service()])
    manager, messages = _manager(connection, timeout=5.0)

    assert await manager.start("AA:BB:CC:DD:EE:FF")

    assert manager.state is SessionState.MONITORING
    assert len(manager.subscriptions) == 3
    assert messages[-1] == ("Connected and subscribed.", Severity.INFO)
    assert ("Connected to Motor", Severity.INFO) in messages
    assert ("Found 3 characteristic(s)", Severity.INFO) in messages
    assert _errors(messages) == []
    assert connection.identifier == "AA:BB:CC:DD:EE:FF"
    assert connection.options["timeout"] == 5.0
    assert "use_services_cache" not in connection.options


@pytest.mark.asyncio
async def test_start_accepts_numeric_address() -> None:
    connection = FakeConnection([monitor_service()])
    manager, _ = _manager(connection)

    assert await manager.start(0xAABBCCDDEEFF)
    assert connection.identifier == "AA:BB:CC:DD:EE:FF"


@pytest.mark.asyncio
async def test_notifications_update_display() -> None:
    service = monitor_service()
    connection = FakeConnection([service])
    display = DisplayFields()
    manager, _ = _manager(connection, display=display)
    await manager.start("AA:BB:CC:DD:EE:FF")

    connection.emit(service.characteristics[0], b"1234")
    connection.emit(service.characteristics[1], b"25.5")

    assert display.text(Role.SPEED) == "SPEED: 1234"
    assert display.text(Role.TEMP) == "TEMP: 25.5"
    assert display.text(Role.RUNTIME) == "RUNTIME: -"


@pytest.mark.asyncio
async def test_start_without_matching_characteristics() -> None:
    """Zero matching characteristics: no subscriptions, no crash."""
    empty = FakeService("12345678-1234-1234-1234-1234567890ab", 0x0010)
    connection = FakeConnection([empty])
    display = DisplayFields()
    manager, messages = _manager(connection, display=display)

    assert await manager.start("AA:BB:CC:DD:EE:FF")

    assert manager.subscriptions == []
    assert ("Found 0 characteristic(s)", Severity.INFO) in messages
    assert display.snapshot() == {
        Role.SPEED: "SPEED: -",
        Role.TEMP: "TEMP: -",
        Role.RUNTIME: "RUNTIME: -",
    }


@pytest.mark.asyncio
async def test_start_reports_partial_subscription_failure() -> None:
    connection = FakeConnection([monitor_service()])
    connection.fail_start_notify.add(0x0015)
    manager, messages = _manager(connection)

    assert await manager.start("AA:BB:CC:DD:EE:FF")

    assert ("Subscribed to SPEED", Severity.INFO) in messages
    assert ("Subscribed to RUNTIME", Severity.INFO) in messages
    errors = _errors(messages)
    assert len(errors) == 1
    assert errors[0].startswith("Failed to subscribe to TEMP")
    assert not manager.registry.slot(Role.TEMP).is_filled


@pytest.mark.asyncio
async def test_missing_service_falls_back_to_explorer() -> None:
    connection = FakeConnection([BATTERY_SERVICE])
    manager, messages = _manager(connection)

    assert not await manager.start("AA:BB:CC:DD:EE:FF")

    assert manager.state is SessionState.CONNECTED
    assert [s.uuid for s in manager.explorer.services] == [BATTERY_SERVICE.uuid]
    assert ("Found 1 services", Severity.INFO) in messages
    assert "MotorMonitor service not found. Falling back to manual mode." in _errors(messages)
    assert manager.explore() is manager.explorer


@pytest.mark.asyncio
async def test_characteristic_discovery_failure_keeps_connection() -> None:
    """Subscription is aborted but the session stays usable for the explorer."""
    connection = FakeConnection([monitor_service()])
    connection.fail_characteristics = True
    manager, messages = _manager(connection)

    assert not await manager.start("AA:BB:CC:DD:EE:FF")

    assert manager.state is SessionState.CONNECTED
    assert manager.subscriptions == []
    assert manager.device.is_valid
    assert manager.service is not None
    errors = _errors(messages)
    assert len(errors) == 1
    assert errors[0].startswith("Error accessing characteristics")
    assert connection.notify_calls("start_notify") == []
    assert ("disconnect",) not in connection.calls


@pytest.mark.asyncio
async def test_service_resolution_failure_cleans_up() -> None:
    """A link failure while resolving is fatal and releases every handle."""
    connection = FakeConnection([monitor_service()])
    connection.fail_services = True
    manager, messages = _manager(connection)

    assert not await manager.start("AA:BB:CC:DD:EE:FF")

    assert manager.state is SessionState.DISCONNECTED
    assert manager.device is None
    assert manager.service is None
    assert manager.explorer is None
    assert _errors(messages)[0].startswith("Error accessing services")
    assert connection.calls[-1] == ("disconnect",)

    calls_before = len(connection.calls)
    messages.clear()
    await manager.disconnect()

    assert messages == []
    assert len(connection.calls) == calls_before


@pytest.mark.asyncio
async def test_failed_connect_leaves_no_handles() -> None:
    connection = FakeConnection([monitor_service()])
    connection.connect_error = missing_device()
    manager, messages = _manager(connection)

    assert not await manager.start("AA:BB:CC:DD:EE:FF")

    assert manager.state is SessionState.DISCONNECTED
    assert manager.device is None
    assert manager.service is None
    assert manager.explorer is None
    assert _errors(messages)[0].startswith("Unable to find device")

    calls_before = len(connection.calls)
    messages.clear()
    await manager.disconnect()

    assert messages == []
    assert len(connection.calls) == calls_before


@pytest.mark.asyncio
async def test_connect_raises_for_callers_of_the_low_level_api() -> None:
    connection = FakeConnection()
    connection.connect_error = AccessDeniedError("Failed to connect: access denied")
    manager, _ = _manager(connection)

    with pytest.raises(AccessDeniedError):
        await manager.connect("AA:BB:CC:DD:EE:FF")
    with pytest.raises(DeviceNotFoundError, match="Invalid device identifier"):
        await manager.connect("   ")
    with pytest.raises(DeviceNotFoundError, match="Invalid device identifier"):
        await manager.connect(True)
    assert manager.device is None


@pytest.mark.asyncio
async def test_connect_releases_previous_session() -> None:
    connection = FakeConnection([monitor_service()])
    manager, _ = _manager(connection)
    await manager.start("AA:BB:CC:DD:EE:FF")
    old_device = manager.device

    await manager.connect("AA:BB:CC:DD:EE:FF")

    assert not old_device.is_valid
    assert manager.device is not old_device
    assert manager.subscriptions == []
    assert connection.notify_calls("stop_notify") == [0x0012, 0x0015, 0x0018]


@pytest.mark.asyncio
async def test_disconnect_unsubscribes_before_releasing() -> None:
    connection = FakeConnection([monitor_service()])
    manager, messages = _manager(connection)
    await manager.start("AA:BB:CC:DD:EE:FF")
    device = manager.device

    await manager.disconnect()
    await manager.disconnect()

    names = [call[0] for call in connection.calls]
    assert names[-4:] == ["stop_notify", "stop_notify", "stop_notify", "disconnect"]
    assert not device.is_valid
    assert manager.state is SessionState.DISCONNECTED
    assert [msg for msg, _ in messages].count("Disconnected") == 1


@pytest.mark.asyncio
async def test_unsubscribe_all_twice() -> None:
    connection = FakeConnection([monitor_service()])
    manager, messages = _manager(connection)
    await manager.start("AA:BB:CC:DD:EE:FF")

    await manager.unsubscribe_all()
    await manager.unsubscribe_all()

    assert manager.subscriptions == []
    assert not manager.registry.has_subscriptions()
    assert manager.state is SessionState.CONNECTED
    assert messages[-1] == ("Unsubscribed from all characteristics", Severity.INFO)
    assert _errors(messages) == []


@pytest.mark.asyncio
async def test_unexpected_disconnect() -> None:
    service = monitor_service()
    connection = FakeConnection([service])
    display = DisplayFields()
    manager, messages = _manager(connection, display=display)
    await manager.start("AA:BB:CC:DD:EE:FF")
    connection.emit(service.characteristics[0], b"1234")
    device = manager.device

    connection.drop_link()

    assert manager.state is SessionState.DISCONNECTED
    assert manager.device is None
    assert not device.is_valid
    assert display.text(Role.SPEED) == "SPEED: -"
    assert messages[-1] == ("Device disconnected", Severity.INFO)
    assert connection.notify_calls("stop_notify") == []

    # Late event after the link dropped goes nowhere
    connection.emit(service.characteristics[0], b"9999")
    assert display.text(Role.SPEED) == "SPEED: -"

    await manager.disconnect()
    assert messages[-1] == ("Device disconnected", Severity.INFO)


@pytest.mark.asyncio
async def test_read_roles() -> None:
    connection = FakeConnection([monitor_service()])
    display = DisplayFields()
    manager, messages = _manager(connection, display=display)
    await manager.start("AA:BB:CC:DD:EE:FF")
    connection.values[0x0012] = b"1200"
    connection.values[0x0018] = b"3600"
    connection.fail_read.add(0x0015)

    values = await manager.read_roles()

    assert values == {Role.SPEED: "1200", Role.RUNTIME: "3600"}
    assert display.text(Role.RUNTIME) == "RUNTIME: 3600"
    errors = _errors(messages)
    assert len(errors) == 1
    assert errors[0].startswith("Failed to read TEMP")


@pytest.mark.asyncio
async def test_context_manager_disconnects() -> None:
    connection = FakeConnection([monitor_service()])
    manager, _ = _manager(connection)

    async with manager:
        await manager.start("AA:BB:CC:DD:EE:FF")

    assert manager.state is SessionState.DISCONNECTED
    assert connection.calls[-1] == ("disconnect",)
