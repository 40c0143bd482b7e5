"""MotorMonitor session: connection lifecycle and monitoring."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from .exceptions import (
    CharacteristicDiscoveryError,
    DeviceNotFoundError,
    MotorMonitorError,
    ServiceNotFoundError,
)
from .gatt import (
    CharacteristicRegistry,
    GattExplorer,
    NotificationSubscriber,
    ServiceResolver,
    Subscription,
)
from .models.characteristic import DecodedValue
from .models.enums import MONITOR_ROLES, Role, SessionState
from .models.handles import DeviceHandle, ServiceHandle
from .models.target import DeviceTarget
from .protocol.decoder import decode_value
from .protocol.profile import MOTOR_MONITOR_PROFILE, MonitorProfile, placeholder_text, role_label
from .status import DisplayFields, DisplaySink, StatusReporter, StatusSink, value_text
from .transport import BLEConnection

if TYPE_CHECKING:
    from bleak.backends.device import BLEDevice

_LOGGER = logging.getLogger(__name__)

ConnectionFactory = Callable[..., BLEConnection]


class _Session:
    """Per-connection state. Replaced wholesale on every connect."""

    def __init__(
            self,
            manager: ConnectionManager,
            target: DeviceTarget,
            connection: BLEConnection,
    ):
        self.target = target
        self.connection = connection
        self.device: DeviceHandle | None = None
        self.service: ServiceHandle | None = None
        self.registry = CharacteristicRegistry(connection, manager.profile)
        self.subscriber = NotificationSubscriber(connection, manager.display)
        self.explorer = GattExplorer(
            connection,
            self.registry,
            self.subscriber,
            manager.status,
            on_subscribed=manager._enter_monitoring,
        )
        self.resolver = ServiceResolver(connection, on_fallback=self.explorer.set_services)


class ConnectionManager:
    """GATT client session for a MotorMonitor peripheral.

    Owns the device connection and sequences service resolution,
    characteristic discovery and notification subscription. Public methods
    report progress and failures to the status sink and never raise
    package errors.

    Usage:
        async with ConnectionManager() as manager:
            if await manager.start("AA:BB:CC:DD:EE:FF"):
                ...  # notifications update manager.display

        # Numeric radio address from a device picker
        await manager.start(0xAABBCCDDEEFF)
    """

    def __init__(
            self,
            profile: MonitorProfile = MOTOR_MONITOR_PROFILE,
            status_sink: StatusSink | None = None,
            display: DisplaySink | None = None,
            timeout: float = 10.0,
            max_attempts: int = 3,
            connection_factory: ConnectionFactory = BLEConnection,
    ):
        """Initialize the session manager.

        Args:
            profile: Service UUID and role table (default: MotorMonitor)
            status_sink: Receives (timestamp, message, severity); defaults to logging
            display: Receives per-role display text (default: DisplayFields)
            timeout: Timeout in seconds for connect and each GATT operation (default: 10)
            max_attempts: Connection attempts for bleak-retry-connector (default: 3)
            connection_factory: Builds the transport for a target (default: BLEConnection)
        """
        self.profile = profile
        self.status = StatusReporter(status_sink)
        self.display: DisplaySink = display if display is not None else DisplayFields()
        self.timeout = timeout
        self.max_attempts = max_attempts
        self._connection_factory = connection_factory

        self._session: _Session | None = None
        self._state = SessionState.DISCONNECTED

    async def __aenter__(self) -> ConnectionManager:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Unsubscribe and disconnect."""
        await self.disconnect()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def device(self) -> DeviceHandle | None:
        return self._session.device if self._session else None

    @property
    def service(self) -> ServiceHandle | None:
        return self._session.service if self._session else None

    @property
    def registry(self) -> CharacteristicRegistry | None:
        return self._session.registry if self._session else None

    @property
    def explorer(self) -> GattExplorer | None:
        """Explorer for the current connection (None when disconnected)."""
        return self._session.explorer if self._session else None

    @property
    def subscriptions(self) -> list[Subscription]:
        return self._session.subscriber.subscriptions if self._session else []

    async def start(
            self,
            target: DeviceTarget | int | str,
            ble_device: BLEDevice | None = None,
    ) -> bool:
        """Connect, find the monitor service and subscribe to every role.

        Args:
            target: Numeric radio address, platform identifier or DeviceTarget
            ble_device: Optional BLEDevice, skips the lookup scan

        Returns:
            True if the session reached MONITORING
        """
        self.status.info("Connecting to device...")
        try:
            device = await self.connect(target, ble_device)
        except MotorMonitorError as err:
            self.status.failure("Unable to find device. Maybe it isn't connected any more", err)
            return False

        session = self._session
        self.status.info(f"Connected to {device.name}")
        self.status.info(f"Discovering service {self.profile.service_uuid}...")

        try:
            service = session.resolver.resolve(device, self.profile.service_uuid)
        except ServiceNotFoundError:
            self.status.error("MotorMonitor service not found. Falling back to manual mode.")
            return False
        except MotorMonitorError as err:
            self.status.failure("Error accessing services", err)
            await self._cleanup()
            return False

        session.service = service
        self.status.info(f"Found service: {service.display_name}")
        return await self._subscribe(session, service)

    async def _subscribe(self, session: _Session, service: ServiceHandle) -> bool:
        self._state = SessionState.SUBSCRIBING
        try:
            characteristics = await session.registry.discover(service)
        except CharacteristicDiscoveryError as err:
            self.status.failure("Error accessing characteristics", err)
            if self._session is session:
                self._state = SessionState.CONNECTED
            return False
        except MotorMonitorError as err:
            self.status.failure("Error accessing characteristics", err)
            await self._cleanup()
            return False

        self.status.info(f"Found {len(characteristics)} characteristic(s)")

        outcomes = await session.subscriber.subscribe_all(
            session.registry, characteristics, self._on_role_value
        )
        for role, outcome in outcomes.items():
            if outcome.ok:
                self.status.info(f"Subscribed to {role_label(role)}")
            else:
                self.status.failure(f"Failed to subscribe to {role_label(role)}", outcome.error)

        if self._session is not session:
            # Link dropped while subscribing; already cleaned up
            return False

        self._enter_monitoring()
        self.status.info("Connected and subscribed.")
        return True

    async def connect(
            self,
            target: DeviceTarget | int | str,
            ble_device: BLEDevice | None = None,
    ) -> DeviceHandle:
        """Release any previous session, then open a new connection.

        Raises:
            DeviceNotFoundError: If the target is invalid or the connect call fails
            AccessDeniedError: If the platform refuses the connection
            BLETimeoutError: If connecting times out
        """
        await self._cleanup()

        try:
            target = DeviceTarget.parse(target)
        except ValueError as err:
            raise DeviceNotFoundError(f"Invalid device identifier: {err}") from err

        self._state = SessionState.CONNECTING
        holder: list[_Session] = []
        connection = self._connection_factory(
            target.identifier,
            ble_device=ble_device,
            timeout=self.timeout,
            max_attempts=self.max_attempts,
            disconnected_callback=lambda: self._on_link_lost(holder[0]),
        )
        session = _Session(self, target, connection)
        holder.append(session)

        try:
            await connection.connect()
        except MotorMonitorError:
            await connection.disconnect()
            self._state = SessionState.DISCONNECTED
            raise

        session.device = DeviceHandle(target.identifier, connection.device_name)
        session.resolver.begin_attempt()
        self._session = session
        self._state = SessionState.CONNECTED
        _LOGGER.info("Connected to %s", session.device.name)
        return session.device

    async def disconnect(self) -> None:
        """Unsubscribe and release the connection. No-op when disconnected."""
        was_connected = self._session is not None
        await self._cleanup()
        if was_connected:
            self.status.info("Disconnected")

    async def unsubscribe_all(self) -> None:
        """Unsubscribe every role and the explorer. Safe to call repeatedly."""
        session = self._session
        if session is None:
            for role in MONITOR_ROLES:
                self.display.show(role, placeholder_text(role))
            return

        await session.subscriber.unsubscribe_all(session.registry)
        session.subscriber.suspend()
        if self._state is SessionState.MONITORING:
            self._state = SessionState.CONNECTED
        self.status.info("Unsubscribed from all characteristics")

    async def read_roles(self) -> dict[Role, str]:
        """Read every subscribed role once and update the display.

        A failed read is reported and the remaining roles are still read.
        """
        session = self._session
        if session is None:
            return {}

        values: dict[Role, str] = {}
        for role in MONITOR_ROLES:
            slot = session.registry.slot(role)
            if not slot.is_filled:
                continue
            characteristic = slot.characteristic
            try:
                data = await session.connection.read_characteristic(characteristic.handle)
            except MotorMonitorError as err:
                self.status.failure(f"Failed to read {role_label(role)}", err)
                continue

            values[role] = decode_value(data, characteristic)
            self.display.show(role, value_text(role, values[role]))
            self.status.info(f"{role_label(role)} read: {values[role]}")

        return values

    def explore(self) -> GattExplorer | None:
        """Explorer loaded with every service of the connected device.

        Returns None when disconnected.
        """
        session = self._session
        if session is None:
            return None
        if not session.explorer.services:
            try:
                session.explorer.set_services(session.resolver.enumerate(session.device))
            except MotorMonitorError as err:
                self.status.failure("Error accessing services", err)
        return session.explorer

    def _enter_monitoring(self) -> None:
        if self._session is None:
            return
        self._state = SessionState.MONITORING
        self._session.subscriber.resume()

    def _on_role_value(self, role: Role, value: DecodedValue) -> None:
        _LOGGER.debug("%s = %s", role.name, value.text)
        self.display.show(role, value_text(role, value.text))

    async def _cleanup(self) -> None:
        """Unsubscribe everything, then release service and device handles."""
        session = self._session
        if session is None:
            self._state = SessionState.DISCONNECTED
            return

        session.subscriber.suspend()
        try:
            await session.subscriber.unsubscribe_all(session.registry)
        finally:
            session.registry.reset()
            session.explorer.clear()
            session.service = None
            if session.device is not None:
                session.device.invalidate()
            self._session = None
            self._state = SessionState.DISCONNECTED
            await session.connection.disconnect()
            _LOGGER.debug("Connection cleaned up")

    def _on_link_lost(self, session: _Session) -> None:
        """Handle a disconnect that was not requested."""
        if self._session is not session:
            return

        _LOGGER.info("Device %s disconnected", session.target.identifier)
        session.subscriber.drop_all(session.registry)
        session.registry.reset()
        session.explorer.clear()
        session.service = None
        if session.device is not None:
            session.device.invalidate()
        self._session = None
        self._state = SessionState.DISCONNECTED
        self.status.info("Device disconnected")
