"""Service lookup with one-time fallback enumeration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from ..exceptions import BLEConnectionError, ServiceNotFoundError
from ..models.handles import DeviceHandle, ServiceHandle
from ..protocol.uuids import normalize_uuid

if TYPE_CHECKING:
    from bleak.backends.service import BleakGATTService

    from ..transport import BLEConnection

_LOGGER = logging.getLogger(__name__)

FallbackCallback = Callable[[list[ServiceHandle]], None]


class ServiceResolver:
    """Finds the target service on a connected device.

    Services are taken from the discovery of the current connection; the
    transport connects with the service cache disabled, so peripheral
    state is always authoritative. When the service is missing, all
    services are enumerated and handed to ``on_fallback``, at most once
    per connect attempt.
    """

    def __init__(
            self,
            connection: BLEConnection,
            on_fallback: FallbackCallback | None = None,
    ):
        self._connection = connection
        self._on_fallback = on_fallback
        self._fallback_done = False

    def begin_attempt(self) -> None:
        """Reset the once-per-attempt fallback guard."""
        self._fallback_done = False

    @property
    def fallback_done(self) -> bool:
        return self._fallback_done

    def resolve(self, device: DeviceHandle, service_uuid: str) -> ServiceHandle:
        """Look up a service by UUID.

        Raises:
            ServiceNotFoundError: If the device does not expose the service;
                carries the enumerated services on the first miss of an attempt
            BLEConnectionError: If the device handle is released or the link is down
        """
        if not device.is_valid:
            raise BLEConnectionError(f"Device {device.identifier} has been released")

        service_uuid = normalize_uuid(service_uuid)
        _LOGGER.debug("Discovering service %s on %s", service_uuid, device.identifier)

        for service in self._connection.services():
            if normalize_uuid(service.uuid) == service_uuid:
                return self._wrap(device, service)

        if self._fallback_done:
            raise ServiceNotFoundError(service_uuid)

        self._fallback_done = True
        services = self.enumerate(device)
        _LOGGER.info(
            "Service %s not found; %d service(s) available for manual selection",
            service_uuid,
            len(services),
        )
        if self._on_fallback is not None:
            self._on_fallback(services)
        raise ServiceNotFoundError(service_uuid, services)

    def enumerate(self, device: DeviceHandle) -> list[ServiceHandle]:
        """All services of the device, in handle order.

        Raises:
            BLEConnectionError: If the link is down
        """
        services = sorted(self._connection.services(), key=lambda s: s.handle)
        return [self._wrap(device, service) for service in services]

    @staticmethod
    def _wrap(device: DeviceHandle, service: BleakGATTService) -> ServiceHandle:
        return ServiceHandle(
            device=device,
            uuid=normalize_uuid(service.uuid),
            handle=service.handle,
            gatt=service,
            description=service.description,
        )
