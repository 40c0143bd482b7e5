"""Status reporting and per-role display fields."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Protocol

from .exceptions import MotorMonitorError
from .models.enums import MONITOR_ROLES, Role, Severity
from .protocol.profile import placeholder_text, role_label

_LOGGER = logging.getLogger(__name__)

StatusSink = Callable[[datetime, str, Severity], None]


class DisplaySink(Protocol):
    """Receives the text shown for each monitor role."""

    def show(self, role: Role, text: str) -> None: ...


def logging_sink(timestamp: datetime, message: str, severity: Severity) -> None:
    """Default sink: forward status messages to the package logger."""
    level = logging.ERROR if severity is Severity.ERROR else logging.INFO
    _LOGGER.log(level, "[%s] %s", timestamp.strftime("%H:%M:%S.%f")[:-3], message)


class StatusReporter:
    """Timestamps messages and forwards them to the status sink."""

    def __init__(self, sink: StatusSink | None = None):
        self._sink = sink or logging_sink

    def info(self, message: str) -> None:
        self._emit(message, Severity.INFO)

    def error(self, message: str) -> None:
        self._emit(message, Severity.ERROR)

    def failure(self, context: str, err: MotorMonitorError) -> None:
        """Report a caught package error as '<context>: <error>'."""
        _LOGGER.debug("%s failed (%s): %s", context, err.kind.value, err)
        self.error(f"{context}: {err}")

    def _emit(self, message: str, severity: Severity) -> None:
        self._sink(datetime.now(), message, severity)


class DisplayFields:
    """In-memory display slot per monitor role.

    Each slot starts as its placeholder ('SPEED: -') and holds
    '<LABEL>: <value>' once a value arrives.
    """

    def __init__(self) -> None:
        self._texts: dict[Role, str] = {role: placeholder_text(role) for role in MONITOR_ROLES}

    def show(self, role: Role, text: str) -> None:
        self._texts[role] = text

    def text(self, role: Role) -> str:
        return self._texts.get(role, placeholder_text(role))

    def snapshot(self) -> dict[Role, str]:
        return dict(self._texts)


def value_text(role: Role, value: str) -> str:
    return f"{role_label(role)}: {value}"
