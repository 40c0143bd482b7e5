"""Connect to a MotorMonitor peripheral and print live values.

Usage:
    uv run python examples/monitor.py AA:BB:CC:DD:EE:FF --duration 30
    uv run python examples/monitor.py AA:BB:CC:DD:EE:FF --explore
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import datetime

from motormonitor import CharacteristicProperty, ConnectionManager, Role, Severity


class _PrintDisplay:
    """Print each role value as it changes."""

    def __init__(self) -> None:
        self._last: dict[Role, str] = {}

    def show(self, role: Role, text: str) -> None:
        if self._last.get(role) == text:
            return
        self._last[role] = text
        print(f"[{datetime.now().strftime('%H:%M:%S')}] {text}")


def _print_status(timestamp: datetime, message: str, severity: Severity) -> None:
    marker = "!" if severity is Severity.ERROR else "-"
    print(f"[{timestamp.strftime('%H:%M:%S.%f')[:-3]}] {marker} {message}")


async def _explore(manager: ConnectionManager) -> None:
    """Read every readable characteristic of every service."""
    explorer = manager.explore()
    if explorer is None:
        return

    for service in explorer.services:
        print(f"\nService {service.display_name}")
        for characteristic in await explorer.select_service(service):
            print(
                f"  {characteristic.display_name} handle=0x{characteristic.handle:04x} "
                f"props={characteristic.properties!r}"
            )
            if characteristic.supports(CharacteristicProperty.READ):
                await explorer.read(characteristic)


async def monitor(address: str, duration: float, timeout: float, explore: bool) -> None:
    """Subscribe to the monitor roles and print values until done."""
    async with ConnectionManager(
        status_sink=_print_status,
        display=_PrintDisplay(),
        timeout=timeout,
    ) as manager:
        monitoring = await manager.start(address)

        if explore or not monitoring:
            await _explore(manager)

        if not monitoring:
            return

        await manager.read_roles()

        if duration > 0:
            print(f"Duration: {duration:.1f}s")
            await asyncio.sleep(duration)
        else:
            print("Duration: unlimited (Ctrl+C to stop)")
            while manager.device is not None:
                await asyncio.sleep(1)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Monitor speed, temperature and runtime of a MotorMonitor device."
    )
    parser.add_argument(
        "address",
        help="Device MAC address or platform identifier.",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=30.0,
        help="Monitor duration in seconds (0 = run until Ctrl+C). Default: 30",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Timeout in seconds for connect and each GATT operation. Default: 10",
    )
    parser.add_argument(
        "--explore",
        action="store_true",
        help="List and read every service and characteristic after connecting.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(
            monitor(
                address=args.address,
                duration=args.duration,
                timeout=args.timeout,
                explore=args.explore,
            )
        )
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
