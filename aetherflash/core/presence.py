"""USB enumeration and board presence matching."""

from __future__ import annotations

import re

from aetherflash.core.errors import (
    CommandCancelledError,
    CommandError,
    CommandNotFoundError,
    CommandTimeoutError,
    HostEnvironmentError,
)
from aetherflash.core.model import UsbDevice
from aetherflash.tools.base import CancelToken, CommandRunner

_LSUSB_LINE_RE = re.compile(
    r"^Bus\s+(\d+)\s+Device\s+(\d+):\s+ID\s+([0-9a-f]{4}):([0-9a-f]{4})\s*(.*)$",
    re.IGNORECASE,
)
_LSUSB_COMMAND = ("lsusb",)


def _parse_line(line: str) -> UsbDevice:
    match = _LSUSB_LINE_RE.match(line)
    if not match:
        return UsbDevice(bus="", device="", vendor_id="", product_id="", description=line, line=line)
    bus, device, vendor_id, product_id, description = match.groups()
    return UsbDevice(
        bus=bus,
        device=device,
        vendor_id=vendor_id.lower(),
        product_id=product_id.lower(),
        description=description.strip(),
        line=line,
    )


def list_usb_devices(
    runner: CommandRunner,
    *,
    timeout_s: float | None = None,
    cancel: CancelToken | None = None,
) -> list[UsbDevice]:
    cmd = list(_LSUSB_COMMAND)
    try:
        result = runner.run(cmd, timeout_s=timeout_s, cancel=cancel)
    except CommandNotFoundError as exc:
        raise HostEnvironmentError(
            "USB enumeration unavailable: 'lsusb' not found. Install usbutils and retry."
        ) from exc
    except CommandTimeoutError as exc:
        raise HostEnvironmentError(f"USB enumeration timed out: {exc}") from exc
    except CommandCancelledError:
        raise
    except CommandError as exc:
        raise HostEnvironmentError(f"USB enumeration failed: {exc}") from exc

    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        details = f": {stderr}" if stderr else ""
        raise HostEnvironmentError(
            f"USB enumeration failed ({' '.join(cmd)} exited {result.returncode}){details}"
        )

    return [_parse_line(line.strip()) for line in result.stdout.splitlines() if line.strip()]


def device_matches(device: UsbDevice, identifier: str) -> bool:
    return identifier in device.line


def is_device_present(
    identifier: str,
    *,
    runner: CommandRunner,
    timeout_s: float | None = None,
    cancel: CancelToken | None = None,
) -> bool:
    devices = list_usb_devices(runner, timeout_s=timeout_s, cancel=cancel)
    return any(device_matches(device, identifier) for device in devices)
