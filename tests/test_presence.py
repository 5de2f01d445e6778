from __future__ import annotations

import subprocess

import pytest

from aetherflash.core.errors import CommandNotFoundError, CommandTimeoutError, HostEnvironmentError
from aetherflash.core.presence import is_device_present, list_usb_devices

LSUSB_WITH_BOARD = (
    "Bus 001 Device 001: ID 1d6b:0002 Linux Foundation 2.0 root hub\n"
    "Bus 001 Device 005: ID c251:f002 Keil Software, Inc. BearPi CMSIS-DAP\n"
)
LSUSB_WITHOUT_BOARD = "Bus 001 Device 001: ID 1d6b:0002 Linux Foundation 2.0 root hub\n"


class FakeRunner:
    def __init__(self, stdout: str = "", returncode: int = 0, stderr: str = "", exc: Exception | None = None) -> None:
        self.stdout = stdout
        self.returncode = returncode
        self.stderr = stderr
        self.exc = exc
        self.calls: list[tuple[list[str], float | None]] = []

    def run(self, args, *, timeout_s=None, cancel=None, cwd=None):
        self.calls.append((list(args), timeout_s))
        if self.exc is not None:
            raise self.exc
        return subprocess.CompletedProcess(list(args), self.returncode, stdout=self.stdout, stderr=self.stderr)


def test_present_when_token_enumerated() -> None:
    runner = FakeRunner(stdout=LSUSB_WITH_BOARD)
    assert is_device_present("BearPi", runner=runner, timeout_s=5.0) is True
    assert runner.calls == [(["lsusb"], 5.0)]


def test_absent_is_false_not_an_error() -> None:
    assert is_device_present("BearPi", runner=FakeRunner(stdout=LSUSB_WITHOUT_BOARD)) is False
    assert is_device_present("BearPi", runner=FakeRunner(stdout="")) is False


def test_match_is_case_sensitive_like_grep() -> None:
    assert is_device_present("bearpi", runner=FakeRunner(stdout=LSUSB_WITH_BOARD)) is False


def test_vendor_product_id_token_matches() -> None:
    assert is_device_present("c251:f002", runner=FakeRunner(stdout=LSUSB_WITH_BOARD)) is True


def test_every_call_enumerates_again() -> None:
    runner = FakeRunner(stdout=LSUSB_WITHOUT_BOARD)
    assert is_device_present("BearPi", runner=runner) is False
    runner.stdout = LSUSB_WITH_BOARD
    assert is_device_present("BearPi", runner=runner) is True
    assert len(runner.calls) == 2


def test_lsusb_lines_are_parsed() -> None:
    devices = list_usb_devices(FakeRunner(stdout=LSUSB_WITH_BOARD))
    assert len(devices) == 2
    board = devices[1]
    assert (board.bus, board.device) == ("001", "005")
    assert (board.vendor_id, board.product_id) == ("c251", "f002")
    assert board.description == "Keil Software, Inc. BearPi CMSIS-DAP"


def test_missing_lsusb_raises_environment_error() -> None:
    runner = FakeRunner(exc=CommandNotFoundError("Executable not found: lsusb"))
    with pytest.raises(HostEnvironmentError) as exc:
        is_device_present("BearPi", runner=runner)
    assert "lsusb" in str(exc.value)


def test_failing_lsusb_raises_environment_error() -> None:
    runner = FakeRunner(returncode=1, stderr="unable to initialize libusb: -99")
    with pytest.raises(HostEnvironmentError) as exc:
        is_device_present("BearPi", runner=runner)
    assert "libusb" in str(exc.value)


def test_hung_lsusb_raises_environment_error() -> None:
    runner = FakeRunner(exc=CommandTimeoutError("'lsusb' did not finish within 10s"))
    with pytest.raises(HostEnvironmentError):
        is_device_present("BearPi", runner=runner)
