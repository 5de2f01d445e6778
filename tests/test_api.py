from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from aetherflash.api import CancelToken, Client, ConfigurationError, DeviceNotFoundError, Role

LSUSB_WITH_BOARD = "Bus 001 Device 005: ID c251:f002 Keil Software, Inc. BearPi CMSIS-DAP\n"


class FakeRunner:
    def __init__(self, lsusb: str = LSUSB_WITH_BOARD) -> None:
        self.lsusb = lsusb
        self.calls: list[list[str]] = []
        self.cancels: list[CancelToken | None] = []

    def run(self, args, *, timeout_s=None, cancel=None, cwd=None):
        cmd = list(args)
        self.calls.append(cmd)
        self.cancels.append(cancel)
        if cmd[0] == "cargo":
            package = cmd[cmd.index("--package") + 1]
            artifact = Path(cwd) / "target" / "thumbv7em-none-eabihf" / "release" / package
            artifact.parent.mkdir(parents=True, exist_ok=True)
            artifact.write_bytes(b"\x7fELF")
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")
        if cmd[0] == "lsusb":
            return subprocess.CompletedProcess(cmd, 0, stdout=self.lsusb, stderr="")
        if cmd[0] == "openocd":
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="** Verified OK **")
        raise AssertionError(f"Unexpected cmd: {cmd}")


def test_build_then_flash(tmp_path: Path) -> None:
    runner = FakeRunner()
    client = Client(workspace=tmp_path, runner=runner)

    results = client.build()
    assert all(result.success for result in results.values())

    token = CancelToken()
    result = client.flash(Role.SERVER, cancel=token)
    assert result.success is True
    assert runner.cancels[-1] is token
    assert [cmd[0] for cmd in runner.calls] == ["cargo", "cargo", "cargo", "lsusb", "openocd"]


def test_flash_without_build_never_calls_tools(tmp_path: Path) -> None:
    runner = FakeRunner()
    result = Client(workspace=tmp_path, runner=runner).flash(Role.CLIENT)

    assert isinstance(result.error, ConfigurationError)
    assert runner.calls == []


def test_board_presence_and_absence(tmp_path: Path) -> None:
    assert Client(workspace=tmp_path, runner=FakeRunner()).is_board_present() is True

    absent = FakeRunner(lsusb="")
    client = Client(workspace=tmp_path, runner=absent)
    assert client.is_board_present() is False
    client.build([Role.FORWARD])
    result = client.flash(Role.FORWARD)
    assert isinstance(result.error, DeviceNotFoundError)


def test_unknown_profile(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        Client(profile_name="missing", workspace=tmp_path, runner=FakeRunner())


def test_locate_matches_list_roles(tmp_path: Path) -> None:
    client = Client(workspace=tmp_path, runner=FakeRunner())
    assert [client.locate(role) for role in Role] == client.list_roles()
    assert client.profile.name == "aetherlink"


def test_flash_accepts_role_name(tmp_path: Path) -> None:
    client = Client(workspace=tmp_path, runner=FakeRunner())
    client.build([Role.CLIENT])
    assert client.flash("client").success is True
    with pytest.raises(ConfigurationError):
        client.flash("relay")
