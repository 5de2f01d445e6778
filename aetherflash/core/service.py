"""Service layer used by CLI and other front ends."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from pathlib import Path

from aetherflash.core.builder import Builder, Progress
from aetherflash.core.errors import ConfigurationError
from aetherflash.core.locator import ArtifactLocator
from aetherflash.core.model import OperationResult, Profile, Role, TargetDescriptor, UsbDevice
from aetherflash.core.presence import device_matches, list_usb_devices
from aetherflash.core.profile_loader import DEFAULT_PROFILE, load_profiles
from aetherflash.core.provisioner import Provisioner
from aetherflash.tools.base import CancelToken, CommandRunner
from aetherflash.tools.subprocess_runner import SubprocessRunner


class ProvisioningService:
    def __init__(
        self,
        *,
        profile_name: str | None = None,
        workspace: Path | None = None,
        runner: CommandRunner | None = None,
        progress: Progress | None = None,
        programmer_timeout_s: float | None = None,
    ) -> None:
        loaded = load_profiles()
        self.load_warnings = loaded.warnings
        name = profile_name or DEFAULT_PROFILE
        profile = loaded.profiles.get(name)
        if profile is None:
            available = ", ".join(sorted(loaded.profiles)) or "<none>"
            raise ConfigurationError(f"Unknown profile '{name}'. Available: {available}")
        if programmer_timeout_s is not None:
            profile = dataclasses.replace(
                profile,
                timeouts=dataclasses.replace(profile.timeouts, programmer_s=programmer_timeout_s),
            )

        self.profile: Profile = profile
        self.workspace = (workspace or Path.cwd()).resolve()
        self.runner = runner or SubprocessRunner()
        self.locator = ArtifactLocator(self.profile, self.workspace)
        self.builder = Builder(self.profile, self.locator, self.runner, progress=progress)
        self.provisioner = Provisioner(self.profile, self.locator, self.runner, progress=progress)

    def list_roles(self) -> list[TargetDescriptor]:
        return self.locator.describe_all()

    def list_devices(self) -> list[tuple[UsbDevice, bool]]:
        devices = list_usb_devices(self.runner, timeout_s=self.profile.timeouts.enumeration_s)
        return [(device, device_matches(device, self.profile.board.match)) for device in devices]

    def build(self, roles: Iterable[Role] | None = None, *, jobs: int = 1) -> dict[Role, OperationResult]:
        return self.builder.build(list(Role) if roles is None else roles, jobs=jobs)

    def flash(self, role: Role, *, cancel: CancelToken | None = None) -> OperationResult:
        return self.provisioner.flash(role, cancel=cancel)
