"""Stable public API for building tooling on top of aetherflash.

This module is the supported integration surface for third-party callers
(GUI front ends, production-line scripts). Avoid importing from internal
modules unless intentionally depending on non-stable internals.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from aetherflash.core.builder import Progress
from aetherflash.core.errors import (
    AetherflashError,
    BuildError,
    ConfigurationError,
    DeviceNotFoundError,
    FlashError,
    HostEnvironmentError,
    ProfileLoadError,
    ProfileValidationError,
)
from aetherflash.core.model import (
    OperationKind,
    OperationResult,
    Profile,
    Role,
    TargetDescriptor,
    UsbDevice,
)
from aetherflash.core.service import ProvisioningService
from aetherflash.tools.base import CancelToken, CommandRunner

__all__ = [
    "AetherflashError",
    "BuildError",
    "ConfigurationError",
    "DeviceNotFoundError",
    "FlashError",
    "HostEnvironmentError",
    "ProfileLoadError",
    "ProfileValidationError",
    "OperationKind",
    "OperationResult",
    "Profile",
    "Role",
    "TargetDescriptor",
    "UsbDevice",
    "CancelToken",
    "CommandRunner",
    "Client",
]


class Client:
    """Public client for building and flashing firmware roles.

    A `Client` wraps profile loading, artifact resolution, board presence
    checks and programmer invocation. Pass a `CancelToken` to `flash` to abort
    a hung programmer session from another thread.
    """

    def __init__(
        self,
        *,
        profile_name: str | None = None,
        workspace: Path | None = None,
        runner: CommandRunner | None = None,
        progress: Progress | None = None,
    ) -> None:
        self._service = ProvisioningService(
            profile_name=profile_name,
            workspace=workspace,
            runner=runner,
            progress=progress,
        )

    @property
    def profile(self) -> Profile:
        return self._service.profile

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self._service.load_warnings

    def locate(self, role: Role) -> TargetDescriptor:
        return self._service.locator.locate(role)

    def list_roles(self) -> list[TargetDescriptor]:
        return self._service.list_roles()

    def is_board_present(self) -> bool:
        return any(matched for _, matched in self._service.list_devices())

    def build(self, roles: Iterable[Role] | None = None, *, jobs: int = 1) -> dict[Role, OperationResult]:
        return self._service.build(roles, jobs=jobs)

    def flash(self, role: Role | str, *, cancel: CancelToken | None = None) -> OperationResult:
        if not isinstance(role, Role):
            role = Role.parse(role)
        return self._service.flash(role, cancel=cancel)
