"""Single-role flash pipeline: locate, check presence, program/verify/reset."""

from __future__ import annotations

import logging

from aetherflash.core.builder import Progress
from aetherflash.core.errors import (
    AetherflashError,
    CommandCancelledError,
    CommandError,
    CommandNotFoundError,
    CommandTimeoutError,
    DeviceNotFoundError,
    FlashError,
    HostEnvironmentError,
)
from aetherflash.core.locator import ArtifactLocator
from aetherflash.core.model import OperationKind, OperationResult, Profile, Role, TargetDescriptor
from aetherflash.core.presence import is_device_present
from aetherflash.tools import openocd
from aetherflash.tools.base import CancelToken, CommandRunner

LOGGER = logging.getLogger(__name__)


class Provisioner:
    """Flashes exactly one role per call.

    Stages short-circuit on the first error. The programmer is only invoked
    once the artifact exists and the board is enumerated, and nothing is ever
    retried: after a failed write the target state is unknown.
    """

    def __init__(
        self,
        profile: Profile,
        locator: ArtifactLocator,
        runner: CommandRunner,
        *,
        progress: Progress | None = None,
    ) -> None:
        self.profile = profile
        self.locator = locator
        self.runner = runner
        self.progress = progress or (lambda _: None)

    def flash(self, role: Role, *, cancel: CancelToken | None = None) -> OperationResult:
        try:
            descriptor = self._select(role)
            self._check_presence(role, cancel)
            self._program(descriptor, cancel)
        except AetherflashError as exc:
            return OperationResult(
                role=role,
                kind=OperationKind.FLASH,
                success=False,
                message=f"[{role.value}] Flash failed: {exc}",
                error=exc,
            )
        return OperationResult(
            role=role,
            kind=OperationKind.FLASH,
            success=True,
            message=f"[{role.value}] Flashed {descriptor.label} firmware ({descriptor.artifact_path.name})",
        )

    def _select(self, role: Role) -> TargetDescriptor:
        label = self.profile.roles[role].label
        self.progress(f"[{role.value}] Selected {label} firmware")
        return self.locator.locate(role, require_artifact=True)

    def _check_presence(self, role: Role, cancel: CancelToken | None) -> None:
        board = self.profile.board
        self.progress(f"[{role.value}] Checking for {board.description or board.match} on USB...")
        try:
            present = is_device_present(
                board.match,
                runner=self.runner,
                timeout_s=self.profile.timeouts.enumeration_s,
                cancel=cancel,
            )
        except CommandCancelledError as exc:
            raise FlashError("cancelled during device check") from exc
        if not present:
            raise DeviceNotFoundError(
                f"No {board.match} device detected. Attach the board and probe, then retry."
            )

    def _program(self, descriptor: TargetDescriptor, cancel: CancelToken | None) -> None:
        cmd = openocd.program_command(self.profile.probe, descriptor)
        role = descriptor.role.value
        self.progress(f"[{role}] Programming {descriptor.artifact_path} (program, verify, reset)...")
        LOGGER.info("Running: %s", " ".join(cmd))
        try:
            result = self.runner.run(cmd, timeout_s=self.profile.timeouts.programmer_s, cancel=cancel)
        except CommandNotFoundError as exc:
            raise HostEnvironmentError(
                f"Programmer '{cmd[0]}' not found. Install it and make sure it is on PATH."
            ) from exc
        except CommandTimeoutError as exc:
            raise FlashError(f"programmer timed out; target state unknown: {exc}") from exc
        except CommandCancelledError as exc:
            raise FlashError("cancelled while programming; target state unknown") from exc
        except CommandError as exc:
            raise FlashError(str(exc)) from exc

        outcome = openocd.interpret(result)
        LOGGER.debug("Programmer output:\n%s", outcome.output)
        if outcome.ok:
            return
        stage = f" during {outcome.failed_stage}" if outcome.failed_stage else ""
        details = f"\n{outcome.output}" if outcome.output else ""
        raise FlashError(f"{cmd[0]} failed{stage} (exit status {outcome.returncode}){details}")
