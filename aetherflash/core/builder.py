"""Per-role firmware compilation."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor

from aetherflash.core.errors import (
    BuildError,
    CommandError,
    CommandNotFoundError,
)
from aetherflash.core.locator import ArtifactLocator
from aetherflash.core.model import OperationKind, OperationResult, Profile, Role, TargetDescriptor
from aetherflash.tools import cargo
from aetherflash.tools.base import CommandRunner

_OUTPUT_TAIL_LINES = 20
LOGGER = logging.getLogger(__name__)

Progress = Callable[[str], None]


def _tail(text: str) -> str:
    lines = text.strip().splitlines()
    return "\n".join(lines[-_OUTPUT_TAIL_LINES:])


def all_succeeded(results: Mapping[Role, OperationResult]) -> bool:
    return all(result.success for result in results.values())


class Builder:
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

    def build(self, roles: Iterable[Role], *, jobs: int = 1) -> dict[Role, OperationResult]:
        """Compile each role independently and report per-role results.

        A failing role never stops the others. With ``jobs > 1`` compilation
        runs concurrently, but progress lines are still emitted in role order.
        """
        wanted = set(roles)
        ordered = [role for role in Role if role in wanted]
        descriptors = [self.locator.locate(role) for role in ordered]
        results: dict[Role, OperationResult] = {}

        if jobs <= 1 or len(descriptors) <= 1:
            for descriptor in descriptors:
                self.progress(self._start_line(descriptor))
                result = self._build_one(descriptor)
                self.progress(result.message)
                results[descriptor.role] = result
            return results

        for descriptor in descriptors:
            self.progress(self._start_line(descriptor))
        with ThreadPoolExecutor(max_workers=jobs) as pool:
            futures = [pool.submit(self._build_one, descriptor) for descriptor in descriptors]
            for descriptor, future in zip(descriptors, futures):
                result = future.result()
                self.progress(result.message)
                results[descriptor.role] = result
        return results

    def _start_line(self, descriptor: TargetDescriptor) -> str:
        return f"[{descriptor.role.value}] Building {descriptor.label} (package {descriptor.package})..."

    def _build_one(self, descriptor: TargetDescriptor) -> OperationResult:
        try:
            self._compile(descriptor)
        except BuildError as exc:
            LOGGER.debug("Build of %s failed", descriptor.package, exc_info=True)
            return OperationResult(
                role=descriptor.role,
                kind=OperationKind.BUILD,
                success=False,
                message=f"[{descriptor.role.value}] Build failed: {exc}",
                error=exc,
            )
        return OperationResult(
            role=descriptor.role,
            kind=OperationKind.BUILD,
            success=True,
            message=f"[{descriptor.role.value}] Built {descriptor.artifact_path}",
        )

    def _compile(self, descriptor: TargetDescriptor) -> None:
        cmd = cargo.build_command(self.profile.build, descriptor.package)
        LOGGER.info("Running: %s", " ".join(cmd))
        try:
            result = self.runner.run(
                cmd,
                timeout_s=self.profile.timeouts.build_s,
                cwd=self.locator.workspace,
            )
        except CommandNotFoundError as exc:
            raise BuildError(f"toolchain '{cmd[0]}' not found") from exc
        except CommandError as exc:
            raise BuildError(str(exc)) from exc

        if result.returncode != 0:
            details = _tail(result.stderr or result.stdout or "")
            suffix = f"\n{details}" if details else ""
            raise BuildError(f"{cmd[0]} exited with status {result.returncode}{suffix}")

        if not descriptor.artifact_path.is_file():
            raise BuildError(
                f"{cmd[0]} succeeded but no artifact was produced at {descriptor.artifact_path}"
            )
