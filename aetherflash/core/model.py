"""Core data models used across loader, pipeline stages, and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from aetherflash.core.errors import AetherflashError, ConfigurationError


class Role(str, Enum):
    CLIENT = "client"
    FORWARD = "forward"
    SERVER = "server"

    @classmethod
    def parse(cls, name: str) -> Role:
        try:
            return cls(name.strip().lower())
        except ValueError as exc:
            allowed = ", ".join(role.value for role in cls)
            raise ConfigurationError(f"Unknown role '{name}'. Expected one of: {allowed}") from exc


class OperationKind(str, Enum):
    BUILD = "build"
    FLASH = "flash"


@dataclass(frozen=True)
class BoardSpec:
    match: str
    description: str = ""


@dataclass(frozen=True)
class ProbeSpec:
    interface_config: str
    target_config: str
    programmer: str = "openocd"


@dataclass(frozen=True)
class BuildSpec:
    target_triple: str
    profile: str = "release"
    output_root: str = "target"
    toolchain: str = "cargo"

    @property
    def profile_dir(self) -> str:
        if self.profile == "dev":
            return "debug"
        return self.profile


@dataclass(frozen=True)
class Timeouts:
    enumeration_s: float = 10.0
    programmer_s: float = 120.0
    build_s: float | None = 1800.0


@dataclass(frozen=True)
class RoleSpec:
    package: str
    artifact: str
    label: str


@dataclass(frozen=True)
class Profile:
    name: str
    board: BoardSpec
    probe: ProbeSpec
    build: BuildSpec
    timeouts: Timeouts
    roles: dict[Role, RoleSpec]


@dataclass(frozen=True)
class TargetDescriptor:
    role: Role
    package: str
    label: str
    artifact_path: Path
    interface_config: str
    target_config: str


@dataclass(frozen=True)
class UsbDevice:
    bus: str
    device: str
    vendor_id: str
    product_id: str
    description: str
    line: str


@dataclass(frozen=True)
class ProgrammerOutcome:
    returncode: int
    output: str
    failed_stage: str | None = None

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and self.failed_stage is None


@dataclass(frozen=True)
class OperationResult:
    role: Role
    kind: OperationKind
    success: bool
    message: str
    error: AetherflashError | None = None
