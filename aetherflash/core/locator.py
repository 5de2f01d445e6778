"""Role to target descriptor resolution."""

from __future__ import annotations

from pathlib import Path

from aetherflash.core.errors import ConfigurationError
from aetherflash.core.model import Profile, Role, TargetDescriptor


class ArtifactLocator:
    def __init__(self, profile: Profile, workspace: Path) -> None:
        self.profile = profile
        self.workspace = workspace

    def artifact_dir(self) -> Path:
        build = self.profile.build
        return self.workspace / build.output_root / build.target_triple / build.profile_dir

    def locate(self, role: Role, *, require_artifact: bool = False) -> TargetDescriptor:
        """Resolve the artifact and probe configuration for ``role``.

        With ``require_artifact`` the artifact must already exist on disk; this
        never starts a build.
        """
        spec = self.profile.roles[role]
        descriptor = TargetDescriptor(
            role=role,
            package=spec.package,
            label=spec.label,
            artifact_path=self.artifact_dir() / spec.artifact,
            interface_config=self.profile.probe.interface_config,
            target_config=self.profile.probe.target_config,
        )
        if require_artifact and not descriptor.artifact_path.is_file():
            raise ConfigurationError(
                f"No {spec.label} firmware at {descriptor.artifact_path}. "
                f"Run 'aetherflash build --role {role.value}' first."
            )
        return descriptor

    def describe_all(self) -> list[TargetDescriptor]:
        return [self.locate(role) for role in Role]
