"""cargo invocation for firmware packages."""

from __future__ import annotations

from aetherflash.core.model import BuildSpec


def build_command(build: BuildSpec, package: str) -> list[str]:
    cmd = [build.toolchain, "build"]
    if build.profile == "release":
        cmd.append("--release")
    elif build.profile != "dev":
        cmd += ["--profile", build.profile]
    cmd += ["--package", package, "--target", build.target_triple]
    return cmd
