from __future__ import annotations

from pathlib import Path

import pytest

from aetherflash.core.errors import ConfigurationError
from aetherflash.core.locator import ArtifactLocator
from aetherflash.core.model import Role
from aetherflash.core.profile_loader import load_profiles


def _locator(workspace: Path) -> ArtifactLocator:
    return ArtifactLocator(load_profiles().profiles["aetherlink"], workspace)


def test_locate_is_deterministic_for_every_role(tmp_path: Path) -> None:
    locator = _locator(tmp_path)
    for role in Role:
        assert locator.locate(role) == locator.locate(role)


def test_locate_uses_target_triple_and_release_dir(tmp_path: Path) -> None:
    descriptor = _locator(tmp_path).locate(Role.FORWARD)
    assert descriptor.artifact_path == tmp_path / "target" / "thumbv7em-none-eabihf" / "release" / "forward"
    assert descriptor.interface_config == "interface/cmsis-dap.cfg"
    assert descriptor.target_config == "target/hi2821.cfg"
    assert descriptor.package == "forward"


def test_each_role_has_its_own_artifact(tmp_path: Path) -> None:
    descriptors = _locator(tmp_path).describe_all()
    assert [d.role for d in descriptors] == [Role.CLIENT, Role.FORWARD, Role.SERVER]
    assert len({d.artifact_path for d in descriptors}) == 3


def test_require_artifact_missing_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError) as exc:
        _locator(tmp_path).locate(Role.SERVER, require_artifact=True)
    assert "build" in str(exc.value)


def test_require_artifact_present(tmp_path: Path) -> None:
    locator = _locator(tmp_path)
    artifact = locator.locate(Role.CLIENT).artifact_path
    artifact.parent.mkdir(parents=True)
    artifact.write_bytes(b"\x7fELF")

    assert locator.locate(Role.CLIENT, require_artifact=True).artifact_path == artifact


def test_role_parse_rejects_unknown_name() -> None:
    assert Role.parse("Forward") is Role.FORWARD
    with pytest.raises(ConfigurationError):
        Role.parse("relay")
