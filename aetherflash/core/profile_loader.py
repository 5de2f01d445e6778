"""Profile loading and validation for YAML-based provisioning profiles."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from aetherflash.core.errors import ProfileLoadError, ProfileValidationError
from aetherflash.core.model import BoardSpec, BuildSpec, ProbeSpec, Profile, Role, RoleSpec, Timeouts

DEFAULT_PROFILE = "aetherlink"
_PROFILE_SUFFIXES = (".yml", ".yaml")
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ProfileValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class LoadedProfiles:
    profiles: dict[str, Profile]
    warnings: tuple[str, ...]


def _schema_validator() -> Any:
    schema_text = resources.files("aetherflash.schemas").joinpath("profile.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _user_profile_dirs() -> list[Path]:
    fallbacks = {"XDG_CONFIG_HOME": Path.home() / ".config", "XDG_DATA_HOME": Path.home() / ".local/share"}
    return [Path(os.environ.get(var, default)) / "aetherflash" / "profiles" for var, default in fallbacks.items()]


def _read_yaml(path: Path | Traversable) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ProfileLoadError(f"Could not read profile file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ProfileValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ProfileValidationError(f"Profile file {path} must contain a mapping at root")
    return loaded


def _optional_seconds(value: Any) -> float | None:
    return None if value is None else float(value)


def _validate(doc: dict[str, Any], source: Path | Traversable, validator: Any) -> None:
    try:
        validator.validate(doc)
    except ValidationError as exc:
        where = "/".join(str(p) for p in exc.path) or "<root>"
        raise ProfileValidationError(f"{source}: {where}: {exc.message}") from exc


def _build_profile(doc: dict[str, Any], source: Path | Traversable) -> Profile:
    roles: dict[Role, RoleSpec] = {}
    for role in Role:
        spec = doc["roles"][role.value]
        roles[role] = RoleSpec(
            package=spec["package"],
            artifact=spec.get("artifact", spec["package"]),
            label=spec.get("label", role.value),
        )

    artifacts = [spec.artifact for spec in roles.values()]
    if len(set(artifacts)) != len(artifacts):
        raise ProfileValidationError(f"Roles in {source} must not share an artifact name")

    timeouts_doc = doc.get("timeouts", {})
    defaults = Timeouts()
    timeouts = Timeouts(
        enumeration_s=float(timeouts_doc.get("enumeration_s", defaults.enumeration_s)),
        programmer_s=float(timeouts_doc.get("programmer_s", defaults.programmer_s)),
        build_s=_optional_seconds(timeouts_doc.get("build_s", defaults.build_s)),
    )

    return Profile(
        name=doc["name"],
        board=BoardSpec(
            match=doc["board"]["match"],
            description=doc["board"].get("description", ""),
        ),
        probe=ProbeSpec(
            interface_config=doc["probe"]["interface_config"],
            target_config=doc["probe"]["target_config"],
            programmer=doc["probe"].get("programmer", "openocd"),
        ),
        build=BuildSpec(
            target_triple=doc["build"]["target_triple"],
            profile=doc["build"].get("profile", "release"),
            output_root=doc["build"].get("output_root", "target"),
            toolchain=doc["build"].get("toolchain", "cargo"),
        ),
        timeouts=timeouts,
        roles=roles,
    )


def _profile_sources() -> Iterator[tuple[Path | Traversable, bool]]:
    """Yield packaged profiles first, then user profiles, which may override them."""
    packaged = resources.files("aetherflash.profiles").iterdir()
    for item in sorted(packaged, key=lambda p: p.name):
        if item.name.endswith(_PROFILE_SUFFIXES):
            yield item, True
    for directory in _user_profile_dirs():
        if directory.is_dir():
            for path in sorted(directory.iterdir()):
                if path.name.endswith(_PROFILE_SUFFIXES):
                    yield path, False


def load_profiles() -> LoadedProfiles:
    validator = _schema_validator()
    profiles: dict[str, Profile] = {}
    packaged_names: set[str] = set()
    warnings: list[str] = []

    for source, is_packaged in _profile_sources():
        doc = _read_yaml(source)
        _validate(doc, source, validator)
        profile = _build_profile(doc, source)
        if is_packaged:
            packaged_names.add(profile.name)
        elif profile.name in packaged_names:
            warning = f"User profile '{profile.name}' overrides packaged profile"
            LOGGER.warning(warning)
            warnings.append(warning)
        profiles[profile.name] = profile

    return LoadedProfiles(profiles=profiles, warnings=tuple(warnings))
