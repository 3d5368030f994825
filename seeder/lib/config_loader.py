"""YAML configuration loader for fixture definitions.

Fixtures can live in a dedicated file or inside a serverless.yml:

    # fixtures.yml
    stage: dev
    region: eu-west-1
    fixtures:
      - table: Users
        sources: [./data/users.json]

    # serverless.yml
    provider:
      stage: dev
      region: eu-west-1
    custom:
      fixtures:
        - table: ${TABLE_PREFIX}-users
          sources: [./data/users.json]

Usage:
    from seeder.lib.config_loader import load_config
    config = load_config("./fixtures.yml")
    for fixture in config.fixtures:
        print(fixture.table)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from seeder.lib.env import expand_config
from seeder.lib.errors import ConfigurationError
from seeder.lib.fixtures import FixtureDefinition

logger = logging.getLogger(__name__)

__all__ = ["FixtureConfig", "load_config", "parse_config", "resolve_path"]


class _ConfigLoader(yaml.SafeLoader):
    """SafeLoader that tolerates CloudFormation tags (!Ref, !GetAtt, ...)."""


class TaggedValue(str):
    """A scalar that was written with a tag, e.g. ``!Ref UsersTable``."""

    tag = ""


def _construct_tagged(loader: yaml.SafeLoader, tag_suffix: str, node: yaml.Node) -> Any:
    if isinstance(node, yaml.ScalarNode):
        value = TaggedValue(loader.construct_scalar(node))
        value.tag = f"!{tag_suffix}"
        return value
    if isinstance(node, yaml.SequenceNode):
        return loader.construct_sequence(node)
    return loader.construct_mapping(node)


_ConfigLoader.add_multi_constructor("!", _construct_tagged)


@dataclass
class FixtureConfig:
    """Fixtures plus the stage/region defaults found next to them."""

    fixtures: List[FixtureDefinition] = field(default_factory=list)
    stage: Optional[str] = None
    region: Optional[str] = None
    path: Optional[Path] = None


def resolve_path(path: str, config_dir: Path) -> str:
    """Resolve a source path relative to the config file location.

    Paths starting with "./" or "../" are resolved against config_dir;
    absolute paths and bare relative paths are left as-is (bare paths are
    taken relative to the working directory, as the deploy tooling does).
    """
    if not path or os.path.isabs(path):
        return path

    if path.startswith("./") or path.startswith("../"):
        return str(config_dir / path)

    return path


def _warn_unresolved(entries: List[Any]) -> None:
    """Warn about table/stage values that still hold a tag or ${...} reference."""
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        for key in ("table", "stage"):
            value = entry.get(key)
            if isinstance(value, TaggedValue):
                logger.warning(
                    "Fixture %s '%s %s' is not resolved here; using the literal value '%s'",
                    key,
                    value.tag,
                    value,
                    value,
                )
            elif isinstance(value, str) and "${" in value:
                logger.warning(
                    "Fixture %s '%s' contains an unresolved reference", key, value
                )


def _fixture_entries(data: Dict[str, Any]) -> Any:
    if "fixtures" in data:
        return data["fixtures"]
    custom = data.get("custom")
    if isinstance(custom, dict) and "fixtures" in custom:
        return custom["fixtures"]
    return None


def _resolve_sources(entry: Any, config_dir: Path) -> Any:
    if not isinstance(entry, dict):
        return entry
    resolved = dict(entry)
    for key in ("sources", "rawsources"):
        value = resolved.get(key)
        if isinstance(value, str):
            resolved[key] = resolve_path(value, config_dir)
        elif isinstance(value, list):
            resolved[key] = [
                resolve_path(item, config_dir) if isinstance(item, str) else item
                for item in value
            ]
    return resolved


def parse_config(
    data: Optional[Dict[str, Any]],
    config_dir: Optional[Path] = None,
) -> FixtureConfig:
    """Build a FixtureConfig from an already parsed mapping.

    Raises:
        ConfigurationError: If the fixtures section has the wrong shape
    """
    config_dir = config_dir or Path.cwd()

    if data is None:
        return FixtureConfig()
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration must be a mapping, got {type(data).__name__}"
        )

    data = expand_config(data)
    provider = data.get("provider") if isinstance(data.get("provider"), dict) else {}

    entries = _fixture_entries(data)
    if entries is None:
        entries = []
    if not isinstance(entries, list):
        raise ConfigurationError(
            "fixtures must be a list of fixture definitions",
            field="fixtures",
            value=type(entries).__name__,
        )

    _warn_unresolved(entries)
    fixtures = [
        FixtureDefinition.from_dict(_resolve_sources(entry, config_dir))
        for entry in entries
    ]

    stage = data.get("stage", provider.get("stage"))
    region = data.get("region", provider.get("region"))
    if isinstance(stage, str) and "${" in stage:
        logger.warning("Ignoring unresolved stage '%s' from the configuration", stage)
        stage = None

    return FixtureConfig(
        fixtures=fixtures,
        stage=str(stage) if stage is not None else None,
        region=str(region) if region is not None else None,
    )


def load_config(config_path: Union[str, Path]) -> FixtureConfig:
    """Load fixture definitions from a YAML file.

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ConfigurationError: If the file isn't valid YAML or is misshapen
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    config_dir = config_path.parent.resolve()

    with open(config_path, "r", encoding="utf-8") as f:
        try:
            data = yaml.load(f, Loader=_ConfigLoader)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in {config_path}: {e}",
                details={"path": str(config_path)},
            ) from e

    config = parse_config(data, config_dir)
    config.path = config_path

    logger.debug("Loaded %d fixture definitions from %s", len(config.fixtures), config_path)
    return config
