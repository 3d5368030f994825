"""Read fixture records from JSON and YAML files."""

from __future__ import annotations

import decimal
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from seeder.lib.errors import SourceFormatError, SourceNotFoundError

logger = logging.getLogger(__name__)

__all__ = ["SUPPORTED_EXTENSIONS", "read_records"]

SUPPORTED_EXTENSIONS = (".json", ".yml", ".yaml")


def _parse(path: Path) -> Any:
    suffix = path.suffix.lower()
    with open(path, "r", encoding="utf-8") as f:
        if suffix == ".json":
            # Decimal keeps numbers exact and is what DynamoDB expects
            return json.load(f, parse_float=decimal.Decimal)
        return yaml.safe_load(f)


def read_records(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Load the list of records stored in a fixture file.

    Args:
        path: Path to a .json, .yml or .yaml file holding a list of items

    Returns:
        Records in file order

    Raises:
        SourceNotFoundError: If the file doesn't exist
        SourceFormatError: If the file can't be parsed or isn't a list of mappings
    """
    path = Path(path)

    if not path.exists():
        raise SourceNotFoundError(f"{path} doesn't exist", path=str(path))

    if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
        raise SourceFormatError(
            f"Unsupported fixture file type '{path.suffix or path.name}'",
            path=str(path),
            suggestion=f"Use one of: {', '.join(SUPPORTED_EXTENSIONS)}",
        )

    try:
        data = _parse(path)
    except (ValueError, yaml.YAMLError, UnicodeDecodeError) as e:
        raise SourceFormatError(
            f"Could not parse {path}", path=str(path), cause=e
        ) from e

    if data is None:
        data = []

    if not isinstance(data, list):
        raise SourceFormatError(
            f"{path} must contain a list of items, got {type(data).__name__}",
            path=str(path),
        )

    for position, record in enumerate(data):
        if not isinstance(record, dict):
            raise SourceFormatError(
                f"Item {position} in {path} is not a mapping",
                path=str(path),
                details={"item_type": type(record).__name__},
            )

    logger.debug("Read %d records from %s", len(data), path)
    return data
