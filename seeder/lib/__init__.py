"""Fixture loading library modules.

This package contains the batch-dispatch engine (chunking, chunk writes
with retry, bounded dispatch) and the glue that feeds it from YAML config.
"""

from seeder.lib.backend import DynamoBackend, WriteTarget, WriteVariant
from seeder.lib.chunking import MAX_CHUNK, chunk
from seeder.lib.config_loader import FixtureConfig, load_config, parse_config
from seeder.lib.dispatch import dispatch_all
from seeder.lib.env import expand_config, expand_env_vars, load_env_file
from seeder.lib.errors import (
    BatchWriteError,
    ConfigurationError,
    FixtureLoadError,
    SeederError,
    SourceFormatError,
    SourceNotFoundError,
)
from seeder.lib.fixtures import (
    DEFAULT_CONCURRENT_WRITES,
    FixtureDefinition,
    InvocationMode,
    LoadReport,
    is_enabled,
    load_all,
    plan_fixture,
)
from seeder.lib.loader import DispatchResult, load_source
from seeder.lib.logging import setup_logging
from seeder.lib.sources import read_records
from seeder.lib.writer import BatchWriter

__all__ = [
    # Backend
    "DynamoBackend",
    "WriteTarget",
    "WriteVariant",
    # Core
    "MAX_CHUNK",
    "chunk",
    "BatchWriter",
    "dispatch_all",
    "DispatchResult",
    "load_source",
    # Fixtures
    "DEFAULT_CONCURRENT_WRITES",
    "FixtureDefinition",
    "InvocationMode",
    "LoadReport",
    "is_enabled",
    "load_all",
    "plan_fixture",
    # Config
    "FixtureConfig",
    "load_config",
    "parse_config",
    "expand_config",
    "expand_env_vars",
    "load_env_file",
    "read_records",
    "setup_logging",
    # Errors
    "SeederError",
    "ConfigurationError",
    "SourceNotFoundError",
    "SourceFormatError",
    "BatchWriteError",
    "FixtureLoadError",
]
