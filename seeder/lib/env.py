"""Environment variable handling for fixture configuration.

String values in a fixture config may reference ${VAR_NAME} or $VAR_NAME;
they are expanded when the config is loaded. A .env file can seed the
environment first (python-dotenv).

A value that is nothing but one reference takes the type of what it
expands to, so ``enable: ${SEED_ENABLE}`` with SEED_ENABLE=true gives a
boolean and ``concurrentWrites: ${SEED_WRITES}`` gives an integer. Mixed
text such as ``users-${STAGE}`` always stays a string.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Optional, Union

from dotenv import load_dotenv

__all__ = ["expand_env_vars", "expand_config", "load_env_file"]

ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")
LONE_VAR_PATTERN = re.compile(r"\s*(?:\$\{[^}]+\}|\$[A-Za-z_][A-Za-z0-9_]*)\s*")
INTEGER_PATTERN = re.compile(r"[+-]?(?:0|[1-9][0-9]*)")


def load_env_file(
    path: Optional[Union[str, Path]] = None,
    *,
    override: bool = False,
) -> bool:
    """Load a .env file into os.environ.

    Returns:
        True if a file was found and loaded
    """
    return load_dotenv(dotenv_path=path, override=override)


def expand_env_vars(value: str, *, strict: bool = False) -> str:
    """Expand ${VAR} and $VAR references in a string.

    Unset variables are left untouched unless strict is set.

    Raises:
        KeyError: In strict mode, for a variable that isn't set
    """

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1) or match.group(2)
        env_value = os.environ.get(var_name)
        if env_value is None:
            if strict:
                raise KeyError(f"Environment variable not set: {var_name}")
            return str(match.group(0))
        return env_value

    return ENV_VAR_PATTERN.sub(replacer, value)


def _typed(value: str) -> Any:
    """Return True/False for "true"/"false" and int for integer text."""
    text = value.strip()
    if text.lower() in ("true", "false"):
        return text.lower() == "true"
    if INTEGER_PATTERN.fullmatch(text):
        return int(text)
    return value


def expand_config(value: Any, *, strict: bool = False) -> Any:
    """Recursively expand environment variables in parsed YAML.

    Dicts and lists are rebuilt; non-string scalars (enable: true,
    concurrentWrites: 10) pass through unchanged, and so do strings
    without a resolvable reference.
    """
    if isinstance(value, str):
        expanded = expand_env_vars(value, strict=strict)
        if expanded == value:
            return value
        if LONE_VAR_PATTERN.fullmatch(value):
            return _typed(expanded)
        return expanded
    if isinstance(value, dict):
        return {key: expand_config(item, strict=strict) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_config(item, strict=strict) for item in value]
    return value
