"""Load ``ClientConfig`` from a YAML file and environment overrides."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Final

import yaml
from pydantic import ValidationError

from .exceptions import ConfigLoadError, ConfigValidationError
from .models import ClientConfig

logger = logging.getLogger(__name__)

DEFAULT_ENV_PREFIX: Final[str] = "WEBHOOK_DISPATCH_"


def load_yaml(path: Path) -> dict[str, object]:
    """Load a YAML mapping from ``path``.

    Empty files and files whose top level is not a mapping yield ``{}``.

    Raises:
        ConfigLoadError: If the file cannot be read or parsed
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f)  # pyright: ignore[reportAny] # yaml.safe_load returns Any
    except (OSError, yaml.YAMLError) as e:
        raise ConfigLoadError(f"Failed to load {path}: {e}", file_path=str(path)) from e
    if isinstance(content, dict):
        return {str(key): value for key, value in content.items()}  # pyright: ignore[reportUnknownVariableType, reportUnknownArgumentType]
    return {}


def load_env(prefix: str = DEFAULT_ENV_PREFIX, environ: Mapping[str, str] | None = None) -> dict[str, object]:
    """Collect prefixed environment variables into a nested mapping.

    ``WEBHOOK_DISPATCH_WAIT=true`` sets ``wait``;
    ``WEBHOOK_DISPATCH_RETRY__MAX_RETRIES=5`` sets ``retry.max_retries``.
    Values stay strings; pydantic coerces them during validation.
    """
    source = os.environ if environ is None else environ
    config: dict[str, object] = {}
    for env_var, raw_value in source.items():
        if not env_var.startswith(prefix) or env_var == prefix:
            continue
        keys = env_var[len(prefix):].lower().split("__")
        current = config
        for key in keys[:-1]:
            nested = current.get(key)
            if not isinstance(nested, dict):
                nested = {}
                current[key] = nested
            current = nested  # pyright: ignore[reportUnknownVariableType]
        current[keys[-1]] = raw_value
        logger.debug("Loaded configuration override from %s", env_var)
    return config


def merge_config(base: Mapping[str, object], override: Mapping[str, object]) -> dict[str, object]:
    """Recursively merge ``override`` into ``base``; override wins."""
    merged: dict[str, object] = dict(base)
    for key, value in override.items():
        existing = merged.get(key)
        if isinstance(existing, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_config(existing, value)  # pyright: ignore[reportUnknownArgumentType]
        else:
            merged[key] = value
    return merged


def load_config(
    path: Path | str | None = None,
    *,
    env_prefix: str = DEFAULT_ENV_PREFIX,
    environ: Mapping[str, str] | None = None,
) -> ClientConfig:
    """Build a validated ``ClientConfig``.

    Precedence, lowest first: model defaults, the YAML file, environment
    variables.

    Args:
        path: Optional YAML file; a missing file is an error
        env_prefix: Prefix of environment overrides
        environ: Environment mapping, defaults to ``os.environ``

    Raises:
        ConfigLoadError: If the file cannot be read
        ConfigValidationError: If the merged values are invalid
    """
    file_values: dict[str, object] = {}
    if path is not None:
        file_path = Path(path)
        if not file_path.exists():
            raise ConfigLoadError(f"Configuration file not found: {file_path}", file_path=str(file_path))
        file_values = load_yaml(file_path)

    merged = merge_config(file_values, load_env(env_prefix, environ))
    try:
        return ClientConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigValidationError("Client configuration is invalid", pydantic_error=e) from e
