"""Client configuration models and loaders."""

from __future__ import annotations

from .exceptions import ConfigError, ConfigLoadError, ConfigValidationError
from .loader import load_config, load_env, load_yaml
from .models import BaseConfig, ClientConfig, RetryConfig

__all__ = [
    "BaseConfig",
    "ClientConfig",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "RetryConfig",
    "load_config",
    "load_env",
    "load_yaml",
]
