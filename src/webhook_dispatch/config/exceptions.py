"""Error types for configuration loading and validation."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError


class ConfigError(Exception):
    """Base exception for all configuration-related errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:  # pyright: ignore[reportExplicitAny] # Flexible config error context
        """Initialize ConfigError.

        Args:
            message: Error message
            context: Additional context information for debugging
        """
        super().__init__(message)
        self.context: dict[str, Any] = context or {}  # pyright: ignore[reportExplicitAny] # Flexible config error context


class ConfigLoadError(ConfigError):
    """Raised when a configuration file or the environment cannot be read."""

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        env_var: str | None = None,
    ) -> None:
        context: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
        if file_path is not None:
            context["file_path"] = file_path
        if env_var is not None:
            context["env_var"] = env_var
        super().__init__(message, context)
        self.file_path: str | None = file_path
        self.env_var: str | None = env_var


class ConfigValidationError(ConfigError):
    """Raised when loaded values do not satisfy the configuration schema."""

    def __init__(self, message: str, pydantic_error: ValidationError | None = None) -> None:
        context: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
        if pydantic_error is not None:
            context["validation_errors"] = self._format_validation_errors(pydantic_error)
        super().__init__(message, context)
        self.pydantic_error: ValidationError | None = pydantic_error

    def _format_validation_errors(self, error: ValidationError) -> list[dict[str, object]]:
        """Format Pydantic validation errors for better readability."""
        return [
            {
                "field": ".".join(str(loc) for loc in err["loc"]),
                "message": err["msg"],
                "type": err["type"],
            }
            for err in error.errors()
        ]
