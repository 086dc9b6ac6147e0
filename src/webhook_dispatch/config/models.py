"""Client configuration schema."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BaseConfig(BaseModel):
    """Base configuration model with common settings."""

    model_config: ConfigDict = ConfigDict(  # pyright: ignore[reportIncompatibleVariableOverride]
        extra="forbid",
        validate_assignment=True,
        str_strip_whitespace=True,
        validate_default=True,
        frozen=False,
    )


class RetryConfig(BaseConfig):
    """Configuration for retry behavior."""

    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retries after the first attempt before a send fails",
    )
    backoff_factor: float = Field(
        default=2.0,
        ge=1.0,
        le=10.0,
        description="Base of the exponential backoff for transient errors",
    )
    max_backoff_seconds: float = Field(
        default=15.0,
        gt=0.0,
        le=300.0,
        description="Upper bound for a single backoff delay",
    )
    rate_limit_padding: float = Field(
        default=0.0,
        ge=0.0,
        le=5.0,
        description="Seconds added to every server-provided rate limit wait",
    )


class ClientConfig(BaseConfig):
    """Settings for a ``WebhookClient``."""

    base_url: str = Field(
        default="https://discordapp.com/api",
        description="Scheme, host and API prefix of the webhook endpoint",
    )
    api_version: str = Field(
        default="v7",
        pattern=r"^v\d+$",
        description="API version path segment",
    )
    wait: bool = Field(
        default=False,
        description="Ask the endpoint to return the created message (?wait=true)",
    )
    wait_for_completion: bool = Field(
        default=True,
        description="Make send() await delivery instead of returning a pending future",
    )
    request_timeout: float = Field(
        default=10.0,
        gt=0.0,
        le=300.0,
        description="Per-request timeout in seconds for the default transport",
    )
    retry: RetryConfig = Field(default_factory=RetryConfig)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        """Require an http(s) URL and drop any trailing slash."""
        if not value.startswith(("https://", "http://")):
            msg = "base_url must use HTTP or HTTPS"
            raise ValueError(msg)
        return value.rstrip("/")
