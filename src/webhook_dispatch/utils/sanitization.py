"""Secret sanitization for log lines and error messages.

The webhook token is the only credential a destination needs, and it travels
in the URL path. These helpers redact it (and other token-like values)
before anything is logged or raised.

Examples:
    >>> sanitize_url("https://discordapp.com/api/v7/webhooks/123/secret_token?wait=false")
    'https://discordapp.com/api/v7/webhooks/123/<REDACTED>?wait=false'

    >>> sanitize_value({"token": "abc", "attempts": 2})
    {'token': '<REDACTED>', 'attempts': 2}
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Final, TypeIs

REDACTED: Final[str] = "<REDACTED>"

# .../webhooks/<id>/<token>, with or without an API version segment
_WEBHOOK_TOKEN_PATTERN = re.compile(
    r"(/webhooks/\d+/)([^/?#\s]+)",
    re.IGNORECASE,
)

_GENERIC_TOKEN_IN_QUERY = re.compile(
    r"([?&](?:token|api[-_]?key|auth|secret)=)([^&#\s]+)",
    re.IGNORECASE,
)

_SENSITIVE_FIELD_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in [
        r".*token.*",
        r".*secret.*",
        r".*password.*",
        r".*credential.*",
        r".*authorization.*",
        r".*webhook_url.*",
    ]
]


def is_sensitive_field(field_name: str) -> bool:
    """Check if a field name indicates sensitive data.

    Examples:
        >>> is_sensitive_field("token")
        True
        >>> is_sensitive_field("username")
        False
    """
    return any(pattern.match(field_name) for pattern in _SENSITIVE_FIELD_PATTERNS)


def sanitize_url(url: str) -> str:
    """Redact webhook tokens and token query parameters from a string."""
    if not url:
        return url
    sanitized = _WEBHOOK_TOKEN_PATTERN.sub(rf"\1{REDACTED}", url)
    return _GENERIC_TOKEN_IN_QUERY.sub(rf"\1{REDACTED}", sanitized)


def _is_primitive(value: object) -> TypeIs[str | int | float | bool | None]:
    return isinstance(value, (str, int, float, bool, type(None)))


def _is_mapping(value: object) -> TypeIs[Mapping[str, object]]:
    return isinstance(value, Mapping)


def _is_sequence(value: object) -> TypeIs[Sequence[object]]:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def sanitize_value(value: object, *, field_name: str | None = None) -> object:
    """Recursively sanitize sensitive values from structured data.

    Args:
        value: The value to sanitize
        field_name: Optional field name for context-aware sanitization

    Returns:
        The value with secrets replaced by ``REDACTED``
    """
    if field_name and is_sensitive_field(field_name):
        return REDACTED

    if _is_primitive(value):
        if type(value) is str:
            return sanitize_url(value)
        return value

    if _is_mapping(value):
        return {key: sanitize_value(val, field_name=str(key)) for key, val in value.items()}

    if _is_sequence(value):
        items = [sanitize_value(item) for item in value]
        return tuple(items) if isinstance(value, tuple) else items

    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"

    return sanitize_url(str(value))


def sanitize_exception(exc: BaseException) -> str:
    """Render an exception as ``Type: message`` with secrets redacted.

    Examples:
        >>> sanitize_exception(ValueError("bad url /webhooks/1/abc"))
        'ValueError: bad url /webhooks/1/<REDACTED>'
    """
    return f"{type(exc).__name__}: {sanitize_url(str(exc))}"


def sanitize_args(args: tuple[object, ...]) -> tuple[object, ...]:
    """Sanitize a tuple of logging arguments.

    Only strings and mappings are rewritten. Other arguments keep their type
    so ``%d`` and ``%r`` conversions still apply to the original object; the
    formatted message is redacted again afterwards.
    """
    return tuple(sanitize_value(arg) if isinstance(arg, (str, Mapping)) else arg for arg in args)
