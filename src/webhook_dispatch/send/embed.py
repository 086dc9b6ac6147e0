"""Embed value types and the mutable embed builder."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Annotated, Final, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from webhook_dispatch.errors import MessageValidationError

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH: Final[int] = 256
MAX_DESCRIPTION_LENGTH: Final[int] = 2048
MAX_FIELDS: Final[int] = 25
MAX_FIELD_NAME_LENGTH: Final[int] = 256
MAX_FIELD_VALUE_LENGTH: Final[int] = 1024
MAX_FOOTER_LENGTH: Final[int] = 2048
MAX_AUTHOR_NAME_LENGTH: Final[int] = 256
MAX_EMBED_TOTAL_LENGTH: Final[int] = 6000


class _EmbedPart(BaseModel):
    """Common settings for immutable embed components."""

    model_config: ConfigDict = ConfigDict(  # pyright: ignore[reportIncompatibleVariableOverride]
        frozen=True,
        extra="forbid",
    )


class EmbedField(_EmbedPart):
    """A name/value pair rendered inside an embed."""

    name: Annotated[str, Field(min_length=1, max_length=MAX_FIELD_NAME_LENGTH)]
    value: Annotated[str, Field(min_length=1, max_length=MAX_FIELD_VALUE_LENGTH)]
    inline: bool = False


class EmbedFooter(_EmbedPart):
    """Footer line with an optional icon."""

    text: Annotated[str, Field(min_length=1, max_length=MAX_FOOTER_LENGTH)]
    icon_url: str | None = None


class EmbedAuthor(_EmbedPart):
    """Author line shown above the title."""

    name: Annotated[str, Field(min_length=1, max_length=MAX_AUTHOR_NAME_LENGTH)]
    url: str | None = None
    icon_url: str | None = None


class EmbedMedia(_EmbedPart):
    """Image or thumbnail reference."""

    url: str


class Embed(_EmbedPart):
    """One rich-content block.

    Field declaration order is the wire order used by the encoder.
    """

    title: Annotated[str | None, Field(max_length=MAX_TITLE_LENGTH)] = None
    description: Annotated[str | None, Field(max_length=MAX_DESCRIPTION_LENGTH)] = None
    url: str | None = None
    color: Annotated[int | None, Field(ge=0x000000, le=0xFFFFFF)] = None
    timestamp: datetime | None = None
    footer: EmbedFooter | None = None
    image: EmbedMedia | None = None
    thumbnail: EmbedMedia | None = None
    author: EmbedAuthor | None = None
    fields: Annotated[tuple[EmbedField, ...], Field(max_length=MAX_FIELDS)] = ()

    @field_validator("color", mode="before")
    @classmethod
    def normalize_color(cls, value: int | str | None) -> int | None:
        """Normalize color values, allowing hex strings."""
        if value is None or not isinstance(value, str):
            return value
        normalized = value.strip().lower().removeprefix("#").removeprefix("0x")
        if not normalized:
            msg = "Embed color string cannot be empty"
            raise ValueError(msg)
        return int(normalized, 16)

    @model_validator(mode="after")
    def check_total_length(self) -> Self:
        """Reject embeds whose combined text exceeds the endpoint limit."""
        total = self.text_length()
        if total > MAX_EMBED_TOTAL_LENGTH:
            msg = f"Embed text totals {total} characters, limit is {MAX_EMBED_TOTAL_LENGTH}"
            raise ValueError(msg)
        return self

    def text_length(self) -> int:
        """Count the characters the endpoint includes in its size limit."""
        total = len(self.title or "") + len(self.description or "")
        if self.footer is not None:
            total += len(self.footer.text)
        if self.author is not None:
            total += len(self.author.name)
        for embed_field in self.fields:
            total += len(embed_field.name) + len(embed_field.value)
        return total

    def is_empty(self) -> bool:
        """Whether the embed would render nothing."""
        return self == Embed()

    def to_payload(self) -> dict[str, object]:
        """Serialize to the wire object, omitting unset keys."""
        payload = self.model_dump(mode="json", exclude_none=True)
        if not self.fields:
            _ = payload.pop("fields", None)
        return payload


class EmbedBuilder:
    """Mutable accumulator for a single ``Embed``.

    Example:
        >>> embed = EmbedBuilder().set_title("Deploy").add_field("env", "prod").build()
    """

    def __init__(self, embed: Embed | None = None) -> None:
        self._values: dict[str, object] = {}
        self._fields: list[EmbedField] = []
        if embed is not None:
            self._values = {
                name: getattr(embed, name)
                for name in Embed.model_fields
                if name != "fields" and getattr(embed, name) is not None
            }
            self._fields = list(embed.fields)

    def set_title(self, title: str | None, url: str | None = None) -> Self:
        self._set("title", title)
        if url is not None:
            self._set("url", url)
        return self

    def set_description(self, description: str | None) -> Self:
        self._set("description", description)
        return self

    def set_url(self, url: str | None) -> Self:
        self._set("url", url)
        return self

    def set_color(self, color: int | str | None) -> Self:
        self._set("color", color)
        return self

    def set_timestamp(self, timestamp: datetime | None) -> Self:
        self._set("timestamp", timestamp)
        return self

    def set_footer(self, text: str | None, icon_url: str | None = None) -> Self:
        self._set("footer", None if text is None else {"text": text, "icon_url": icon_url})
        return self

    def set_image(self, url: str | None) -> Self:
        self._set("image", None if url is None else {"url": url})
        return self

    def set_thumbnail(self, url: str | None) -> Self:
        self._set("thumbnail", None if url is None else {"url": url})
        return self

    def set_author(self, name: str | None, url: str | None = None, icon_url: str | None = None) -> Self:
        self._set("author", None if name is None else {"name": name, "url": url, "icon_url": icon_url})
        return self

    def add_field(self, name: str, value: str, inline: bool = False) -> Self:
        """Append a field.

        Raises:
            MessageValidationError: If the field is invalid or the embed is full
        """
        if len(self._fields) >= MAX_FIELDS:
            msg = f"Cannot add more than {MAX_FIELDS} fields to an embed"
            raise MessageValidationError(msg)
        try:
            self._fields.append(EmbedField(name=name, value=value, inline=inline))
        except ValidationError as exc:
            raise MessageValidationError(f"Invalid embed field: {_summarize(exc)}") from exc
        return self

    def is_empty(self) -> bool:
        return not self._values and not self._fields

    def reset(self) -> Self:
        self._values.clear()
        self._fields.clear()
        return self

    def build(self) -> Embed:
        """Freeze the current state into an ``Embed``.

        Raises:
            MessageValidationError: If the embed is empty or breaks a limit
        """
        if self.is_empty():
            msg = "Cannot build an empty embed"
            raise MessageValidationError(msg)
        try:
            return Embed.model_validate({**self._values, "fields": tuple(self._fields)})
        except ValidationError as exc:
            raise MessageValidationError(f"Invalid embed: {_summarize(exc)}") from exc

    def _set(self, name: str, value: object) -> None:
        if value is None:
            _ = self._values.pop(name, None)
        else:
            self._values[name] = value


def _summarize(error: ValidationError) -> str:
    """Flatten pydantic errors into one readable line."""
    return "; ".join(
        f"{'.'.join(str(loc) for loc in err['loc']) or 'embed'}: {err['msg']}" for err in error.errors()
    )
