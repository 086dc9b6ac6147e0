"""Immutable webhook message value type."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Final

from webhook_dispatch.errors import MessageValidationError
from webhook_dispatch.send.attachment import Attachment, FileInput
from webhook_dispatch.send.embed import Embed

MAX_CONTENT_LENGTH: Final[int] = 2000
MAX_EMBEDS: Final[int] = 10
MAX_FILES: Final[int] = 10


@dataclass(slots=True, frozen=True)
class WebhookMessage:
    """A fully validated message ready to be encoded and sent.

    Instances are produced by ``WebhookMessageBuilder.build`` (or the factory
    classmethods below) and can be sent any number of times.
    """

    content: str | None = None
    username: str | None = None
    avatar_url: str | None = None
    tts: bool = False
    embeds: tuple[Embed, ...] = ()
    attachments: tuple[Attachment, ...] = ()

    def __post_init__(self) -> None:
        if not (self.content and self.content.strip()) and not self.embeds and not self.attachments:
            msg = "Cannot build an empty message: set content, add an embed or attach a file"
            raise MessageValidationError(msg)
        if self.content is not None and len(self.content) > MAX_CONTENT_LENGTH:
            msg = f"Message content cannot exceed {MAX_CONTENT_LENGTH} characters"
            raise MessageValidationError(msg)
        if len(self.embeds) > MAX_EMBEDS:
            msg = f"Cannot send more than {MAX_EMBEDS} embeds"
            raise MessageValidationError(msg)
        if len(self.attachments) > MAX_FILES:
            msg = f"Cannot send more than {MAX_FILES} files"
            raise MessageValidationError(msg)
        names = [attachment.name for attachment in self.attachments]
        if len(set(names)) != len(names):
            msg = "Attachment names must be unique within a message"
            raise MessageValidationError(msg)

    @property
    def is_file(self) -> bool:
        """Whether the message must be sent as multipart."""
        return bool(self.attachments)

    @classmethod
    def from_content(cls, content: str) -> WebhookMessage:
        return cls(content=content)

    @classmethod
    def from_embeds(cls, *embeds: Embed | Iterable[Embed]) -> WebhookMessage:
        """Build a message holding only embeds.

        Accepts embeds as separate arguments or as one iterable.
        """
        from webhook_dispatch.send.builder import WebhookMessageBuilder

        return WebhookMessageBuilder().add_embeds(*embeds).build()

    @classmethod
    def from_files(cls, *args: Mapping[str, FileInput] | str | FileInput) -> WebhookMessage:
        """Build a message holding only attachments.

        Either a single mapping of name to source, or alternating
        ``name, source`` arguments:

        >>> WebhookMessage.from_files("a.txt", b"a", "b.txt", b"b").is_file
        True
        """
        from webhook_dispatch.send.builder import WebhookMessageBuilder

        builder = WebhookMessageBuilder()
        if len(args) == 1 and isinstance(args[0], Mapping):
            for name, source in args[0].items():
                _ = builder.add_file(source, name)
            return builder.build()

        if len(args) % 2:
            msg = "File arguments must come in name/source pairs"
            raise MessageValidationError(msg)
        for index in range(0, len(args), 2):
            name, source = args[index], args[index + 1]
            if not isinstance(name, str):
                msg = f"Expected a file name at position {index}, got {type(name).__name__}"
                raise MessageValidationError(msg)
            if isinstance(source, Mapping):
                msg = f"Expected a file source at position {index + 1}, got a mapping"
                raise MessageValidationError(msg)
            _ = builder.add_file(source, name)
        return builder.build()
