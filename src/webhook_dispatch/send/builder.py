"""Mutable builder that validates and assembles ``WebhookMessage`` instances."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Self

from webhook_dispatch.errors import MessageValidationError
from webhook_dispatch.send.attachment import Attachment, FileInput, deduplicate_name, read_attachment
from webhook_dispatch.send.embed import Embed
from webhook_dispatch.send.message import MAX_CONTENT_LENGTH, MAX_EMBEDS, MAX_FILES, WebhookMessage

logger = logging.getLogger(__name__)


class WebhookMessageBuilder:
    """Accumulates message parts, then freezes them with ``build``.

    The builder is reusable: ``reset`` returns it to the empty state and
    messages built earlier are unaffected by later mutation.

    Example:
        >>> message = (
        ...     WebhookMessageBuilder()
        ...     .set_content("Deployed")
        ...     .set_username("ci")
        ...     .add_file(b"log output", "build.log")
        ...     .build()
        ... )
    """

    def __init__(self) -> None:
        self._content: str | None = None
        self._username: str | None = None
        self._avatar_url: str | None = None
        self._tts: bool = False
        self._embeds: list[Embed] = []
        self._files: list[Attachment] = []

    def set_content(self, content: str | None) -> Self:
        if content is not None and len(content) > MAX_CONTENT_LENGTH:
            msg = f"Message content cannot exceed {MAX_CONTENT_LENGTH} characters"
            raise MessageValidationError(msg)
        self._content = content
        return self

    def append(self, content: str) -> Self:
        """Append text to the current content."""
        return self.set_content((self._content or "") + content)

    def set_username(self, username: str | None) -> Self:
        if username is not None:
            username = username.strip() or None
        self._username = username
        return self

    def set_avatar_url(self, avatar_url: str | None) -> Self:
        self._avatar_url = avatar_url
        return self

    def set_tts(self, tts: bool) -> Self:
        self._tts = tts
        return self

    def add_embeds(self, *embeds: Embed | Iterable[Embed]) -> Self:
        """Append embeds, given individually or as iterables.

        Raises:
            MessageValidationError: If the message would exceed the embed limit
        """
        flattened: list[Embed] = []
        for item in embeds:
            if isinstance(item, Embed):
                flattened.append(item)
            else:
                flattened.extend(item)
        if len(self._embeds) + len(flattened) > MAX_EMBEDS:
            msg = f"Cannot add more than {MAX_EMBEDS} embeds to a message"
            raise MessageValidationError(msg)
        self._embeds.extend(flattened)
        return self

    def add_file(self, source: FileInput, name: str | None = None) -> Self:
        """Attach a file from a path, a binary stream, or raw bytes.

        The source is read immediately. When ``name`` collides with an
        existing attachment, the new one is renamed with a numeric suffix.

        Args:
            source: Path, readable binary stream, bytes-like object, or
                ``AttachmentSource``
            name: File name; derived from the path when omitted

        Raises:
            MessageValidationError: If the file limit is reached, no name can
                be determined, or the source cannot be read
        """
        if len(self._files) >= MAX_FILES:
            msg = f"Cannot add more than {MAX_FILES} files to a message"
            raise MessageValidationError(msg)
        attachment = read_attachment(source, name)
        unique_name = deduplicate_name(attachment.name, {existing.name for existing in self._files})
        if unique_name != attachment.name:
            logger.debug("Renamed duplicate attachment %r to %r", attachment.name, unique_name)
            attachment = Attachment(name=unique_name, data=attachment.data)
        self._files.append(attachment)
        return self

    @property
    def file_count(self) -> int:
        return len(self._files)

    def is_empty(self) -> bool:
        """Whether there is nothing to send.

        Username, avatar and TTS only modify a message, so they are ignored.
        """
        return not (self._content and self._content.strip()) and not self._embeds and not self._files

    def reset(self) -> Self:
        self._content = None
        self._username = None
        self._avatar_url = None
        self._tts = False
        self._embeds.clear()
        self._files.clear()
        return self

    def build(self) -> WebhookMessage:
        """Freeze the builder into an immutable message.

        Raises:
            MessageValidationError: If the builder is empty or over a limit
        """
        if self.is_empty():
            msg = "Cannot build an empty message: set content, add an embed or attach a file"
            raise MessageValidationError(msg)
        return WebhookMessage(
            content=self._content,
            username=self._username,
            avatar_url=self._avatar_url,
            tts=self._tts,
            embeds=tuple(self._embeds),
            attachments=tuple(self._files),
        )
