"""Unit tests for the WebhookMessage value type and its factories."""

from __future__ import annotations

import dataclasses
import io
from pathlib import Path

import pytest

from webhook_dispatch.errors import MessageValidationError
from webhook_dispatch.send.attachment import Attachment
from webhook_dispatch.send.embed import Embed
from webhook_dispatch.send.message import WebhookMessage


class TestValidation:
    """Test invariants enforced on construction."""

    def test_empty_message_rejected(self) -> None:
        with pytest.raises(MessageValidationError):
            _ = WebhookMessage()

    def test_blank_content_rejected(self) -> None:
        with pytest.raises(MessageValidationError):
            _ = WebhookMessage(content="  ", username="bot")

    def test_content_limit(self) -> None:
        with pytest.raises(MessageValidationError):
            _ = WebhookMessage(content="x" * 2001)

    def test_embed_limit(self) -> None:
        with pytest.raises(MessageValidationError):
            _ = WebhookMessage(embeds=tuple(Embed(title=str(index)) for index in range(11)))

    def test_file_limit(self) -> None:
        with pytest.raises(MessageValidationError):
            _ = WebhookMessage(attachments=tuple(Attachment(name=f"{index}", data=b"") for index in range(11)))

    def test_duplicate_attachment_names_rejected(self) -> None:
        """Test that directly constructed messages cannot carry duplicate names."""
        with pytest.raises(MessageValidationError, match="unique"):
            _ = WebhookMessage(attachments=(Attachment(name="a", data=b"1"), Attachment(name="a", data=b"2")))

    def test_message_is_immutable(self) -> None:
        message = WebhookMessage(content="hi")
        with pytest.raises(dataclasses.FrozenInstanceError):
            message.content = "changed"  # pyright: ignore[reportAttributeAccessIssue]

    def test_validation_error_is_value_error(self) -> None:
        """Test that validation errors can be caught as ValueError."""
        with pytest.raises(ValueError):
            _ = WebhookMessage()


class TestFactories:
    """Test the classmethod constructors."""

    def test_from_content(self) -> None:
        assert WebhookMessage.from_content("Hello World") == WebhookMessage(content="Hello World")

    def test_from_embeds_varargs_and_iterable(self) -> None:
        """Test that embeds may be given separately or as one iterable."""
        first, second = Embed(title="a"), Embed(title="b")

        assert WebhookMessage.from_embeds(first, second).embeds == (first, second)
        assert WebhookMessage.from_embeds([first, second]).embeds == (first, second)

    def test_from_embeds_requires_one(self) -> None:
        with pytest.raises(MessageValidationError):
            _ = WebhookMessage.from_embeds()

    def test_from_files_mapping(self) -> None:
        message = WebhookMessage.from_files({"a.txt": b"a", "b.txt": b"b"})
        assert [attachment.name for attachment in message.attachments] == ["a.txt", "b.txt"]
        assert message.is_file

    def test_from_files_pairs(self, tmp_path: Path) -> None:
        """Test alternating name/source arguments with path, stream and bytes sources."""
        cat_path = tmp_path / "cat-source.png"
        _ = cat_path.write_bytes(b"cat")

        message = WebhookMessage.from_files("cat.png", cat_path, "dog.png", io.BytesIO(b"dog"), "bird.png", b"bird")

        assert [attachment.name for attachment in message.attachments] == ["cat.png", "dog.png", "bird.png"]
        assert [attachment.data for attachment in message.attachments] == [b"cat", b"dog", b"bird"]

    def test_from_files_odd_pairs_rejected(self) -> None:
        with pytest.raises(MessageValidationError, match="pairs"):
            _ = WebhookMessage.from_files("a.txt", b"a", "b.txt")

    def test_from_files_name_must_be_string(self) -> None:
        with pytest.raises(MessageValidationError, match="position 0"):
            _ = WebhookMessage.from_files(b"a", "a.txt")

    def test_from_files_without_arguments_rejected(self) -> None:
        with pytest.raises(MessageValidationError):
            _ = WebhookMessage.from_files()
