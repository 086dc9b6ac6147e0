"""File attachments and the sources they are read from.

Every source is drained exactly once, when it is added to a builder, so a
built message only ever holds bytes: no file handles or streams travel through
the send queue.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import BinaryIO

from webhook_dispatch.errors import MessageValidationError
from webhook_dispatch.types.protocols import AttachmentSource

type FileInput = str | os.PathLike[str] | BinaryIO | bytes | bytearray | memoryview | AttachmentSource


@dataclass(slots=True, frozen=True)
class Attachment:
    """A named binary payload owned by a message."""

    name: str
    data: bytes

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            msg = "Attachment name must not be empty"
            raise MessageValidationError(msg)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(slots=True, frozen=True)
class PathSource:
    """Reads an attachment from the filesystem."""

    path: Path

    def read_all_bytes(self) -> bytes:
        try:
            return self.path.read_bytes()
        except OSError as exc:
            raise MessageValidationError(f"Cannot read attachment {self.path.name!r}: {exc}") from exc

    @property
    def default_name(self) -> str:
        return self.path.name


@dataclass(slots=True, frozen=True)
class StreamSource:
    """Drains a readable binary stream and closes it."""

    stream: BinaryIO

    def read_all_bytes(self) -> bytes:
        try:
            with self.stream:
                return bytes(self.stream.read())
        except (OSError, ValueError) as exc:
            raise MessageValidationError(f"Cannot read attachment stream: {exc}") from exc


@dataclass(slots=True, frozen=True)
class BytesSource:
    """Copies raw bytes so later mutation of the caller's buffer is invisible."""

    data: bytes | bytearray | memoryview

    def read_all_bytes(self) -> bytes:
        return bytes(self.data)


def to_source(value: FileInput) -> AttachmentSource:
    """Normalize any supported input into an ``AttachmentSource``."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return BytesSource(value)
    if isinstance(value, (str, os.PathLike)):
        return PathSource(Path(value))
    if isinstance(value, AttachmentSource):
        return value
    if hasattr(value, "read"):
        return StreamSource(value)
    msg = f"Unsupported attachment source: {type(value).__name__}"
    raise MessageValidationError(msg)


def derive_name(source: AttachmentSource, name: str | None) -> str:
    """Pick the attachment name: explicit first, then the source's own."""
    if name:
        return name
    if isinstance(source, PathSource):
        return source.default_name
    stream_name = getattr(getattr(source, "stream", None), "name", None)
    if isinstance(stream_name, str) and stream_name:
        return PurePath(stream_name).name
    msg = "An attachment name is required for stream and byte sources"
    raise MessageValidationError(msg)


def read_attachment(value: FileInput, name: str | None = None) -> Attachment:
    """Resolve a source eagerly into an ``Attachment``."""
    source = to_source(value)
    resolved_name = derive_name(source, name)
    return Attachment(name=resolved_name, data=source.read_all_bytes())


def deduplicate_name(name: str, taken: set[str]) -> str:
    """Return ``name``, or a suffixed variant not in ``taken``.

    ``cat.png`` becomes ``cat (1).png``, then ``cat (2).png``.
    """
    if name not in taken:
        return name
    path = PurePath(name)
    stem, suffix = (path.stem, path.suffix) if path.stem else (name, "")
    counter = 1
    while True:
        candidate = f"{stem} ({counter}){suffix}"
        if candidate not in taken:
            return candidate
        counter += 1
