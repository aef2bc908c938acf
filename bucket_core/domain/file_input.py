"""
File input variants and their normalization into a byte source.

A file handed to the storage service is either inline data (a base64
string, optionally wrapped in a data-URI) or a file already staged on the
local filesystem. Both are turned into a ByteSource the storage client
can stream from.

Decoding of inline data is deliberately lenient: characters outside the
base64 alphabet are skipped and bad padding is repaired, so garbage input
produces garbage bytes rather than an error.
"""

from __future__ import annotations

import base64
import io
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, BinaryIO, Literal, Union

from pydantic import BaseModel

# data:image/<subtype>;base64,<payload>
DATA_URI_IMAGE_PATTERN = re.compile(r"^data:image/([\w+]+);base64,(.+)", re.DOTALL)

_NON_ALPHABET = re.compile(r"[^A-Za-z0-9+/]")
_URLSAFE_TO_STANDARD = str.maketrans("-_", "+/")


class InlineData(BaseModel):
    """Base64 payload carried in the request itself."""

    kind: Literal["inline"] = "inline"
    data: str

    model_config = {"frozen": True}


class StagedFile(BaseModel):
    """File already written to a local, transient location."""

    kind: Literal["staged"] = "staged"
    path: Path

    model_config = {"frozen": True}


FileInput = Union[InlineData, StagedFile]


def classify_file_input(value: Any) -> FileInput:
    """
    Pick the FileInput variant for a loosely typed value.

    Strings are always inline data, whatever they contain. Mappings and
    objects carrying a non-empty ``path`` (upload-middleware style file
    records) and path-like objects are staged files.

    Args:
        value: A FileInput, a string, or a staged-file record.

    Returns:
        The matching FileInput variant.

    Raises:
        TypeError: If the value is neither a string nor carries a path.
    """
    if isinstance(value, (InlineData, StagedFile)):
        return value
    if isinstance(value, str):
        return InlineData(data=value)
    if isinstance(value, os.PathLike):
        return StagedFile(path=Path(value))

    path = value.get("path") if isinstance(value, Mapping) else getattr(value, "path", None)
    if path:
        return StagedFile(path=Path(path))

    raise TypeError(
        f"Unsupported file input of type {type(value).__name__}: "
        "expected a base64 string or an object with a 'path'"
    )


def extract_base64_payload(data: str) -> str:
    """
    Strip any data-URI header from an inline payload.

    An image data-URI yields its payload. Otherwise everything after the
    first comma is taken, which covers data-URIs with other or missing
    MIME types. A string without a comma is returned whole.
    """
    match = DATA_URI_IMAGE_PATTERN.match(data)
    if match:
        return match.group(2)

    _, comma, payload = data.partition(",")
    if comma:
        return payload
    return data


def decode_base64_lenient(payload: str) -> bytes:
    """
    Decode base64 without ever failing.

    Both the standard and URL-safe alphabets are accepted. Decoding stops
    at the first padding character, anything else outside the alphabet is
    ignored, and a trailing lone character is dropped.
    """
    cleaned = payload.split("=", 1)[0].translate(_URLSAFE_TO_STANDARD)
    cleaned = _NON_ALPHABET.sub("", cleaned)

    # A single leftover sextet cannot form a byte
    if len(cleaned) % 4 == 1:
        cleaned = cleaned[:-1]

    cleaned += "=" * (-len(cleaned) % 4)
    return base64.b64decode(cleaned)


class ByteSource:
    """
    Canonical byte stream handed to the storage client.

    Use as a context manager so staged files are closed after upload.

    Attributes:
        stream: Readable binary stream positioned at the start.
        length: Total number of bytes in the stream.
        origin: "inline" or "staged".
    """

    def __init__(self, stream: BinaryIO, length: int, origin: str):
        self.stream = stream
        self.length = length
        self.origin = origin

    @classmethod
    def from_bytes(cls, content: bytes) -> "ByteSource":
        return cls(io.BytesIO(content), len(content), "inline")

    @classmethod
    def from_path(cls, path: Path) -> "ByteSource":
        # The handle is read in parts by the client, never loaded whole
        handle = open(path, "rb")
        try:
            length = os.fstat(handle.fileno()).st_size
        except OSError:
            handle.close()
            raise
        return cls(handle, length, "staged")

    @property
    def is_streamed(self) -> bool:
        return self.origin == "staged"

    def close(self) -> None:
        self.stream.close()

    def __enter__(self) -> "ByteSource":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ByteSource(origin={self.origin!r}, length={self.length})"


def normalize(file_input: FileInput) -> ByteSource:
    """
    Turn a FileInput into a ByteSource.

    Inline data is decoded into memory. Staged files are opened for
    streaming.

    Raises:
        OSError: If a staged file cannot be opened.
    """
    if isinstance(file_input, StagedFile):
        return ByteSource.from_path(file_input.path)

    payload = extract_base64_payload(file_input.data)
    return ByteSource.from_bytes(decode_base64_lenient(payload))
