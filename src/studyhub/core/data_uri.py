"""Base64 data URI helpers.

Documents reach the extraction flow as ``data:<mimetype>;base64,<data>``.
"""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass

DATA_URI_PATTERN = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?P<params>(?:;[\w-]+=[^;,]*)*);base64,(?P<data>.*)$",
    re.DOTALL,
)


class DataUriError(ValueError):
    """Raised when a data URI is malformed."""

    pass


@dataclass
class DataUri:
    """A decoded data URI."""

    mime_type: str
    data: bytes
    encoded: str

    @property
    def size(self) -> int:
        return len(self.data)


def parse_data_uri(uri: str) -> DataUri:
    """Decode a base64 data URI.

    Raises:
        DataUriError: If the URI is not ``data:<mime>;base64,<data>``
            or the payload is not valid base64.
    """
    match = DATA_URI_PATTERN.match(uri.strip())
    if not match:
        raise DataUriError(
            "Expected format: 'data:<mimetype>;base64,<encoded_data>'"
        )

    encoded = re.sub(r"\s+", "", match.group("data"))
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DataUriError(f"Invalid base64 payload: {e}") from e

    return DataUri(mime_type=match.group("mime").lower(), data=data, encoded=encoded)


def to_data_uri(data: bytes, mime_type: str) -> str:
    """Encode bytes as a base64 data URI."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
