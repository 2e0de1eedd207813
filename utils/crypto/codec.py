"""
Text-safe encodings for binary payloads crossing the HTTP boundary.
"""

import base64
import binascii
from urllib.parse import quote, unquote

# Characters left untouched by JavaScript's encodeURIComponent besides
# alphanumerics.
_URI_COMPONENT_SAFE = "-_.!~*'()"


class DecodeError(ValueError):
    """Raised when text cannot be decoded back into bytes."""


def encode_bytes(data: bytes) -> str:
    """Return the standard-alphabet base64 form of *data* without line breaks."""

    if not isinstance(data, (bytes, bytearray)):
        raise TypeError("data must be bytes-like")
    return base64.b64encode(bytes(data)).decode("ascii")


def decode_text(text: str) -> bytes:
    """Decode base64 *text* produced by :func:`encode_bytes`.

    Raises:
        DecodeError: If *text* contains characters outside the base64
            alphabet or is incorrectly padded.
    """
    if not isinstance(text, (str, bytes, bytearray)):
        raise DecodeError("Base64 input must be text")
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError):
        raise DecodeError("Invalid base64 data") from None


def url_encode(text: str) -> str:
    """Percent-encode *text* the way ``encodeURIComponent`` does."""

    return quote(text, safe=_URI_COMPONENT_SAFE)


def url_decode(text: str) -> str:
    """Reverse :func:`url_encode`; ``+`` is kept as a literal plus sign."""

    return unquote(text)
