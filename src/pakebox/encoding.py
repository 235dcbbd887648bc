"""Text-safe encoding for byte strings crossing the host boundary."""

import base64
import binascii
import re

from .types import EncodingError

_URLSAFE_RE = re.compile(r"[A-Za-z0-9_-]*={0,2}")


def encode_text_safe(data: bytes) -> str:
    """Encode bytes as padded URL-safe base64."""
    return base64.urlsafe_b64encode(data).decode("ascii")


def decode_text_safe(text: str) -> bytes:
    """
    Decode URL-safe base64, with or without padding.

    Raises:
        EncodingError: If the text contains characters outside the URL-safe
            alphabet, has the wrong length or padding, or is not the
            canonical encoding of its bytes.
    """
    if not isinstance(text, str):
        raise EncodingError(f"Expected str, got {type(text).__name__}")

    if not _URLSAFE_RE.fullmatch(text):
        raise EncodingError("Invalid characters in URL-safe base64")

    unpadded = text.rstrip("=")
    padding = -len(unpadded) % 4
    if padding == 3:
        raise EncodingError("Invalid URL-safe base64 length")
    if len(text) != len(unpadded) and len(text) != len(unpadded) + padding:
        raise EncodingError("Invalid URL-safe base64 padding")

    try:
        data = base64.b64decode(unpadded + "=" * padding, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncodingError(f"Invalid URL-safe base64: {e}") from e

    # Unused trailing bits must be zero
    if encode_text_safe(data).rstrip("=") != unpadded:
        raise EncodingError("Non-canonical URL-safe base64")
    return data
