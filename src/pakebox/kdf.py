"""Key derivation from the handshake's shared secret."""

from typing import Union

from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.hashes import SHA256

from .types import KEY_SIZE, EncodingError


def derive_key(shared_secret: Union[bytes, bytearray]) -> bytes:
    """
    Derive the 32-byte channel key from a raw shared secret using HKDF-SHA256.

    Salt and info are both empty: the shared secret is already a uniform
    hash output bound to the transcript.

    Args:
        shared_secret: Raw shared secret from ``exchange`` or ``finish``.

    Returns:
        32-byte symmetric key.
    """
    if len(shared_secret) == 0:
        raise EncodingError("Shared secret is empty")

    hkdf = HKDF(
        algorithm=SHA256(),
        length=KEY_SIZE,
        salt=None,
        info=None,
    )
    return hkdf.derive(bytes(shared_secret))
