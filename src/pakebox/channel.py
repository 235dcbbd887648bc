"""
Secure channel over a derived key.

Sealed messages are self-contained:

    [0..23]   nonce (24 bytes, fresh randomness per message)
    [24..]    ciphertext + 16-byte tag

Nonces are random rather than counter-based. With a 192-bit nonce space
this is safe for the handful of messages a pairing channel carries; a
high-volume channel should switch to a counter.
"""

import os
from abc import ABC, abstractmethod
from typing import Optional, Union

from nacl.exceptions import CryptoError
from nacl.secret import Aead, SecretBox

from .memory import SecretBuffer
from .types import (
    KEY_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
    AuthenticationError,
    EncodingError,
    InternalError,
    InvalidStateError,
)


class Cipher(ABC):
    """An authenticated cipher with a 24-byte nonce and 32-byte key."""

    nonce_size: int = NONCE_SIZE
    key_size: int = KEY_SIZE

    @abstractmethod
    def encrypt(self, key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
        """Return ciphertext + tag."""
        ...

    @abstractmethod
    def decrypt(self, key: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
        """Return plaintext, raising AuthenticationError if the tag is wrong."""
        ...


class SecretBoxCipher(Cipher):
    """XSalsa20-Poly1305 (NaCl secretbox)."""

    def encrypt(self, key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
        return SecretBox(key).encrypt(plaintext, nonce).ciphertext

    def decrypt(self, key: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
        try:
            return SecretBox(key).decrypt(ciphertext, nonce)
        except CryptoError as e:
            raise AuthenticationError("Message authentication failed") from e


class XChaCha20Poly1305Cipher(Cipher):
    """XChaCha20-Poly1305 (IETF AEAD construction, no associated data)."""

    def encrypt(self, key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
        return Aead(key).encrypt(plaintext, b"", nonce).ciphertext

    def decrypt(self, key: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
        try:
            return Aead(key).decrypt(ciphertext, b"", nonce)
        except CryptoError as e:
            raise AuthenticationError("Message authentication failed") from e


DEFAULT_CIPHER = SecretBoxCipher()


def _check_key(key: Union[bytes, bytearray], cipher: Cipher) -> bytes:
    if len(key) != cipher.key_size:
        raise EncodingError(f"Key must be {cipher.key_size} bytes, got {len(key)}")
    return bytes(key)


def seal_message(
    key: Union[bytes, bytearray],
    plaintext: bytes,
    cipher: Optional[Cipher] = None,
) -> bytes:
    """
    Encrypt and authenticate a message.

    Args:
        key: 32-byte derived key.
        plaintext: Message to seal.
        cipher: Cipher implementation (default: secretbox).

    Returns:
        nonce || ciphertext + tag

    Raises:
        EncodingError: If the key has the wrong length.
        InternalError: If the randomness source is unavailable.
    """
    cipher = cipher or DEFAULT_CIPHER
    key = _check_key(key, cipher)

    try:
        nonce = os.urandom(cipher.nonce_size)
    except (OSError, NotImplementedError) as e:
        raise InternalError(f"Randomness source unavailable: {e}") from e

    return nonce + cipher.encrypt(key, nonce, bytes(plaintext))


def open_message(
    key: Union[bytes, bytearray],
    message: bytes,
    cipher: Optional[Cipher] = None,
) -> bytes:
    """
    Verify and decrypt a sealed message.

    Args:
        key: 32-byte derived key.
        message: Output of ``seal_message``.
        cipher: Cipher implementation (default: secretbox).

    Returns:
        The plaintext.

    Raises:
        EncodingError: If the message is shorter than a nonce or the key
            has the wrong length.
        AuthenticationError: If the tag does not verify (wrong key,
            tampered data or truncated payload).
    """
    cipher = cipher or DEFAULT_CIPHER
    key = _check_key(key, cipher)

    if len(message) < cipher.nonce_size:
        raise EncodingError(
            f"Message too short: {len(message)} bytes (minimum {cipher.nonce_size})"
        )

    nonce = bytes(message[: cipher.nonce_size])
    payload = bytes(message[cipher.nonce_size :])
    if len(payload) < TAG_SIZE:
        raise AuthenticationError("Message authentication failed")
    return cipher.decrypt(key, nonce, payload)


class SecureChannel:
    """
    A derived key bound to a cipher, wiped when the channel is closed.

        with SecureChannel(key) as channel:
            sealed = channel.seal(b"hello")
    """

    def __init__(self, key: Union[bytes, bytearray], cipher: Optional[Cipher] = None) -> None:
        self.cipher = cipher or DEFAULT_CIPHER
        self._key = SecretBuffer(_check_key(key, self.cipher))

    @property
    def closed(self) -> bool:
        return self._key.wiped

    def seal(self, plaintext: bytes) -> bytes:
        """Seal a message under the channel key."""
        return seal_message(self._key_bytes(), plaintext, self.cipher)

    def open(self, message: bytes) -> bytes:
        """Open a message sealed under the channel key."""
        return open_message(self._key_bytes(), message, self.cipher)

    def close(self) -> None:
        """Wipe the channel key."""
        self._key.wipe()

    def _key_bytes(self) -> bytes:
        if self._key.wiped:
            raise InvalidStateError("Channel is closed")
        return self._key.value

    def __enter__(self) -> "SecureChannel":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
