"""Type definitions and constants for pakebox."""


# Group constants
ELEMENT_SIZE = 32
SCALAR_SIZE = 32
WIDE_SCALAR_SIZE = 64

# Handshake constants
SHARED_SECRET_SIZE = 64
LENGTH_PREFIX_SIZE = 4

# Channel constants
KEY_SIZE = 32
NONCE_SIZE = 24
TAG_SIZE = 16

# Domain separation tags
GENERATOR_DST = b"pakebox-v1-generator"
TRANSCRIPT_DST = b"pakebox-v1-transcript"


def length_prefixed(*parts: bytes) -> bytes:
    """Concatenate parts, each preceded by its 4-byte big-endian length."""
    out = bytearray()
    for part in parts:
        out += len(part).to_bytes(LENGTH_PREFIX_SIZE, byteorder="big")
        out += part
    return bytes(out)


# Exception types
class PakeError(Exception):
    """Base exception for pakebox errors."""
    pass


class EncodingError(PakeError):
    """Malformed text-safe encoding or wrong-length buffer."""
    pass


class InvalidMessageError(PakeError):
    """Handshake message carries an invalid or identity group element."""
    pass


class InvalidStateError(PakeError):
    """Handshake step invoked out of order or on a spent session."""
    pass


class AuthenticationError(PakeError):
    """Authentication tag verification failed."""
    pass


class InternalError(PakeError):
    """Randomness source or primitive failed."""
    pass


class SessionLimitError(InternalError):
    """Session registry is full."""

    def __init__(self, max_sessions: int) -> None:
        super().__init__(f"Session registry is full ({max_sessions} sessions)")
        self.max_sessions = max_sessions
