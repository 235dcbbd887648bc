"""Handshake message encoding and decoding."""

from dataclasses import dataclass

from .types import ELEMENT_SIZE, EncodingError


@dataclass(frozen=True)
class HandshakeMessage:
    """
    A handshake message (MessageA or MessageB).

    Format:
        [0..31]   element (encoded group element, 32 bytes)
        [32..]    context (the context bytes the generator was derived from)
    """

    element: bytes  # 32 bytes
    context: bytes  # variable, may be empty


def encode_message(message: HandshakeMessage) -> bytes:
    """Encode a handshake message to bytes."""
    return message.element + message.context


def decode_message(data: bytes, element_size: int = ELEMENT_SIZE) -> HandshakeMessage:
    """
    Split a handshake message into its element and context.

    Only the framing is checked here; element validity is the group's job.

    Raises:
        EncodingError: If data is shorter than one group element.
    """
    if len(data) < element_size:
        raise EncodingError(
            f"Message too short: {len(data)} bytes (minimum {element_size})"
        )

    return HandshakeMessage(
        element=bytes(data[:element_size]),
        context=bytes(data[element_size:]),
    )
