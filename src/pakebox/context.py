"""Context binding for handshakes."""

from dataclasses import dataclass

from .types import LENGTH_PREFIX_SIZE, EncodingError, length_prefixed


@dataclass(frozen=True)
class ContextInfo:
    """
    Public values both parties bind into the password-derived generator.

    Two handshakes with the same password but different context produce
    unrelated keys. All fields empty encodes to empty bytes, which is the
    context the host bridge uses when none is given.

    Wire format (each field length-prefixed, 4-byte big-endian):
        lv(initiator_id) || lv(responder_id) || lv(associated_data)
    """

    initiator_id: str = ""
    responder_id: str = ""
    associated_data: bytes = b""

    def is_empty(self) -> bool:
        return not (self.initiator_id or self.responder_id or self.associated_data)

    def encode(self) -> bytes:
        """Encode to the opaque context bytes accepted by the handshake."""
        if self.is_empty():
            return b""
        return length_prefixed(
            self.initiator_id.encode("utf-8"),
            self.responder_id.encode("utf-8"),
            self.associated_data,
        )

    @classmethod
    def decode(cls, data: bytes) -> "ContextInfo":
        """
        Decode context bytes produced by ``encode``.

        Raises:
            EncodingError: If the data is truncated, has trailing bytes,
                or the identities are not valid UTF-8.
        """
        if not data:
            return cls()

        fields = []
        offset = 0
        for _ in range(3):
            if offset + LENGTH_PREFIX_SIZE > len(data):
                raise EncodingError("Context data truncated")
            size = int.from_bytes(data[offset : offset + LENGTH_PREFIX_SIZE], byteorder="big")
            offset += LENGTH_PREFIX_SIZE
            if offset + size > len(data):
                raise EncodingError("Context data truncated")
            fields.append(bytes(data[offset : offset + size]))
            offset += size

        if offset != len(data):
            raise EncodingError(f"Context data has {len(data) - offset} trailing bytes")

        try:
            initiator_id = fields[0].decode("utf-8")
            responder_id = fields[1].decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError(f"Context identity is not valid UTF-8: {e}") from e

        return cls(
            initiator_id=initiator_id,
            responder_id=responder_id,
            associated_data=fields[2],
        )
