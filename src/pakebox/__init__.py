"""
pakebox - type a short code, get a secure channel

Password-authenticated key exchange over edwards25519, HKDF-SHA256 key
derivation and a NaCl secretbox channel.
"""

from .types import (
    KEY_SIZE,
    NONCE_SIZE,
    ELEMENT_SIZE,
    SHARED_SECRET_SIZE,
    PakeError,
    EncodingError,
    InvalidMessageError,
    InvalidStateError,
    AuthenticationError,
    InternalError,
    SessionLimitError,
)
from .memory import SecretBuffer, wipe
from .group import Group, Ed25519Group
from .context import ContextInfo
from .messages import HandshakeMessage, encode_message, decode_message
from .handshake import (
    Role,
    SessionStatus,
    Session,
    start,
    exchange,
    finish,
    transcript_hash,
)
from .kdf import derive_key
from .channel import (
    Cipher,
    SecretBoxCipher,
    XChaCha20Poly1305Cipher,
    SecureChannel,
    seal_message,
    open_message,
)
from .encoding import encode_text_safe, decode_text_safe
from .registry import RegistryConfig, SessionRegistry
from .barcode import encode_barcode
from .bridge import (
    BridgeConfig,
    StartResult,
    ExchangeResult,
    PakeBridge,
    default_bridge,
)

__version__ = "0.1.0"

__all__ = [
    # Constants
    "KEY_SIZE",
    "NONCE_SIZE",
    "ELEMENT_SIZE",
    "SHARED_SECRET_SIZE",
    # Errors
    "PakeError",
    "EncodingError",
    "InvalidMessageError",
    "InvalidStateError",
    "AuthenticationError",
    "InternalError",
    "SessionLimitError",
    # Memory
    "SecretBuffer",
    "wipe",
    # Group
    "Group",
    "Ed25519Group",
    # Context
    "ContextInfo",
    # Messages
    "HandshakeMessage",
    "encode_message",
    "decode_message",
    # Handshake
    "Role",
    "SessionStatus",
    "Session",
    "start",
    "exchange",
    "finish",
    "transcript_hash",
    # Key derivation
    "derive_key",
    # Channel
    "Cipher",
    "SecretBoxCipher",
    "XChaCha20Poly1305Cipher",
    "SecureChannel",
    "seal_message",
    "open_message",
    # Encoding
    "encode_text_safe",
    "decode_text_safe",
    # Registry
    "RegistryConfig",
    "SessionRegistry",
    # Barcode
    "encode_barcode",
    # Bridge
    "BridgeConfig",
    "StartResult",
    "ExchangeResult",
    "PakeBridge",
    "default_bridge",
]
