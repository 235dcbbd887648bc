"""
Host-facing entry points.

Every operation validates its inputs, runs the core, and returns a typed
result or ``None``. No failure detail crosses the boundary: a malformed
message, a failed tag check and an exhausted registry all look the same to
the caller, so the boundary is not an oracle. The distinct error kind is
logged at DEBUG for diagnosis.

    util = PakeBridge()
    started = util.start("some pass")
    answered = util.exchange("some pass", started.message_a)
    key_a = util.finish(started.session_handle, answered.message_b)
    util.open(key_a, util.seal(answered.key, "hello"))
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .barcode import encode_barcode as _encode_barcode
from .channel import Cipher, DEFAULT_CIPHER, open_message, seal_message
from .encoding import decode_text_safe, encode_text_safe
from .group import DEFAULT_GROUP, Group
from .handshake import exchange as _exchange
from .handshake import finish as _finish
from .handshake import start as _start
from .kdf import derive_key
from .memory import SecretBuffer
from .registry import RegistryConfig, SessionRegistry
from .types import KEY_SIZE, EncodingError, PakeError

logger = logging.getLogger(__name__)


@dataclass
class BridgeConfig:
    """Configuration for a PakeBridge."""
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    group: Optional[Group] = None
    cipher: Optional[Cipher] = None


@dataclass(frozen=True)
class StartResult:
    """Result of ``start``: the message to send and the handle to finish with."""
    message_a: str
    session_handle: str


@dataclass(frozen=True)
class ExchangeResult:
    """Result of ``exchange``: the reply to send and the derived key."""
    message_b: str
    key: bytes

    def __repr__(self) -> str:
        return f"ExchangeResult(message_b={self.message_b!r}, key=<{len(self.key)} bytes>)"


def _require_str(value: object, name: str) -> str:
    if not isinstance(value, str):
        raise EncodingError(f"{name} must be str, got {type(value).__name__}")
    return value


def _require_context(context: Optional[bytes]) -> bytes:
    if context is None:
        return b""
    if not isinstance(context, (bytes, bytearray)):
        raise EncodingError(f"context must be bytes, got {type(context).__name__}")
    return bytes(context)


def _require_key(key: object) -> bytes:
    if not isinstance(key, (bytes, bytearray)):
        raise EncodingError(f"key must be bytes, got {type(key).__name__}")
    if len(key) != KEY_SIZE:
        raise EncodingError(f"key must be {KEY_SIZE} bytes, got {len(key)}")
    return bytes(key)


def _derive(shared_secret: bytearray) -> bytes:
    with SecretBuffer.adopt(shared_secret) as secret:
        return derive_key(secret.value)


class PakeBridge:
    """
    The handshake, channel and barcode operations as null-on-failure calls.

    Initiator sessions live in the bridge's registry between ``start`` and
    ``finish``; callers only ever hold the opaque handle.
    """

    def __init__(self, config: Optional[BridgeConfig] = None) -> None:
        self.config = config or BridgeConfig()
        self.group = self.config.group or DEFAULT_GROUP
        self.cipher = self.config.cipher or DEFAULT_CIPHER
        self.registry = SessionRegistry(self.config.registry)

    # MARK: - Handshake

    def start(self, password: str, context: Optional[bytes] = None) -> Optional[StartResult]:
        """
        Begin a handshake as the initiator.

        Returns:
            StartResult, or None on failure.
        """
        try:
            password = _require_str(password, "password")
            context = _require_context(context)
            message_a, session = _start(password, context, self.group)
            try:
                handle = self.registry.register(session)
            except PakeError:
                session.fail()
                raise
        except PakeError as e:
            logger.debug("start failed: %s", type(e).__name__)
            return None

        logger.info("Started handshake session %s", handle)
        return StartResult(message_a=encode_text_safe(message_a), session_handle=handle)

    def exchange(
        self,
        password: str,
        message_a: str,
        context: Optional[bytes] = None,
    ) -> Optional[ExchangeResult]:
        """
        Answer a MessageA as the responder and derive the key.

        Returns:
            ExchangeResult, or None on failure.
        """
        try:
            password = _require_str(password, "password")
            context = _require_context(context)
            raw_a = decode_text_safe(_require_str(message_a, "message_a"))
            message_b, shared_secret = _exchange(password, context, raw_a, self.group)
            key = _derive(shared_secret)
        except PakeError as e:
            logger.debug("exchange failed: %s", type(e).__name__)
            return None

        logger.info("Answered handshake")
        return ExchangeResult(message_b=encode_text_safe(message_b), key=key)

    def finish(self, session_handle: str, message_b: str) -> Optional[bytes]:
        """
        Complete a handshake as the initiator and derive the key.

        The session is removed from the registry whether or not this
        succeeds; a failed handshake must be restarted from ``start``.

        Returns:
            32-byte key, or None on failure.
        """
        try:
            handle = _require_str(session_handle, "session_handle")
            session = self.registry.take(handle)
            try:
                raw_b = decode_text_safe(_require_str(message_b, "message_b"))
            except PakeError:
                session.fail()
                raise
            key = _derive(_finish(session, raw_b))
        except PakeError as e:
            logger.debug("finish failed: %s", type(e).__name__)
            return None

        logger.info("Finished handshake session %s", handle)
        return key

    def discard(self, session_handle: str) -> None:
        """Abandon an unfinished initiator session."""
        self.registry.discard(session_handle)

    # MARK: - Channel

    def seal(self, key: bytes, plaintext: str) -> Optional[str]:
        """
        Seal a text message under a derived key.

        Returns:
            Text-safe sealed message, or None on failure.
        """
        try:
            key = _require_key(key)
            plaintext = _require_str(plaintext, "plaintext")
            try:
                data = plaintext.encode("utf-8")
            except UnicodeEncodeError as e:
                raise EncodingError("plaintext is not encodable as UTF-8") from e
            sealed = seal_message(key, data, self.cipher)
        except PakeError as e:
            logger.debug("seal failed: %s", type(e).__name__)
            return None

        return encode_text_safe(sealed)

    def open(self, key: bytes, message: str) -> Optional[str]:
        """
        Open a text message sealed under a derived key.

        Returns:
            The plaintext, or None on failure.
        """
        try:
            key = _require_key(key)
            sealed = decode_text_safe(_require_str(message, "message"))
            plaintext = open_message(key, sealed, self.cipher)
        except PakeError as e:
            logger.debug("open failed: %s", type(e).__name__)
            return None

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("open failed: %s", EncodingError.__name__)
            return None

    # MARK: - Barcode

    def encode_barcode(self, text: str) -> Optional[bytes]:
        """
        Render text as a QR code PNG.

        Returns:
            PNG bytes, or None on failure.
        """
        if not isinstance(text, str):
            logger.debug("encode_barcode failed: %s", EncodingError.__name__)
            return None
        try:
            return _encode_barcode(text)
        except ValueError as e:
            logger.debug("encode_barcode failed: %s", type(e).__name__)
            return None


_default_bridge = PakeBridge()


def default_bridge() -> PakeBridge:
    """The process-wide bridge behind the module-level functions."""
    return _default_bridge


def start(password: str, context: Optional[bytes] = None) -> Optional[StartResult]:
    return default_bridge().start(password, context)


def exchange(
    password: str,
    message_a: str,
    context: Optional[bytes] = None,
) -> Optional[ExchangeResult]:
    return default_bridge().exchange(password, message_a, context)


def finish(session_handle: str, message_b: str) -> Optional[bytes]:
    return default_bridge().finish(session_handle, message_b)


def seal(key: bytes, plaintext: str) -> Optional[str]:
    return default_bridge().seal(key, plaintext)


def open(key: bytes, message: str) -> Optional[str]:
    return default_bridge().open(key, message)


def encode_barcode(text: str) -> Optional[bytes]:
    return default_bridge().encode_barcode(text)
