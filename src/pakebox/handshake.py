"""
Two-message password-authenticated key exchange.

The initiator calls ``start`` and sends MessageA; the responder answers
with a single ``exchange`` call, sends back MessageB and already holds the
shared secret; the initiator completes with ``finish``:

    message_a, session = start("correct horse")
    message_b, secret_b = exchange("correct horse", b"", message_a)
    secret_a = finish(session, message_b)
    assert secret_a == secret_b

Both sides compute the same secret only if they used the same password and
context. A wrong password is not reported: both calls succeed and the
secrets simply differ, so an active attacker tests one guess per run.
"""

import hashlib
import logging
from enum import Enum
from typing import Optional, Tuple, Union

from .group import DEFAULT_GROUP, Group
from .memory import SecretBuffer, wipe
from .messages import HandshakeMessage, decode_message, encode_message
from .types import (
    TRANSCRIPT_DST,
    EncodingError,
    InternalError,
    InvalidMessageError,
    InvalidStateError,
    length_prefixed,
)

logger = logging.getLogger(__name__)


class Role(Enum):
    """Which side of the handshake a session belongs to."""
    INITIATOR = "initiator"
    RESPONDER = "responder"


class SessionStatus(Enum):
    """Lifecycle of a handshake session."""
    STARTED = "started"
    EXCHANGED = "exchanged"
    FINISHED = "finished"
    FAILED = "failed"


class Session:
    """
    Handshake state held by one party between protocol steps.

    Sessions are single use. Once a session reaches FINISHED or FAILED its
    ephemeral scalar is overwritten and it can no longer be advanced.
    """

    def __init__(
        self,
        role: Role,
        generator: bytes,
        context: bytes,
        scalar: bytearray,
        message_a: bytes = b"",
        group: Optional[Group] = None,
    ) -> None:
        self.role = role
        self.status = SessionStatus.STARTED
        self.generator = generator
        self.context = context
        self.message_a = message_a
        self.group = group or DEFAULT_GROUP
        self._scalar = SecretBuffer.adopt(scalar)

    @property
    def is_active(self) -> bool:
        """Whether the session can still be advanced."""
        return self.status in (SessionStatus.STARTED, SessionStatus.EXCHANGED)

    @property
    def wiped(self) -> bool:
        """Whether the ephemeral scalar has been overwritten."""
        return self._scalar.wiped

    def fail(self) -> None:
        """Mark the session failed and wipe its secrets."""
        self._close(SessionStatus.FAILED)

    def _close(self, status: SessionStatus) -> None:
        self.status = status
        self._scalar.wipe()

    def _scalar_bytes(self) -> bytes:
        return self._scalar.value

    def __repr__(self) -> str:
        return f"Session(role={self.role.value}, status={self.status.value})"


def transcript_hash(
    generator: bytes,
    message_a: bytes,
    element_b: bytes,
    dh_point: bytes,
) -> bytearray:
    """
    Hash the handshake transcript into the raw shared secret.

    Binds the generator (and so the password and context), the full
    MessageA, the responder's element and the Diffie-Hellman point.

    Returns:
        64-byte shared secret in a mutable buffer the caller must wipe.
    """
    transcript = length_prefixed(generator, message_a, element_b, dh_point)
    try:
        return bytearray(hashlib.sha512(TRANSCRIPT_DST + transcript).digest())
    except ValueError as e:
        raise InternalError(f"Transcript hash failed: {e}") from e


def _password_bytes(password: Union[str, bytes]) -> bytes:
    if isinstance(password, str):
        try:
            return password.encode("utf-8")
        except UnicodeEncodeError as e:
            raise EncodingError(f"Password is not encodable as UTF-8: {e}") from e
    return bytes(password)


def start(
    password: Union[str, bytes],
    context: bytes = b"",
    group: Optional[Group] = None,
) -> Tuple[bytes, Session]:
    """
    Begin a handshake as the initiator.

    Args:
        password: The shared password.
        context: Optional context-binding bytes (see ``ContextInfo``).
        group: Group implementation (default: edwards25519).

    Returns:
        Tuple of (message_a, session). Send message_a to the responder and
        keep the session for ``finish``.

    Raises:
        InternalError: If the randomness source or a primitive fails.
    """
    group = group or DEFAULT_GROUP
    context = bytes(context)

    generator = group.map_to_group(_password_bytes(password), context)
    scalar = group.random_scalar()

    try:
        element_a = group.scalar_mult(bytes(scalar), generator)
    except InvalidMessageError as e:
        wipe(scalar)
        raise InternalError("Public value is the identity") from e

    message_a = encode_message(HandshakeMessage(element=element_a, context=context))
    session = Session(
        role=Role.INITIATOR,
        generator=generator,
        context=context,
        scalar=scalar,
        message_a=message_a,
        group=group,
    )
    logger.debug("Started initiator session")
    return message_a, session


def exchange(
    password: Union[str, bytes],
    context: bytes,
    message_a: bytes,
    group: Optional[Group] = None,
) -> Tuple[bytes, bytearray]:
    """
    Answer a MessageA as the responder, in a single call.

    Args:
        password: The shared password.
        context: Context-binding bytes; must equal the context in MessageA.
        message_a: The initiator's message.
        group: Group implementation (default: edwards25519).

    Returns:
        Tuple of (message_b, shared_secret). The shared secret is a mutable
        buffer; wipe it once the key has been derived.

    Raises:
        EncodingError: If MessageA is shorter than one group element.
        InvalidMessageError: If MessageA's element is invalid or the
            identity, or its context differs from ``context``.
        InternalError: If the randomness source or a primitive fails.
    """
    group = group or DEFAULT_GROUP
    context = bytes(context)
    message_a = bytes(message_a)

    incoming = decode_message(message_a, group.element_size)
    element_a = group.decode_element(incoming.element)
    if incoming.context != context:
        raise InvalidMessageError("MessageA context does not match")

    generator = group.map_to_group(_password_bytes(password), context)
    session = Session(
        role=Role.RESPONDER,
        generator=generator,
        context=context,
        scalar=group.random_scalar(),
        message_a=message_a,
        group=group,
    )

    try:
        scalar = session._scalar_bytes()
        try:
            element_b = group.scalar_mult(scalar, generator)
        except InvalidMessageError as e:
            raise InternalError("Public value is the identity") from e
        dh_point = group.scalar_mult(scalar, element_a)
        session.status = SessionStatus.EXCHANGED

        shared_secret = transcript_hash(generator, message_a, element_b, dh_point)
        session._close(SessionStatus.FINISHED)
    finally:
        if session.is_active:
            session.fail()
            logger.debug("Responder session failed")

    message_b = encode_message(HandshakeMessage(element=element_b, context=context))
    return message_b, shared_secret


def finish(session: Session, message_b: bytes) -> bytearray:
    """
    Complete a handshake as the initiator.

    The session is consumed: it ends FINISHED on success and FAILED on any
    error, and cannot be used again either way.

    Args:
        session: The session returned by ``start``.
        message_b: The responder's message.

    Returns:
        64-byte shared secret in a mutable buffer; wipe it once the key
        has been derived.

    Raises:
        InvalidStateError: If the session is not a started initiator session.
        EncodingError: If MessageB is shorter than one group element.
        InvalidMessageError: If MessageB's element is invalid or the
            identity, or its context differs from the session's.
    """
    if not isinstance(session, Session):
        raise InvalidStateError("finish requires a session returned by start")
    if session.role is not Role.INITIATOR:
        raise InvalidStateError("Only initiator sessions can be finished")
    if session.status is not SessionStatus.STARTED:
        raise InvalidStateError(f"Session is already {session.status.value}")

    group = session.group
    try:
        incoming = decode_message(bytes(message_b), group.element_size)
        element_b = group.decode_element(incoming.element)
        if incoming.context != session.context:
            raise InvalidMessageError("MessageB context does not match")

        dh_point = group.scalar_mult(session._scalar_bytes(), element_b)
        shared_secret = transcript_hash(
            session.generator, session.message_a, element_b, dh_point
        )
        session._close(SessionStatus.FINISHED)
    finally:
        if session.is_active:
            session.fail()
            logger.debug("Initiator session failed")

    logger.debug("Finished initiator session")
    return shared_secret
