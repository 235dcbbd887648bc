"""Tests for the PAKE handshake."""

import pytest
from pakebox.context import ContextInfo
from pakebox.group import Ed25519Group
from pakebox.handshake import (
    Role,
    Session,
    SessionStatus,
    exchange,
    finish,
    start,
    transcript_hash,
)
from pakebox.messages import decode_message
from pakebox.types import (
    ELEMENT_SIZE,
    SHARED_SECRET_SIZE,
    EncodingError,
    InvalidMessageError,
    InvalidStateError,
)
from .test_vectors import (
    BASE_POINT_HEX,
    INVALID_ELEMENTS,
    OTHER_PASSWORD,
    PASSWORD,
)


class RecordingGroup(Ed25519Group):
    """Keeps references to every scalar it hands out."""

    def __init__(self) -> None:
        self.scalars = []

    def random_scalar(self) -> bytearray:
        scalar = super().random_scalar()
        self.scalars.append(scalar)
        return scalar


class FailingDHGroup(RecordingGroup):
    """Fails the second scalar multiplication (the Diffie-Hellman step)."""

    def __init__(self) -> None:
        super().__init__()
        self.mults = 0

    def scalar_mult(self, scalar: bytes, element: bytes) -> bytes:
        self.mults += 1
        if self.mults == 2:
            raise InvalidMessageError("Scalar multiplication produced the identity")
        return super().scalar_mult(scalar, element)


class TestAgreement:
    """Both parties derive the same secret from the same password."""

    @pytest.mark.parametrize(
        "password",
        [PASSWORD, "", "1234", "pässwörd", "x" * 500],
    )
    def test_same_password_agrees(self, password: str) -> None:
        """finish and exchange produce identical secrets."""
        message_a, session = start(password)
        message_b, secret_b = exchange(password, b"", message_a)
        secret_a = finish(session, message_b)

        assert secret_a == secret_b
        assert len(secret_a) == SHARED_SECRET_SIZE

    def test_same_context_agrees(self) -> None:
        """A shared non-empty context still agrees."""
        context = ContextInfo("alice", "bob", b"pairing").encode()

        message_a, session = start(PASSWORD, context)
        message_b, secret_b = exchange(PASSWORD, context, message_a)
        secret_a = finish(session, message_b)

        assert secret_a == secret_b

    def test_bytes_password_matches_str(self) -> None:
        """A UTF-8 bytes password is the same password as its str form."""
        message_a, session = start(PASSWORD)
        message_b, secret_b = exchange(PASSWORD.encode("utf-8"), b"", message_a)

        assert finish(session, message_b) == secret_b

    def test_fresh_secret_per_run(self) -> None:
        """Two runs with the same password yield different secrets."""
        secrets = []
        for _ in range(2):
            message_a, session = start(PASSWORD)
            message_b, secret_b = exchange(PASSWORD, b"", message_a)
            secrets.append(finish(session, message_b))

        assert secrets[0] != secrets[1]


class TestMismatch:
    """A wrong password gives different secrets and no error."""

    def test_wrong_password_not_signaled(self) -> None:
        """Both sides complete; secrets differ."""
        message_a, session = start(PASSWORD)
        message_b, secret_b = exchange(OTHER_PASSWORD, b"", message_a)
        secret_a = finish(session, message_b)

        assert secret_a != secret_b
        assert session.status == SessionStatus.FINISHED

    def test_substituted_element_not_signaled(self) -> None:
        """A valid but unrelated MessageB element completes with a different secret."""
        message_a, session = start(PASSWORD)
        message_b, secret_b = exchange(PASSWORD, b"", message_a)

        forged = bytes.fromhex(BASE_POINT_HEX)
        secret_a = finish(session, forged)

        assert secret_a != secret_b

    def test_context_mismatch_rejected(self) -> None:
        """The responder rejects MessageA built for another context."""
        message_a, _ = start(PASSWORD, ContextInfo(associated_data=b"one").encode())

        with pytest.raises(InvalidMessageError, match="context"):
            exchange(PASSWORD, ContextInfo(associated_data=b"two").encode(), message_a)


class TestMessages:
    """Test message framing."""

    def test_message_a_layout(self) -> None:
        """MessageA is the element followed by the context."""
        context = ContextInfo("alice", "bob").encode()
        message_a, _ = start(PASSWORD, context)

        assert len(message_a) == ELEMENT_SIZE + len(context)
        assert message_a[ELEMENT_SIZE:] == context

    def test_message_b_layout(self) -> None:
        """MessageB carries the same context as MessageA."""
        context = b"ctx"
        message_a, _ = start(PASSWORD, context)
        message_b, _ = exchange(PASSWORD, context, message_a)

        decoded = decode_message(message_b)
        assert len(decoded.element) == ELEMENT_SIZE
        assert decoded.context == context

    def test_empty_context_message_is_one_element(self) -> None:
        """Without context a message is exactly one element."""
        message_a, _ = start(PASSWORD)
        assert len(message_a) == ELEMENT_SIZE


class TestMalformedInput:
    """Malformed handshake messages are rejected."""

    @pytest.mark.parametrize("length", [0, 1, ELEMENT_SIZE - 1])
    def test_exchange_short_message(self, length: int) -> None:
        """MessageA shorter than an element is an encoding error."""
        with pytest.raises(EncodingError, match="too short"):
            exchange(PASSWORD, b"", bytes(length))

    @pytest.mark.parametrize("name", sorted(INVALID_ELEMENTS))
    def test_exchange_invalid_element(self, name: str) -> None:
        """Invalid, small-order and identity elements are rejected."""
        with pytest.raises(InvalidMessageError):
            exchange(PASSWORD, b"", bytes.fromhex(INVALID_ELEMENTS[name]))

    def test_finish_short_message(self) -> None:
        """MessageB shorter than an element is an encoding error."""
        _, session = start(PASSWORD)

        with pytest.raises(EncodingError):
            finish(session, b"short")

    @pytest.mark.parametrize("name", sorted(INVALID_ELEMENTS))
    def test_finish_invalid_element(self, name: str) -> None:
        """finish rejects invalid elements and fails the session."""
        _, session = start(PASSWORD)

        with pytest.raises(InvalidMessageError):
            finish(session, bytes.fromhex(INVALID_ELEMENTS[name]))

        assert session.status == SessionStatus.FAILED
        assert session.wiped

    def test_finish_context_mismatch(self) -> None:
        """MessageB carrying a different context fails the session."""
        message_a, session = start(PASSWORD, b"one")
        message_b, _ = exchange(PASSWORD, b"one", message_a)
        tampered = message_b[:ELEMENT_SIZE] + b"two"

        with pytest.raises(InvalidMessageError, match="context"):
            finish(session, tampered)
        assert session.status == SessionStatus.FAILED


class TestSessionLifecycle:
    """Sessions are single use and wiped when done."""

    def test_finish_twice(self) -> None:
        """The second finish on the same session is an invalid state."""
        message_a, session = start(PASSWORD)
        message_b, _ = exchange(PASSWORD, b"", message_a)
        finish(session, message_b)

        with pytest.raises(InvalidStateError):
            finish(session, message_b)

    def test_finish_after_failure(self) -> None:
        """A failed session cannot be retried with a good message."""
        message_a, session = start(PASSWORD)
        message_b, _ = exchange(PASSWORD, b"", message_a)

        with pytest.raises(EncodingError):
            finish(session, b"")
        with pytest.raises(InvalidStateError):
            finish(session, message_b)

    def test_finish_without_start(self) -> None:
        """finish requires a session from start."""
        with pytest.raises(InvalidStateError):
            finish(None, bytes(ELEMENT_SIZE))

    def test_finish_responder_session(self) -> None:
        """Responder sessions cannot be finished."""
        group = Ed25519Group()
        session = Session(
            role=Role.RESPONDER,
            generator=group.map_to_group(b"pw", b""),
            context=b"",
            scalar=group.random_scalar(),
        )

        with pytest.raises(InvalidStateError, match="initiator"):
            finish(session, bytes(ELEMENT_SIZE))

    def test_started_session(self) -> None:
        """start returns an active initiator session."""
        message_a, session = start(PASSWORD)

        assert session.role == Role.INITIATOR
        assert session.status == SessionStatus.STARTED
        assert session.is_active
        assert not session.wiped
        assert session.message_a == message_a

    def test_scalars_wiped_after_handshake(self) -> None:
        """Both ephemeral scalars are zeroed once the secrets exist."""
        group = RecordingGroup()
        message_a, session = start(PASSWORD, b"", group)
        message_b, _ = exchange(PASSWORD, b"", message_a, group)
        finish(session, message_b)

        assert len(group.scalars) == 2
        for scalar in group.scalars:
            assert scalar == bytearray(len(scalar))
        assert session.wiped

    def test_responder_scalar_wiped_on_failure(self) -> None:
        """The responder wipes its scalar even when the exchange fails."""
        message_a, _ = start(PASSWORD)
        group = FailingDHGroup()

        with pytest.raises(InvalidMessageError):
            exchange(PASSWORD, b"", message_a, group)

        assert len(group.scalars) == 1
        assert group.scalars[0] == bytearray(len(group.scalars[0]))

    def test_repr_hides_secrets(self) -> None:
        """The session repr names only role and status."""
        _, session = start(PASSWORD)
        assert repr(session) == "Session(role=initiator, status=started)"


class TestTranscript:
    """Test transcript hashing."""

    def test_deterministic(self) -> None:
        """Identical transcripts hash identically."""
        parts = (b"g" * 32, b"a" * 40, b"x" * 32, b"z" * 32)
        assert transcript_hash(*parts) == transcript_hash(*parts)

    def test_boundaries_are_bound(self) -> None:
        """Moving bytes between fields changes the hash."""
        first = transcript_hash(b"g" * 32, b"a" * 33, b"x" * 32, b"z" * 32)
        second = transcript_hash(b"g" * 32, b"a" * 32, b"a" + b"x" * 32, b"z" * 32)
        assert first != second
