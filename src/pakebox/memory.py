"""
Scoped storage for secret material.

Scalars, raw shared secrets and derived keys are kept in mutable buffers
and overwritten with libsodium's ``sodium_memzero`` when released. Bytes
objects handed out by the underlying primitives are immutable and cannot
be wiped; callers should copy them into a ``SecretBuffer`` as soon as they
are produced and drop the original reference.
"""

from typing import Optional, Union

from nacl._sodium import ffi, lib


def wipe(buf: Union[bytearray, memoryview]) -> None:
    """Overwrite a mutable buffer with zeros.

    Immutable objects (bytes) are skipped.
    """
    if not isinstance(buf, (bytearray, memoryview)):
        return
    n = len(buf)
    if n == 0:
        return
    lib.sodium_memzero(ffi.from_buffer(buf), n)


class SecretBuffer:
    """
    A mutable byte buffer that is wiped on release.

    Use as a context manager to guarantee the wipe on every exit path:

        with SecretBuffer(derive_something()) as secret:
            use(secret.value)
    """

    def __init__(self, data: Union[bytes, bytearray]) -> None:
        self._buf: Optional[bytearray] = bytearray(data)

    @classmethod
    def adopt(cls, buf: bytearray) -> "SecretBuffer":
        """Wrap an existing bytearray without copying it."""
        secret = cls(b"")
        secret._buf = buf
        return secret

    @property
    def value(self) -> bytes:
        """An immutable copy of the secret, for primitives that require bytes."""
        if self._buf is None:
            raise ValueError("Secret has been wiped")
        return bytes(self._buf)

    @property
    def wiped(self) -> bool:
        """Whether the buffer has been released."""
        return self._buf is None

    def wipe(self) -> None:
        """Overwrite and release the buffer. Safe to call more than once."""
        if self._buf is not None:
            wipe(self._buf)
            self._buf = None

    def __len__(self) -> int:
        return 0 if self._buf is None else len(self._buf)

    def __enter__(self) -> "SecretBuffer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def __repr__(self) -> str:
        state = "wiped" if self._buf is None else f"{len(self._buf)} bytes"
        return f"SecretBuffer(<{state}>)"
