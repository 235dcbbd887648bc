"""
Group and scalar arithmetic for the handshake.

The handshake only needs a narrow capability from its group: derive a
generator from a password, sample scalars, multiply, and decode elements
with full validity checking. ``Group`` states that contract;
``Ed25519Group`` implements it over the prime-order subgroup of
edwards25519 using libsodium's constant-time primitives.
"""

import hashlib
import os
from abc import ABC, abstractmethod

from nacl.bindings import (
    crypto_core_ed25519_from_uniform,
    crypto_core_ed25519_is_valid_point,
    crypto_core_ed25519_scalar_reduce,
    crypto_scalarmult_ed25519_noclamp,
)
from nacl.exceptions import CryptoError

from .memory import wipe
from .types import (
    ELEMENT_SIZE,
    GENERATOR_DST,
    SCALAR_SIZE,
    WIDE_SCALAR_SIZE,
    EncodingError,
    InternalError,
    InvalidMessageError,
    length_prefixed,
)


class Group(ABC):
    """A prime-order group with a password-derived generator."""

    element_size: int
    scalar_size: int

    @abstractmethod
    def map_to_group(self, password: bytes, context: bytes) -> bytes:
        """Derive the encoded generator for a password and context."""
        ...

    @abstractmethod
    def random_scalar(self) -> bytearray:
        """Sample a uniformly random non-zero scalar."""
        ...

    @abstractmethod
    def scalar_mult(self, scalar: bytes, element: bytes) -> bytes:
        """Multiply an element by a scalar. The result is never the identity."""
        ...

    @abstractmethod
    def decode_element(self, data: bytes) -> bytes:
        """Validate an encoded element received from the peer."""
        ...


class Ed25519Group(Group):
    """
    The prime-order subgroup of edwards25519.

    Generators are derived with the Elligator 2 map followed by cofactor
    clearing, so they always land in the main subgroup. Received elements
    must be canonical, on the curve, in the main subgroup and not of small
    order (which excludes the identity).
    """

    element_size = ELEMENT_SIZE
    scalar_size = SCALAR_SIZE

    def map_to_group(self, password: bytes, context: bytes) -> bytes:
        digest = bytearray(
            hashlib.sha512(GENERATOR_DST + length_prefixed(password, context)).digest()
        )
        try:
            generator = crypto_core_ed25519_from_uniform(bytes(digest[:ELEMENT_SIZE]))
        except CryptoError as e:
            raise InternalError(f"Hash-to-group failed: {e}") from e
        finally:
            wipe(digest)

        if not crypto_core_ed25519_is_valid_point(generator):
            raise InternalError("Hash-to-group produced an invalid generator")
        return generator

    def random_scalar(self) -> bytearray:
        try:
            wide = os.urandom(WIDE_SCALAR_SIZE)
        except (OSError, NotImplementedError) as e:
            raise InternalError(f"Randomness source unavailable: {e}") from e

        scalar = bytearray(crypto_core_ed25519_scalar_reduce(wide))
        if not any(scalar):
            raise InternalError("Sampled a zero scalar")
        return scalar

    def scalar_mult(self, scalar: bytes, element: bytes) -> bytes:
        try:
            return crypto_scalarmult_ed25519_noclamp(scalar, element)
        except CryptoError as e:
            # libsodium refuses small-order inputs and identity results
            raise InvalidMessageError("Scalar multiplication produced the identity") from e

    def decode_element(self, data: bytes) -> bytes:
        if len(data) != ELEMENT_SIZE:
            raise EncodingError(
                f"Group element must be {ELEMENT_SIZE} bytes, got {len(data)}"
            )
        element = bytes(data)
        if not crypto_core_ed25519_is_valid_point(element):
            raise InvalidMessageError("Invalid group element")
        return element


DEFAULT_GROUP = Ed25519Group()
