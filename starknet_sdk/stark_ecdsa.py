# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
ECDSA over the Stark curve.

Starknet accounts sign 251-bit transaction hashes with ECDSA on the Stark curve.
Public keys are the x-coordinate of ``key * G`` only; verification therefore
accepts a signature matching either of the two points sharing that x-coordinate.

Key Features:
- **Deterministic Signatures**: RFC 6979 nonces (HMAC-SHA256) from
  ``ecdsa.rfc6979``, so signing the same hash twice yields the same ``(r, s)``.
- **Range Checks**: ``r``, ``s`` and the message hash are kept below ``2**251``;
  out-of-range candidates are discarded by re-deriving the nonce with an
  incremented seed.
- **Curve Arithmetic**: all point operations go through
  :mod:`starknet_sdk.curve`.

Examples:
    Generating and using a key::

        from starknet_sdk.stark_ecdsa import PrivateKey

        private_key = PrivateKey.random()
        public_key = private_key.public_key()

        signature = private_key.sign(tx_hash)
        assert public_key.verify(tx_hash, signature)

    Restoring a key::

        private_key = PrivateKey.from_hex("0x3c1e9550e66958296d11b60f8e8e7a7ad990d07fa65d5f7652c4a6c87d4e3cc")
        print(private_key.public_key().hex())

Security Considerations:
    - Private keys are never logged or included in exception messages.
    - Scalar multiplication follows a fixed double-and-add structure but the
      underlying big-integer arithmetic is not constant time.
"""

from __future__ import annotations

import hashlib
import unittest
from dataclasses import dataclass
from typing import List, Optional

from ecdsa import numbertheory, rfc6979, util

from .curve import EC_ORDER, GENERATOR, AffinePoint
from .errors import FieldArithmeticError, SignatureError
from .field import FieldElement

# Message hashes, r and w must all be below this bound.
N_ELEMENT_BITS_ECDSA = 251
_ECDSA_BOUND = 2**N_ELEMENT_BITS_ECDSA


def _int_to_bytes(value: int) -> bytes:
    return value.to_bytes(max(1, (value.bit_length() + 7) // 8), "big")


def generate_k(msg_hash: int, private_key: int, seed: Optional[int] = None) -> int:
    """Derive the RFC 6979 nonce for ``msg_hash``.

    Hashes whose bit length is 1 to 4 bits past a byte boundary (and at least 248
    bits long) are shifted left by four bits first, matching the padding applied
    by other Stark signers so that every implementation derives the same ``k``.
    """
    if 1 <= msg_hash.bit_length() % 8 <= 4 and msg_hash.bit_length() >= 248:
        msg_hash *= 16
    extra_entropy = b"" if seed is None else _int_to_bytes(seed)
    return rfc6979.generate_k(
        EC_ORDER,
        private_key,
        hashlib.sha256,
        _int_to_bytes(msg_hash),
        extra_entropy=extra_entropy,
    )


@dataclass(frozen=True)
class Signature:
    """A Stark ECDSA signature ``(r, s)``."""

    r: FieldElement
    s: FieldElement

    def to_list(self) -> List[FieldElement]:
        return [self.r, self.s]

    def __str__(self) -> str:
        return f"({self.r.hex()}, {self.s.hex()})"


class PrivateKey:
    """Stark curve private key: a scalar in ``[1, EC_ORDER)``.

    Examples:
        Generate a new private key::

            private_key = PrivateKey.random()

        Sign a transaction hash::

            signature = private_key.sign(tx_hash)
            assert private_key.public_key().verify(tx_hash, signature)
    """

    key: int

    def __init__(self, key: int):
        if not 1 <= key < EC_ORDER:
            raise ValueError("private key must be in [1, EC_ORDER)")
        self.key = key

    def __eq__(self, other: object):
        if not isinstance(other, PrivateKey):
            return NotImplemented
        return self.key == other.key

    def __repr__(self) -> str:
        return "PrivateKey(<redacted>)"

    @staticmethod
    def from_hex(value: str) -> PrivateKey:
        """Create a private key from a hex string, with or without ``0x``.

        Raises:
            ValueError: If the string is not hex or the scalar is out of range.
        """
        if value[0:2] in ("0x", "0X"):
            value = value[2:]
        try:
            key = int(value, 16)
        except ValueError as e:
            raise ValueError("private key is not a hex string") from e
        return PrivateKey(key)

    @staticmethod
    def random() -> PrivateKey:
        """Generate a new private key from the system's secure random source."""
        return PrivateKey(util.randrange(EC_ORDER))

    def hex(self) -> str:
        return f"0x{self.key:064x}"

    def public_key(self) -> PublicKey:
        return PublicKey(GENERATOR.multiply_scalar(self.key).x)

    def sign(self, msg_hash: FieldElement) -> Signature:
        """Sign a message hash with a deterministic nonce.

        Args:
            msg_hash: The hash to sign, typically a transaction hash.

        Returns:
            The signature ``(r, s)``.

        Raises:
            SignatureError: If ``msg_hash`` is not below ``2**251``.
        """
        z = msg_hash.value
        if z >= _ECDSA_BOUND:
            raise SignatureError(f"message hash {msg_hash.hex()} is not below 2**251")

        seed: Optional[int] = None
        while True:
            k = generate_k(z, self.key, seed)
            seed = 1 if seed is None else seed + 1

            r = GENERATOR.multiply_scalar(k).x.value
            if not 1 <= r < _ECDSA_BOUND:
                continue
            if (z + r * self.key) % EC_ORDER == 0:
                continue
            w = k * numbertheory.inverse_mod(z + r * self.key, EC_ORDER) % EC_ORDER
            if not 1 <= w < _ECDSA_BOUND:
                continue
            s = numbertheory.inverse_mod(w, EC_ORDER)
            return Signature(FieldElement(r), FieldElement(s))


class PublicKey:
    """Stark curve public key, stored as the x-coordinate of ``key * G``."""

    x: FieldElement

    def __init__(self, x: FieldElement):
        self.x = x

    def __eq__(self, other: object):
        if not isinstance(other, PublicKey):
            return NotImplemented
        return self.x == other.x

    def __hash__(self) -> int:
        return hash(self.x)

    def __str__(self) -> str:
        return self.hex()

    def __repr__(self) -> str:
        return f"PublicKey({self.hex()})"

    @staticmethod
    def from_hex(value: str) -> PublicKey:
        return PublicKey(FieldElement.from_hex(value))

    def hex(self) -> str:
        return self.x.hex()

    def verify(self, msg_hash: FieldElement, signature: Signature) -> bool:
        """Verify a signature against this public key.

        Returns False for any malformed input instead of raising.
        """
        z = msg_hash.value
        r = signature.r.value
        s = signature.s.value
        if not 0 <= z < _ECDSA_BOUND:
            return False
        if not 1 <= r < _ECDSA_BOUND or not 1 <= s < EC_ORDER:
            return False
        w = numbertheory.inverse_mod(s, EC_ORDER)
        if not 1 <= w < _ECDSA_BOUND:
            return False
        try:
            point = AffinePoint.from_x(self.x)
        except FieldArithmeticError:
            return False

        zw_g = GENERATOR.multiply_scalar(z * w % EC_ORDER)
        rw_q = point.multiply_scalar(r * w % EC_ORDER)
        # The stored key could be either point sharing this x-coordinate.
        for candidate in (zw_g + rw_q, zw_g - rw_q):
            if not candidate.infinity and candidate.x.value == r:
                return True
        return False


class Test(unittest.TestCase):
    PRIVATE_KEY = "0x03c1e9550e66958296d11b60f8e8e7a7ad990d07fa65d5f7652c4a6c87d4e3cc"
    PUBLIC_KEY = "0x77a3b314db07c45076d11f62b6f9e748a39790441823307743cf00d6597ea43"

    def test_public_key_vector(self):
        private_key = PrivateKey.from_hex(self.PRIVATE_KEY)
        self.assertEqual(private_key.public_key(), PublicKey.from_hex(self.PUBLIC_KEY))

    def test_sign_is_deterministic(self):
        private_key = PrivateKey.from_hex(self.PRIVATE_KEY)
        msg_hash = FieldElement(0x1234567890ABCDEF)
        first = private_key.sign(msg_hash)
        second = private_key.sign(msg_hash)
        self.assertEqual(first, second)
        self.assertTrue(private_key.public_key().verify(msg_hash, first))

    def test_sign_and_verify(self):
        private_key = PrivateKey.random()
        public_key = private_key.public_key()
        # 250-bit hash exercises the nonce padding path.
        msg_hash = FieldElement(2**249 + 12345)
        signature = private_key.sign(msg_hash)
        self.assertTrue(public_key.verify(msg_hash, signature))
        self.assertFalse(public_key.verify(FieldElement(12345), signature))
        self.assertFalse(
            PrivateKey.random().public_key().verify(msg_hash, signature)
        )

    def test_signature_components_in_range(self):
        private_key = PrivateKey.from_hex(self.PRIVATE_KEY)
        signature = private_key.sign(FieldElement(42))
        self.assertTrue(1 <= signature.r.value < _ECDSA_BOUND)
        self.assertTrue(1 <= signature.s.value < EC_ORDER)
        self.assertEqual(signature.to_list(), [signature.r, signature.s])

    def test_hash_out_of_range(self):
        private_key = PrivateKey.from_hex(self.PRIVATE_KEY)
        with self.assertRaises(SignatureError):
            private_key.sign(FieldElement(_ECDSA_BOUND))

    def test_verify_rejects_malformed(self):
        public_key = PublicKey.from_hex(self.PUBLIC_KEY)
        self.assertFalse(
            public_key.verify(
                FieldElement(1), Signature(FieldElement.ZERO, FieldElement.ONE)
            )
        )

    def test_private_key_range(self):
        with self.assertRaises(ValueError):
            PrivateKey(0)
        with self.assertRaises(ValueError):
            PrivateKey(EC_ORDER)
        with self.assertRaises(ValueError):
            PrivateKey.from_hex("0xnothex")
        self.assertNotIn(self.PRIVATE_KEY[3:], repr(PrivateKey.from_hex(self.PRIVATE_KEY)))


if __name__ == "__main__":
    unittest.main()
