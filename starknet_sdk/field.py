# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Elements of the Stark prime field.

Every coordinate, scalar, address, selector and calldata word handled by the SDK
is a :class:`FieldElement`, an immutable integer modulo the Stark prime
``P = 2**251 + 17 * 2**192 + 1``. Modular inversion and square roots are
delegated to ``ecdsa.numbertheory``; both report impossible operations with
:class:`~starknet_sdk.errors.FieldArithmeticError` instead of returning a
sentinel.

Examples:
    Parsing and arithmetic::

        from starknet_sdk.field import FieldElement

        a = FieldElement.from_hex("0x1234")
        b = FieldElement.from_dec_str("1000000000000000000000")
        c = (a * b + FieldElement.ONE) / a

    Square roots::

        y = (x * x * x + x + beta).sqrt()  # raises FieldArithmeticError for non-residues
"""

from __future__ import annotations

import unittest
from typing import ClassVar, List

from ecdsa import numbertheory

from .errors import FieldArithmeticError

FIELD_PRIME = 2**251 + 17 * 2**192 + 1

# Number of bits needed to represent any element (or any curve scalar).
FIELD_BITS = 252


def bits_le(value: int, length: int = FIELD_BITS) -> List[bool]:
    """Little-endian bit expansion of a non-negative integer, padded to ``length``."""
    if value < 0:
        raise ValueError("cannot expand a negative integer into bits")
    if value.bit_length() > length:
        raise ValueError(f"{value:#x} does not fit in {length} bits")
    return [bool((value >> i) & 1) for i in range(length)]


class FieldElement:
    """An element of the Stark prime field.

    Instances are immutable and compare by value. Arithmetic operators only accept
    other field elements; convert plain integers explicitly so that out-of-range
    values are caught at the boundary rather than silently reduced.
    """

    __slots__ = ("_value",)

    ZERO: ClassVar[FieldElement]
    ONE: ClassVar[FieldElement]
    TWO: ClassVar[FieldElement]
    THREE: ClassVar[FieldElement]

    _value: int

    def __init__(self, value: int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"expected int, got {type(value).__name__}")
        if not 0 <= value < FIELD_PRIME:
            raise ValueError(f"{value:#x} is outside the Stark field")
        self._value = value

    @classmethod
    def _reduced(cls, value: int) -> FieldElement:
        element = object.__new__(cls)
        element._value = value % FIELD_PRIME
        return element

    @staticmethod
    def from_int(value: int) -> FieldElement:
        return FieldElement(value)

    @staticmethod
    def from_hex(value: str) -> FieldElement:
        """Parse a big-endian hex string, with or without the ``0x`` prefix."""
        text = value[2:] if value.startswith(("0x", "0X")) else value
        if len(text) == 0:
            raise ValueError("empty hex string")
        try:
            return FieldElement(int(text, 16))
        except ValueError as e:
            raise ValueError(f"invalid field element hex string: {value!r}") from e

    @staticmethod
    def from_dec_str(value: str) -> FieldElement:
        if not value.isdigit():
            raise ValueError(f"invalid field element decimal string: {value!r}")
        return FieldElement(int(value))

    @staticmethod
    def from_bytes_be(value: bytes) -> FieldElement:
        if len(value) > 32:
            raise ValueError(f"expected at most 32 bytes, got {len(value)}")
        return FieldElement(int.from_bytes(value, "big"))

    @property
    def value(self) -> int:
        return self._value

    def is_zero(self) -> bool:
        return self._value == 0

    def invert(self) -> FieldElement:
        if self._value == 0:
            raise FieldArithmeticError("zero has no multiplicative inverse")
        return FieldElement._reduced(numbertheory.inverse_mod(self._value, FIELD_PRIME))

    def sqrt(self) -> FieldElement:
        """Return a square root of this element.

        Which of the two roots is returned is unspecified; callers that need a
        canonical root pick one themselves.
        """
        try:
            root = numbertheory.square_root_mod_prime(self._value, FIELD_PRIME)
        except numbertheory.SquareRootError as e:
            raise FieldArithmeticError(
                f"{self.hex()} is not a quadratic residue"
            ) from e
        return FieldElement._reduced(root)

    def to_bits_le(self, length: int = FIELD_BITS) -> List[bool]:
        return bits_le(self._value, length)

    def to_bytes_be(self) -> bytes:
        return self._value.to_bytes(32, "big")

    def hex(self) -> str:
        return f"0x{self._value:x}"

    def __add__(self, other: object) -> FieldElement:
        if not isinstance(other, FieldElement):
            return NotImplemented
        return FieldElement._reduced(self._value + other._value)

    def __sub__(self, other: object) -> FieldElement:
        if not isinstance(other, FieldElement):
            return NotImplemented
        return FieldElement._reduced(self._value - other._value)

    def __mul__(self, other: object) -> FieldElement:
        if not isinstance(other, FieldElement):
            return NotImplemented
        return FieldElement._reduced(self._value * other._value)

    def __truediv__(self, other: object) -> FieldElement:
        if not isinstance(other, FieldElement):
            return NotImplemented
        return self * other.invert()

    def __neg__(self) -> FieldElement:
        return FieldElement._reduced(-self._value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldElement):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)

    def __int__(self) -> int:
        return self._value

    def __index__(self) -> int:
        return self._value

    def __str__(self) -> str:
        return self.hex()

    def __repr__(self) -> str:
        return f"FieldElement({self.hex()})"


FieldElement.ZERO = FieldElement(0)
FieldElement.ONE = FieldElement(1)
FieldElement.TWO = FieldElement(2)
FieldElement.THREE = FieldElement(3)


class Test(unittest.TestCase):
    def test_parsing(self):
        self.assertEqual(FieldElement.from_hex("0x1f"), FieldElement(31))
        self.assertEqual(FieldElement.from_hex("1F"), FieldElement(31))
        self.assertEqual(FieldElement.from_dec_str("31"), FieldElement(31))
        self.assertEqual(
            FieldElement.from_bytes_be(b"\x01\x00"), FieldElement(256)
        )
        self.assertEqual(FieldElement(255).hex(), "0xff")
        with self.assertRaises(ValueError):
            FieldElement(FIELD_PRIME)
        with self.assertRaises(ValueError):
            FieldElement.from_hex("0xzz")
        with self.assertRaises(ValueError):
            FieldElement.from_dec_str("-1")
        with self.assertRaises(TypeError):
            FieldElement(True)

    def test_arithmetic_wraps(self):
        top = FieldElement(FIELD_PRIME - 1)
        self.assertEqual(top + FieldElement.ONE, FieldElement.ZERO)
        self.assertEqual(FieldElement.ZERO - FieldElement.ONE, top)
        self.assertEqual(-FieldElement.ONE, top)
        self.assertEqual(top * top, FieldElement.ONE)

    def test_invert(self):
        a = FieldElement(123456789)
        self.assertEqual(a * a.invert(), FieldElement.ONE)
        self.assertEqual(a / a, FieldElement.ONE)
        with self.assertRaises(FieldArithmeticError):
            FieldElement.ZERO.invert()

    def test_sqrt(self):
        a = FieldElement(987654321)
        square = a * a
        root = square.sqrt()
        self.assertEqual(root * root, square)
        self.assertIn(root, (a, -a))

    def test_sqrt_of_non_residue(self):
        # Half of the non-zero elements are non-residues; one is found quickly.
        raised = False
        for candidate in range(2, 200):
            try:
                FieldElement(candidate).sqrt()
            except FieldArithmeticError:
                raised = True
                break
        self.assertTrue(raised)

    def test_bits(self):
        self.assertEqual(bits_le(6, 4), [False, True, True, False])
        self.assertEqual(len(FieldElement(1).to_bits_le()), FIELD_BITS)
        with self.assertRaises(ValueError):
            bits_le(16, 4)


if __name__ == "__main__":
    unittest.main()
