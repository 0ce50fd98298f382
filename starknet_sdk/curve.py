# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Point arithmetic on the Stark curve.

The Stark curve is the short Weierstrass curve ``y² = x³ + αx + β`` over the
Stark prime field with ``α = 1``. It has prime order :data:`EC_ORDER`, and every
signature and Pedersen hash in the SDK reduces to the operations defined here.

Two representations are provided:

- :class:`AffinePoint`: ``(x, y)`` plus an ``infinity`` flag for the group
  identity. All arithmetic is done in this representation.
- :class:`ProjectivePoint`: ``(X, Y, Z)`` with ``x = X/Z`` and ``y = Y/Z``,
  convertible to and from affine form.

The operations are pure functions over immutable values, so they may be called
from any number of concurrent tasks without locking. Impossible operations (the
square root of a non-residue, doubling a point with ``y = 0``) raise
:class:`~starknet_sdk.errors.FieldArithmeticError`; the two equal-x cases of
point addition are dispatched explicitly to doubling or to the identity.

Examples:
    Scalar multiplication of the generator::

        from starknet_sdk.curve import GENERATOR

        public_point = GENERATOR.multiply_scalar(private_key)

    Group law::

        p = AffinePoint.from_x(FieldElement(1))
        assert p + AffinePoint.identity() == p
        assert p - p == AffinePoint.identity()
"""

from __future__ import annotations

import unittest
from dataclasses import dataclass
from typing import Sequence

from .errors import FieldArithmeticError
from .field import FIELD_BITS, FIELD_PRIME, FieldElement, bits_le

ALPHA = FieldElement.ONE
BETA = FieldElement(0x6F21413EFBE40DE150E596D72F7A8C5609AD26C15C915C1F4CDFCB99CEE9E89)

EC_ORDER = 0x800000000000010FFFFFFFFFFFFFFFFB781126DCAE7B2321E66A241ADC64D2F

# Roots at or below this value are the canonical ("positive") ones.
_HALF_PRIME = (FIELD_PRIME - 1) // 2


@dataclass(frozen=True, eq=False)
class AffinePoint:
    """A point on the Stark curve in affine coordinates, or the identity."""

    x: FieldElement
    y: FieldElement
    infinity: bool = False

    def __post_init__(self):
        if not self.infinity and not self.is_on_curve():
            raise ValueError(f"({self.x}, {self.y}) is not on the Stark curve")

    @staticmethod
    def identity() -> AffinePoint:
        return AffinePoint(FieldElement.ZERO, FieldElement.ZERO, True)

    @staticmethod
    def from_x(x: FieldElement) -> AffinePoint:
        """Decompress a point from its x-coordinate.

        The canonical root of ``x³ + αx + β`` (the one not greater than
        ``(P - 1) / 2``) is used as the y-coordinate; the other point with the same
        x is its negation.

        Raises:
            FieldArithmeticError: if ``x³ + αx + β`` is not a quadratic residue,
                i.e. no point with this x-coordinate exists.
        """
        y_squared = x * x * x + ALPHA * x + BETA
        y = y_squared.sqrt()
        if y.value > _HALF_PRIME:
            y = -y
        return AffinePoint(x, y)

    def is_on_curve(self) -> bool:
        if self.infinity:
            return True
        return self.y * self.y == self.x * self.x * self.x + ALPHA * self.x + BETA

    def negate(self) -> AffinePoint:
        if self.infinity:
            return self
        return AffinePoint(self.x, -self.y)

    def double(self) -> AffinePoint:
        if self.infinity:
            return self
        if self.y.is_zero():
            raise FieldArithmeticError(
                f"cannot double {self.x}: the tangent at a point with y = 0 is vertical"
            )

        # l = (3x^2 + a) / 2y
        lam = (FieldElement.THREE * self.x * self.x + ALPHA) / (
            FieldElement.TWO * self.y
        )
        result_x = lam * lam - self.x - self.x
        result_y = lam * (self.x - result_x) - self.y
        return AffinePoint(result_x, result_y)

    def add(self, other: AffinePoint) -> AffinePoint:
        if self.infinity:
            return other
        if other.infinity:
            return self
        if self.x == other.x:
            # Same x means other is either self or -self; the chord is undefined.
            if self.y == other.y:
                return self.double()
            return AffinePoint.identity()

        # l = (y2 - y1) / (x2 - x1)
        lam = (other.y - self.y) / (other.x - self.x)
        result_x = lam * lam - self.x - other.x
        result_y = lam * (self.x - result_x) - self.y
        return AffinePoint(result_x, result_y)

    def subtract(self, other: AffinePoint) -> AffinePoint:
        return self.add(other.negate())

    def multiply(self, bits: Sequence[bool]) -> AffinePoint:
        """Double-and-add over ``bits``, a little-endian scalar expansion.

        The bits are consumed most-significant first. Every bit costs one doubling
        whatever its value, so the number of steps depends only on ``len(bits)``.
        """
        product = AffinePoint.identity()
        for bit in reversed(bits):
            product = product.double()
            if bit:
                product = product.add(self)
        return product

    def multiply_scalar(self, scalar: int) -> AffinePoint:
        return self.multiply(bits_le(scalar, FIELD_BITS))

    def __add__(self, other: object) -> AffinePoint:
        if not isinstance(other, AffinePoint):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other: object) -> AffinePoint:
        if not isinstance(other, AffinePoint):
            return NotImplemented
        return self.subtract(other)

    def __neg__(self) -> AffinePoint:
        return self.negate()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AffinePoint):
            return NotImplemented
        if self.infinity or other.infinity:
            return self.infinity == other.infinity
        return self.x == other.x and self.y == other.y

    def __hash__(self) -> int:
        if self.infinity:
            return hash(None)
        return hash((self.x, self.y))


@dataclass(frozen=True, eq=False)
class ProjectivePoint:
    """A Stark curve point in homogeneous projective coordinates."""

    x: FieldElement
    y: FieldElement
    z: FieldElement
    infinity: bool = False

    @staticmethod
    def identity() -> ProjectivePoint:
        return ProjectivePoint(
            FieldElement.ZERO, FieldElement.ONE, FieldElement.ZERO, True
        )

    @staticmethod
    def from_affine(point: AffinePoint) -> ProjectivePoint:
        if point.infinity:
            return ProjectivePoint.identity()
        return ProjectivePoint(point.x, point.y, FieldElement.ONE)

    def to_affine(self) -> AffinePoint:
        if self.infinity:
            return AffinePoint.identity()
        z_inv = self.z.invert()
        return AffinePoint(self.x * z_inv, self.y * z_inv)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProjectivePoint):
            return NotImplemented
        if self.infinity or other.infinity:
            return self.infinity == other.infinity
        return (
            self.x * other.z == other.x * self.z
            and self.y * other.z == other.y * self.z
        )

    def __hash__(self) -> int:
        return hash(self.to_affine())


GENERATOR = AffinePoint(
    FieldElement(0x1EF15C18599971B7BECED415A40F0C7DEACFD9B0D1819E03D723D8BC943CFCA),
    FieldElement(0x5668060AA49730B7BE4801DF46EC62DE53ECD11ABE43A32873000C36E8DC1F),
)


class Test(unittest.TestCase):
    def test_from_x_satisfies_curve(self):
        found = 0
        for candidate in range(1, 40):
            x = FieldElement(candidate)
            try:
                point = AffinePoint.from_x(x)
            except FieldArithmeticError:
                continue
            found += 1
            self.assertTrue(point.is_on_curve())
            self.assertEqual(point.y * point.y, x * x * x + ALPHA * x + BETA)
            self.assertLessEqual(point.y.value, _HALF_PRIME)
        self.assertGreater(found, 0)

    def test_from_x_non_residue(self):
        raised = False
        for candidate in range(1, 40):
            try:
                AffinePoint.from_x(FieldElement(candidate))
            except FieldArithmeticError:
                raised = True
                break
        self.assertTrue(raised)

    def test_from_x_recovers_generator(self):
        point = AffinePoint.from_x(GENERATOR.x)
        self.assertIn(point, (GENERATOR, -GENERATOR))

    def test_off_curve_rejected(self):
        with self.assertRaises(ValueError):
            AffinePoint(FieldElement.ONE, FieldElement.ONE)

    def test_identity(self):
        identity = AffinePoint.identity()
        self.assertEqual(GENERATOR + identity, GENERATOR)
        self.assertEqual(identity + GENERATOR, GENERATOR)
        self.assertEqual(identity.double(), identity)
        self.assertEqual(-identity, identity)

    def test_subtract_self(self):
        self.assertEqual(GENERATOR - GENERATOR, AffinePoint.identity())
        doubled = GENERATOR.double()
        self.assertEqual(doubled - doubled, AffinePoint.identity())

    def test_add_negation_is_identity(self):
        negated = AffinePoint(GENERATOR.x, -GENERATOR.y)
        self.assertEqual(GENERATOR.add(negated), AffinePoint.identity())

    def test_add_equal_points_doubles(self):
        self.assertEqual(GENERATOR.add(GENERATOR), GENERATOR.double())

    def test_multiply_homomorphism(self):
        for k1, k2 in [(0, 1), (1, 1), (2, 3), (5, 11), (17, 250)]:
            lhs = GENERATOR.multiply(bits_le(k1 + k2, 16))
            rhs = GENERATOR.multiply(bits_le(k1, 16)) + GENERATOR.multiply(
                bits_le(k2, 16)
            )
            self.assertEqual(lhs, rhs)

    def test_multiply_small(self):
        self.assertEqual(GENERATOR.multiply([]), AffinePoint.identity())
        self.assertEqual(GENERATOR.multiply([True]), GENERATOR)
        self.assertEqual(GENERATOR.multiply([False, True]), GENERATOR.double())
        self.assertEqual(
            GENERATOR.multiply_scalar(3), GENERATOR.double() + GENERATOR
        )

    def test_order(self):
        self.assertEqual(
            GENERATOR.multiply_scalar(EC_ORDER - 1), -GENERATOR
        )

    def test_projective_round_trip(self):
        projective = ProjectivePoint.from_affine(GENERATOR)
        self.assertEqual(projective.to_affine(), GENERATOR)
        scale = FieldElement(7)
        scaled = ProjectivePoint(
            GENERATOR.x * scale, GENERATOR.y * scale, scale
        )
        self.assertEqual(scaled, projective)
        self.assertEqual(scaled.to_affine(), GENERATOR)
        self.assertEqual(
            ProjectivePoint.from_affine(AffinePoint.identity()).to_affine(),
            AffinePoint.identity(),
        )


if __name__ == "__main__":
    unittest.main()
