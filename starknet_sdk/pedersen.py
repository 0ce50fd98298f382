# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Starknet Pedersen hash.

``pedersen_hash(a, b)`` is the x-coordinate of
``P0 + a_low * P1 + a_high * P2 + b_low * P3 + b_high * P4`` where ``*_low`` are
the 248 least significant bits of an input and ``*_high`` the remaining 4 bits.
``compute_hash_on_elements`` folds a list with the hash, starting from zero, and
finishes by hashing in the list length; transaction and class hashes are built
from it.
"""

import unittest
from typing import Sequence

from .curve import AffinePoint
from .field import FieldElement, bits_le

_LOW_PART_BITS = 248
_LOW_PART_MASK = 2**_LOW_PART_BITS - 1
_HIGH_PART_BITS = 4

SHIFT_POINT = AffinePoint(
    FieldElement(0x49EE3EBA8C1600700EE1B87EB599F16716B0B1022947733551FDE4050CA6804),
    FieldElement(0x3CA0CFE4B3BC6DDF346D49D06EA0ED34E621062C0E056C1D0405D266E10268A),
)
PEDERSEN_P1 = AffinePoint(
    FieldElement(0x234287DCBAFFE7F969C748655FCA9E58FA8120B6D56EB0C1080D17957EBE47B),
    FieldElement(0x3B056F100F96FB21E889527D41F4E39940135DD7A6C94CC6ED0268EE89E5615),
)
PEDERSEN_P2 = AffinePoint(
    FieldElement(0x4FA56F376C83DB33F9DAB2656558F3399099EC1DE5E3018B7A6932DBA8AA378),
    FieldElement(0x3FA0984C931C9E38113E0C0E47E4401562761F92A7A23B45168F4E80FF5B54D),
)
PEDERSEN_P3 = AffinePoint(
    FieldElement(0x4BA4CC166BE8DEC764910F75B45F74B40C690C74709E90F3AA372F0BD2D6997),
    FieldElement(0x40301CF5C1751F4B971E46C4EDE85FCAC5C59A5CE5AE7C48151F27B24B219C),
)
PEDERSEN_P4 = AffinePoint(
    FieldElement(0x54302DCB0E6CC1C6E44CCA8F61A63BB2CA65048D53FB325D36FF12C49A58202),
    FieldElement(0x1B77B3E37D13504B348046268D8AE25CE98AD783C25561A879DCC77E99C2426),
)


def _process_element(
    element: FieldElement, low_point: AffinePoint, high_point: AffinePoint
) -> AffinePoint:
    value = element.value
    low = low_point.multiply(bits_le(value & _LOW_PART_MASK, _LOW_PART_BITS))
    high = high_point.multiply(bits_le(value >> _LOW_PART_BITS, _HIGH_PART_BITS))
    return low + high


def pedersen_hash(a: FieldElement, b: FieldElement) -> FieldElement:
    point = SHIFT_POINT
    point = point + _process_element(a, PEDERSEN_P1, PEDERSEN_P2)
    point = point + _process_element(b, PEDERSEN_P3, PEDERSEN_P4)
    return point.x


def compute_hash_on_elements(data: Sequence[FieldElement]) -> FieldElement:
    """Hash a list of field elements: ``h(h(h(h(0, d0), d1), ...), len(data))``."""
    current = FieldElement.ZERO
    for element in data:
        current = pedersen_hash(current, element)
    return pedersen_hash(current, FieldElement(len(data)))


class Test(unittest.TestCase):
    def test_known_vector(self):
        self.assertEqual(
            pedersen_hash(
                FieldElement.from_hex(
                    "0x03d937c035c878245caf64531a5756109c53068da139362728feb561405371cb"
                ),
                FieldElement.from_hex(
                    "0x0208a0a10250e382e1e4bbe2880906c2791bf6275695e02fbbc6aeff9cd8b31a"
                ),
            ),
            FieldElement.from_hex(
                "0x030e480bed5fe53fa909cc0f8c4d99b8f9f2c016be4c41e13a4848797979c662"
            ),
        )

    def test_zero_inputs_give_shift_point(self):
        self.assertEqual(
            pedersen_hash(FieldElement.ZERO, FieldElement.ZERO), SHIFT_POINT.x
        )

    def test_small_inputs(self):
        self.assertEqual(
            pedersen_hash(FieldElement(1), FieldElement(2)),
            FieldElement.from_hex(
                "0x5bb9440e27889a364bcb678b1f679ecd1347acdedcbf36e83494f857cc58026"
            ),
        )

    def test_hash_on_elements(self):
        data = [FieldElement(1), FieldElement(2)]
        expected = pedersen_hash(
            pedersen_hash(pedersen_hash(FieldElement.ZERO, data[0]), data[1]),
            FieldElement(2),
        )
        self.assertEqual(compute_hash_on_elements(data), expected)
        self.assertEqual(
            compute_hash_on_elements([]),
            pedersen_hash(FieldElement.ZERO, FieldElement.ZERO),
        )


if __name__ == "__main__":
    unittest.main()
