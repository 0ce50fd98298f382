# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""Well-known Starknet chain identifiers, as short-string field elements."""

import unittest

from .field import FieldElement
from .utils import cairo_short_string_to_felt

MAINNET = cairo_short_string_to_felt("SN_MAIN")
TESTNET = cairo_short_string_to_felt("SN_GOERLI")
TESTNET2 = cairo_short_string_to_felt("SN_GOERLI2")
SEPOLIA = cairo_short_string_to_felt("SN_SEPOLIA")

BY_NAME = {
    "mainnet": MAINNET,
    "testnet": TESTNET,
    "testnet2": TESTNET2,
    "sepolia": SEPOLIA,
}


def from_name(name: str) -> FieldElement:
    """Resolve ``mainnet``/``testnet``/``testnet2``/``sepolia`` or a raw short string."""
    if name.lower() in BY_NAME:
        return BY_NAME[name.lower()]
    return cairo_short_string_to_felt(name)


class Test(unittest.TestCase):
    def test_values(self):
        self.assertEqual(MAINNET, FieldElement(0x534E5F4D41494E))
        self.assertEqual(TESTNET, FieldElement(0x534E5F474F45524C49))
        self.assertEqual(SEPOLIA, FieldElement(0x534E5F5345504F4C4941))
        self.assertEqual(TESTNET2.hex(), "0x534e5f474f45524c4932")

    def test_from_name(self):
        self.assertEqual(from_name("Mainnet"), MAINNET)
        self.assertEqual(from_name("SN_GOERLI"), TESTNET)


if __name__ == "__main__":
    unittest.main()
