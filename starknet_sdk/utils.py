# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Hashing and string helpers shared by transactions, classes and calls.

- :func:`starknet_keccak`: Keccak-256 truncated to the low 250 bits, the hash
  Starknet uses for selectors and hinted class hashes.
- :func:`get_selector_from_name`: entry point selector of a Cairo function name.
- :func:`cairo_short_string_to_felt`: ASCII string of at most 31 characters packed
  big-endian into one field element (chain ids, transaction prefixes, builtins).
"""

from __future__ import annotations

import unittest

from eth_utils import keccak

from .errors import EncodingError
from .field import FieldElement

_MASK_250 = 2**250 - 1

DEFAULT_ENTRY_POINT_NAME = "__default__"
DEFAULT_L1_ENTRY_POINT_NAME = "__l1_default__"

MAX_SHORT_STRING_LENGTH = 31


def starknet_keccak(data: bytes) -> FieldElement:
    return FieldElement(int.from_bytes(keccak(data), "big") & _MASK_250)


def get_selector_from_name(name: str) -> FieldElement:
    """Selector of the entry point ``name``.

    The two default entry points have selector zero.

    Example:
        >>> get_selector_from_name("transfer").hex()
        '0x83afd3f4caedc6eebf44246fe54e38c95e3179a5ec9ea81740eca5b482d12e'
    """
    if name in (DEFAULT_ENTRY_POINT_NAME, DEFAULT_L1_ENTRY_POINT_NAME):
        return FieldElement.ZERO
    return starknet_keccak(name.encode("ascii"))


def cairo_short_string_to_felt(value: str) -> FieldElement:
    if not value.isascii():
        raise EncodingError(f"short string {value!r} is not ASCII")
    if len(value) > MAX_SHORT_STRING_LENGTH:
        raise EncodingError(
            f"short string {value!r} is longer than {MAX_SHORT_STRING_LENGTH} characters"
        )
    return FieldElement(int.from_bytes(value.encode("ascii"), "big"))


def parse_felt(value: str | int | FieldElement) -> FieldElement:
    """Accept a field element, an int, or a decimal/hex string."""
    if isinstance(value, FieldElement):
        return value
    if isinstance(value, int):
        return FieldElement(value)
    if value.startswith(("0x", "0X")):
        return FieldElement.from_hex(value)
    return FieldElement.from_dec_str(value)


class Test(unittest.TestCase):
    def test_selectors(self):
        self.assertEqual(
            get_selector_from_name("__execute__"),
            FieldElement.from_hex(
                "0x15d40a3d6ca2ac30f4031e42be28da9b056fef9bb7357ac5e85627ee876e5ad"
            ),
        )
        self.assertEqual(
            get_selector_from_name("transfer"),
            FieldElement.from_hex(
                "0x83afd3f4caedc6eebf44246fe54e38c95e3179a5ec9ea81740eca5b482d12e"
            ),
        )
        self.assertEqual(
            get_selector_from_name("mint"),
            FieldElement.from_hex(
                "0x2f0b3c5710379609eb5495f1ecd348cb28167711b73609fe565a72734550354"
            ),
        )
        self.assertEqual(
            get_selector_from_name("balanceOf"),
            FieldElement.from_hex(
                "0x2e4263afad30923c891518314c3c95dbe830a16874e8abc5777a9a20b54c76e"
            ),
        )
        self.assertEqual(get_selector_from_name("__default__"), FieldElement.ZERO)
        self.assertEqual(get_selector_from_name("__l1_default__"), FieldElement.ZERO)

    def test_keccak_fits_250_bits(self):
        self.assertLess(starknet_keccak(b"").value, 2**250)

    def test_short_strings(self):
        self.assertEqual(
            cairo_short_string_to_felt("SN_MAIN"), FieldElement(0x534E5F4D41494E)
        )
        self.assertEqual(
            cairo_short_string_to_felt("invoke"), FieldElement(0x696E766F6B65)
        )
        self.assertEqual(cairo_short_string_to_felt(""), FieldElement.ZERO)
        with self.assertRaises(EncodingError):
            cairo_short_string_to_felt("x" * 32)
        with self.assertRaises(EncodingError):
            cairo_short_string_to_felt("é")

    def test_parse_felt(self):
        self.assertEqual(parse_felt("0x10"), FieldElement(16))
        self.assertEqual(parse_felt("16"), FieldElement(16))
        self.assertEqual(parse_felt(16), FieldElement(16))
        self.assertEqual(parse_felt(FieldElement(16)), FieldElement(16))


if __name__ == "__main__":
    unittest.main()
