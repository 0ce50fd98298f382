# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Contract calls and the account multicall calldata layout.

A :class:`Call` is one logical contract invocation. An account executes any
number of calls in a single transaction by passing them to its ``__execute__``
entry point packed as::

    [call_count,
     to_0, selector_0, data_offset_0, data_len_0,
     ...
     to_n, selector_n, data_offset_n, data_len_n,
     total_data_len,
     data_0..., data_1..., ..., data_n...]

Calls keep their input order and are never merged or deduplicated.

Examples:
    Two mints in one transaction::

        from starknet_sdk.call import Call, encode_calls

        calls = [
            Call.natural(token_a, "mint", [recipient, amount_low, amount_high]),
            Call.natural(token_b, "mint", [recipient, amount_low, amount_high]),
        ]
        calldata = encode_calls(calls)
"""

from __future__ import annotations

import unittest
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from .errors import CallEncodingError
from .field import FIELD_PRIME, FieldElement
from .utils import get_selector_from_name


@dataclass(frozen=True)
class Call:
    """An invocation of ``selector`` on the contract at ``to``."""

    to: FieldElement
    selector: FieldElement
    calldata: Tuple[FieldElement, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "calldata", tuple(self.calldata))

    @staticmethod
    def natural(
        to: FieldElement, function_name: str, calldata: Iterable[FieldElement] = ()
    ) -> Call:
        """Build a call from a function name instead of a raw selector."""
        return Call(to, get_selector_from_name(function_name), tuple(calldata))


def _checked_felt(value: int, call_index: int | None, field: str) -> FieldElement:
    if value >= FIELD_PRIME:
        raise CallEncodingError(
            f"{value} does not fit in a field element", call_index, field
        )
    return FieldElement(value)


def _require_felt(value: object, call_index: int, field: str) -> FieldElement:
    if not isinstance(value, FieldElement):
        raise CallEncodingError(
            f"expected FieldElement, got {type(value).__name__}", call_index, field
        )
    return value


def encode_calls(calls: Sequence[Call]) -> List[FieldElement]:
    """Pack ``calls`` into ``__execute__`` calldata.

    Raises:
        CallEncodingError: If a call holds something other than field elements, or
            a count or offset cannot be represented as a field element.
    """
    header: List[FieldElement] = [_checked_felt(len(calls), None, "call_count")]
    data: List[FieldElement] = []

    for index, call in enumerate(calls):
        to = _require_felt(call.to, index, "to")
        selector = _require_felt(call.selector, index, "selector")
        for position, word in enumerate(call.calldata):
            _require_felt(word, index, f"calldata[{position}]")

        header.extend(
            [
                to,
                selector,
                _checked_felt(len(data), index, "data_offset"),
                _checked_felt(len(call.calldata), index, "data_len"),
            ]
        )
        data.extend(call.calldata)

    header.append(_checked_felt(len(data), None, "total_data_len"))
    return header + data


class Test(unittest.TestCase):
    @staticmethod
    def decode(calldata: List[FieldElement]) -> List[Call]:
        values = [int(word) for word in calldata]
        count = values[0]
        entries = [values[1 + 4 * i : 5 + 4 * i] for i in range(count)]
        total = values[1 + 4 * count]
        data = values[2 + 4 * count :]
        assert len(data) == total
        calls = []
        for to, selector, offset, length in entries:
            calls.append(
                Call(
                    FieldElement(to),
                    FieldElement(selector),
                    tuple(FieldElement(v) for v in data[offset : offset + length]),
                )
            )
        return calls

    def test_empty(self):
        self.assertEqual(encode_calls([]), [FieldElement.ZERO, FieldElement.ZERO])
        self.assertEqual(self.decode(encode_calls([])), [])

    def test_layout(self):
        call = Call(FieldElement(10), FieldElement(20), [FieldElement(7), FieldElement(8)])
        self.assertEqual(
            [int(word) for word in encode_calls([call])],
            [1, 10, 20, 0, 2, 2, 7, 8],
        )

    def test_round_trip(self):
        calls = [
            Call.natural(FieldElement(0x111), "mint", [FieldElement(1), FieldElement(2)]),
            Call(FieldElement(0x222), FieldElement(0x333)),
            Call.natural(FieldElement(0x111), "mint", [FieldElement(1), FieldElement(2)]),
            Call(FieldElement(0x444), FieldElement(0x555), [FieldElement(9)]),
        ]
        self.assertEqual(self.decode(encode_calls(calls)), calls)
        self.assertEqual(self.decode(encode_calls(calls[:1])), calls[:1])

    def test_calldata_is_copied(self):
        calldata = [FieldElement(1)]
        call = Call(FieldElement(1), FieldElement(2), calldata)
        calldata.append(FieldElement(3))
        self.assertEqual(call.calldata, (FieldElement(1),))

    def test_bad_field_reports_location(self):
        calls = [
            Call(FieldElement(1), FieldElement(2)),
            Call(FieldElement(1), FieldElement(2), [FieldElement(3), 4]),  # type: ignore[list-item]
        ]
        with self.assertRaises(CallEncodingError) as context:
            encode_calls(calls)
        self.assertEqual(context.exception.call_index, 1)
        self.assertEqual(context.exception.field, "calldata[1]")

        with self.assertRaises(CallEncodingError) as context:
            encode_calls([Call(1, FieldElement(2))])  # type: ignore[arg-type]
        self.assertEqual(context.exception.call_index, 0)
        self.assertEqual(context.exception.field, "to")

    def test_overflow(self):
        with self.assertRaises(CallEncodingError) as context:
            _checked_felt(FIELD_PRIME, 3, "data_offset")
        self.assertEqual(context.exception.call_index, 3)


if __name__ == "__main__":
    unittest.main()
