# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Account transactions: hashing and gateway serialization.

This module holds the two account transaction kinds the SDK builds:

- :class:`InvokeTransaction` (version 1): calls the account's ``__execute__``
  entry point with multicall calldata.
- :class:`DeclareTransaction`: registers a contract class. Legacy classes are
  declared with version 1, Sierra classes with version 2 (which additionally
  commits to the compiled class hash).

Transaction hashes are Pedersen hash-on-elements (``H``) chains::

    invoke:     H(["invoke", version, sender, 0, H(calldata), max_fee, chain_id, nonce])
    declare v1: H(["declare", version, sender, 0, H([class_hash]), max_fee, chain_id, nonce])
    declare v2: H([..declare v1 fields.., compiled_class_hash])

Query versions (``2**128 + version``) mark transactions that are only meant for
fee estimation or simulation: the network accepts them for those endpoints but a
signature over a query-version hash can never authorize a real submission.

Examples:
    Hashing and serializing an invoke::

        tx = InvokeTransaction(
            sender_address=account_address,
            calldata=tuple(encode_calls(calls)),
            max_fee=FieldElement(10**15),
            nonce=FieldElement(3),
            version=FieldElement(1),
        )
        tx_hash = tx.hash(chain_id.TESTNET)
        signed = tx.with_signature(await signer.sign_hash(tx_hash))
        body = signed.to_json()
"""

from __future__ import annotations

import dataclasses
import unittest
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from . import chain_id
from .contract_class import CompressedLegacyContractClass, CompressedSierraClass
from .field import FieldElement
from .pedersen import compute_hash_on_elements
from .stark_ecdsa import Signature
from .utils import cairo_short_string_to_felt

PREFIX_INVOKE = cairo_short_string_to_felt("invoke")
PREFIX_DECLARE = cairo_short_string_to_felt("declare")

QUERY_VERSION_BASE = 2**128

INVOKE_VERSION = 1
LEGACY_DECLARE_VERSION = 1
SIERRA_DECLARE_VERSION = 2


def transaction_version(version: int, query_only: bool = False) -> FieldElement:
    """The version field to sign, offset by ``2**128`` for query-only transactions."""
    return FieldElement(QUERY_VERSION_BASE + version if query_only else version)


def is_query_version(version: FieldElement) -> bool:
    return version.value >= QUERY_VERSION_BASE


def compute_invoke_transaction_hash(
    sender_address: FieldElement,
    calldata: Sequence[FieldElement],
    max_fee: FieldElement,
    chain_id: FieldElement,
    nonce: FieldElement,
    version: FieldElement,
) -> FieldElement:
    return compute_hash_on_elements(
        [
            PREFIX_INVOKE,
            version,
            sender_address,
            FieldElement.ZERO,
            compute_hash_on_elements(calldata),
            max_fee,
            chain_id,
            nonce,
        ]
    )


def compute_declare_transaction_hash(
    sender_address: FieldElement,
    class_hash: FieldElement,
    max_fee: FieldElement,
    chain_id: FieldElement,
    nonce: FieldElement,
    version: FieldElement,
    compiled_class_hash: Optional[FieldElement] = None,
) -> FieldElement:
    """Hash of a declare transaction.

    ``compiled_class_hash`` is appended for version 2 (Sierra) declarations and
    must be omitted for version 1.
    """
    elements = [
        PREFIX_DECLARE,
        version,
        sender_address,
        FieldElement.ZERO,
        compute_hash_on_elements([class_hash]),
        max_fee,
        chain_id,
        nonce,
    ]
    if compiled_class_hash is not None:
        elements.append(compiled_class_hash)
    return compute_hash_on_elements(elements)


def _signature_json(signature: Tuple[FieldElement, ...]) -> list:
    return [str(value.value) for value in signature]


@dataclass(frozen=True)
class InvokeTransaction:
    sender_address: FieldElement
    calldata: Tuple[FieldElement, ...]
    max_fee: FieldElement
    nonce: FieldElement
    version: FieldElement
    signature: Tuple[FieldElement, ...] = ()

    def hash(self, chain_id: FieldElement) -> FieldElement:
        return compute_invoke_transaction_hash(
            self.sender_address,
            self.calldata,
            self.max_fee,
            chain_id,
            self.nonce,
            self.version,
        )

    def with_signature(self, signature: Signature) -> InvokeTransaction:
        return dataclasses.replace(self, signature=tuple(signature.to_list()))

    def to_json(self) -> Dict[str, Any]:
        """Gateway representation: calldata and signature in decimal, the rest hex."""
        return {
            "type": "INVOKE_FUNCTION",
            "sender_address": self.sender_address.hex(),
            "calldata": [str(value.value) for value in self.calldata],
            "signature": _signature_json(self.signature),
            "max_fee": self.max_fee.hex(),
            "nonce": self.nonce.hex(),
            "version": self.version.hex(),
        }


@dataclass(frozen=True)
class DeclareTransaction:
    sender_address: FieldElement
    contract_class: Union[CompressedSierraClass, CompressedLegacyContractClass]
    class_hash: FieldElement
    max_fee: FieldElement
    nonce: FieldElement
    version: FieldElement
    compiled_class_hash: Optional[FieldElement] = None
    signature: Tuple[FieldElement, ...] = ()

    def hash(self, chain_id: FieldElement) -> FieldElement:
        return compute_declare_transaction_hash(
            self.sender_address,
            self.class_hash,
            self.max_fee,
            chain_id,
            self.nonce,
            self.version,
            self.compiled_class_hash,
        )

    def with_signature(self, signature: Signature) -> DeclareTransaction:
        return dataclasses.replace(self, signature=tuple(signature.to_list()))

    def to_json(self) -> Dict[str, Any]:
        data = {
            "type": "DECLARE",
            "sender_address": self.sender_address.hex(),
            "contract_class": self.contract_class.to_json(),
            "signature": _signature_json(self.signature),
            "max_fee": self.max_fee.hex(),
            "nonce": self.nonce.hex(),
            "version": self.version.hex(),
        }
        if self.compiled_class_hash is not None:
            data["compiled_class_hash"] = self.compiled_class_hash.hex()
        return data


AccountTransaction = Union[InvokeTransaction, DeclareTransaction]


class Test(unittest.TestCase):
    def test_prefixes(self):
        self.assertEqual(PREFIX_INVOKE, FieldElement(0x696E766F6B65))
        self.assertEqual(PREFIX_DECLARE, FieldElement(0x6465636C617265))

    def test_query_version(self):
        self.assertEqual(transaction_version(1), FieldElement.ONE)
        query = transaction_version(1, query_only=True)
        self.assertEqual(query.value, 2**128 + 1)
        self.assertTrue(is_query_version(query))
        self.assertFalse(is_query_version(FieldElement(2)))

    def test_invoke_hash_layout(self):
        tx = InvokeTransaction(
            sender_address=FieldElement(0xA),
            calldata=(FieldElement(1), FieldElement(2)),
            max_fee=FieldElement(100),
            nonce=FieldElement(5),
            version=FieldElement.ONE,
        )
        expected = compute_hash_on_elements(
            [
                PREFIX_INVOKE,
                FieldElement.ONE,
                FieldElement(0xA),
                FieldElement.ZERO,
                compute_hash_on_elements([FieldElement(1), FieldElement(2)]),
                FieldElement(100),
                chain_id.TESTNET,
                FieldElement(5),
            ]
        )
        self.assertEqual(tx.hash(chain_id.TESTNET), expected)
        self.assertNotEqual(tx.hash(chain_id.TESTNET), tx.hash(chain_id.MAINNET))
        # Signatures are not part of the hash.
        signed = tx.with_signature(Signature(FieldElement(3), FieldElement(4)))
        self.assertEqual(signed.hash(chain_id.TESTNET), expected)

    def test_invoke_json(self):
        tx = InvokeTransaction(
            sender_address=FieldElement(0xA),
            calldata=(FieldElement(255),),
            max_fee=FieldElement(100),
            nonce=FieldElement(5),
            version=transaction_version(1, query_only=True),
        ).with_signature(Signature(FieldElement(16), FieldElement(17)))
        self.assertEqual(
            tx.to_json(),
            {
                "type": "INVOKE_FUNCTION",
                "sender_address": "0xa",
                "calldata": ["255"],
                "signature": ["16", "17"],
                "max_fee": "0x64",
                "nonce": "0x5",
                "version": "0x100000000000000000000000000000001",
            },
        )

    def test_declare_v2_commits_to_compiled_class_hash(self):
        compressed = CompressedSierraClass(b"\x00", "0.1.0", {}, "[]")
        base = DeclareTransaction(
            sender_address=FieldElement(0xA),
            contract_class=compressed,
            class_hash=FieldElement(0xC1),
            max_fee=FieldElement(100),
            nonce=FieldElement(0),
            version=FieldElement(2),
            compiled_class_hash=FieldElement(0xC2),
        )
        other = dataclasses.replace(base, compiled_class_hash=FieldElement(0xC3))
        self.assertNotEqual(base.hash(chain_id.TESTNET), other.hash(chain_id.TESTNET))
        self.assertEqual(base.to_json()["compiled_class_hash"], "0xc2")
        self.assertEqual(base.to_json()["contract_class"]["sierra_program"], "AA==")

        legacy = DeclareTransaction(
            sender_address=FieldElement(0xA),
            contract_class=CompressedLegacyContractClass(b"\x00", {}),
            class_hash=FieldElement(0xC1),
            max_fee=FieldElement(100),
            nonce=FieldElement(0),
            version=FieldElement(1),
        )
        self.assertEqual(
            legacy.hash(chain_id.TESTNET),
            compute_hash_on_elements(
                [
                    PREFIX_DECLARE,
                    FieldElement(1),
                    FieldElement(0xA),
                    FieldElement.ZERO,
                    compute_hash_on_elements([FieldElement(0xC1)]),
                    FieldElement(100),
                    chain_id.TESTNET,
                    FieldElement.ZERO,
                ]
            ),
        )
        self.assertNotIn("compiled_class_hash", legacy.to_json())


if __name__ == "__main__":
    unittest.main()
