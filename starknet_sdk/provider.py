# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Provider interface and response models.

:class:`Provider` is the network collaborator an
:class:`~starknet_sdk.account.Account` talks to. The SDK ships one implementation,
:class:`~starknet_sdk.async_client.GatewayClient`; tests substitute their own.
Responses are returned as the small dataclasses below, built from the gateway's
JSON with ``from_json``.
"""

from __future__ import annotations

import unittest
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from typing_extensions import Protocol

from .field import FieldElement
from .transactions import AccountTransaction


def _felt(value: Any) -> FieldElement:
    if isinstance(value, int):
        return FieldElement(value)
    if value.startswith("0x"):
        return FieldElement.from_hex(value)
    return FieldElement.from_dec_str(value)


class TransactionResultCode(Enum):
    TRANSACTION_RECEIVED = "TRANSACTION_RECEIVED"


class TransactionStatus(Enum):
    NOT_RECEIVED = "NOT_RECEIVED"
    RECEIVED = "RECEIVED"
    PENDING = "PENDING"
    ACCEPTED_ON_L2 = "ACCEPTED_ON_L2"
    ACCEPTED_ON_L1 = "ACCEPTED_ON_L1"
    REJECTED = "REJECTED"
    REVERTED = "REVERTED"
    ABORTED = "ABORTED"

    def is_accepted(self) -> bool:
        return self in (TransactionStatus.ACCEPTED_ON_L2, TransactionStatus.ACCEPTED_ON_L1)

    def is_failed(self) -> bool:
        return self in (
            TransactionStatus.REJECTED,
            TransactionStatus.REVERTED,
            TransactionStatus.ABORTED,
        )


@dataclass
class FeeEstimate:
    """Fee estimate in the smallest unit of the fee token."""

    overall_fee: int
    gas_price: int
    gas_usage: int
    unit: str = "wei"

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> FeeEstimate:
        return cls(
            overall_fee=int(data["overall_fee"]),
            gas_price=int(data.get("gas_price", 0)),
            gas_usage=int(data.get("gas_usage", 0)),
            unit=data.get("unit", "wei"),
        )


@dataclass
class FunctionInvocation:
    contract_address: FieldElement
    entry_point_selector: Optional[FieldElement]
    calldata: List[FieldElement]
    result: List[FieldElement]
    internal_calls: List[FunctionInvocation] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> FunctionInvocation:
        selector = data.get("selector", data.get("entry_point_selector"))
        return cls(
            contract_address=_felt(data["contract_address"]),
            entry_point_selector=None if selector is None else _felt(selector),
            calldata=[_felt(value) for value in data.get("calldata", [])],
            result=[_felt(value) for value in data.get("result", [])],
            internal_calls=[
                FunctionInvocation.from_json(call)
                for call in data.get("internal_calls", [])
            ],
        )


@dataclass
class TransactionTrace:
    function_invocation: Optional[FunctionInvocation]
    validate_invocation: Optional[FunctionInvocation] = None
    fee_transfer_invocation: Optional[FunctionInvocation] = None
    signature: List[FieldElement] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> TransactionTrace:
        def invocation(key: str) -> Optional[FunctionInvocation]:
            value = data.get(key)
            return None if value is None else FunctionInvocation.from_json(value)

        return cls(
            function_invocation=invocation("function_invocation"),
            validate_invocation=invocation("validate_invocation"),
            fee_transfer_invocation=invocation("fee_transfer_invocation"),
            signature=[_felt(value) for value in data.get("signature", [])],
        )


@dataclass
class SimulationResult:
    trace: TransactionTrace
    fee_estimation: FeeEstimate

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> SimulationResult:
        return cls(
            trace=TransactionTrace.from_json(data["trace"]),
            fee_estimation=FeeEstimate.from_json(data["fee_estimation"]),
        )


@dataclass
class AddTransactionResult:
    code: TransactionResultCode
    transaction_hash: FieldElement
    class_hash: Optional[FieldElement] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> AddTransactionResult:
        class_hash = data.get("class_hash")
        return cls(
            code=TransactionResultCode(data["code"]),
            transaction_hash=_felt(data["transaction_hash"]),
            class_hash=None if class_hash is None else _felt(class_hash),
        )


@dataclass
class TransactionStatusInfo:
    status: TransactionStatus
    block_hash: Optional[FieldElement] = None
    failure_reason: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> TransactionStatusInfo:
        block_hash = data.get("block_hash")
        reason = data.get("tx_failure_reason") or data.get("tx_revert_reason")
        if isinstance(reason, dict):
            reason = reason.get("error_message", str(reason))
        return cls(
            status=TransactionStatus(data["tx_status"]),
            block_hash=None if block_hash is None else _felt(block_hash),
            failure_reason=reason,
        )


class Provider(Protocol):
    """Network operations an account needs.

    Implementations raise :class:`~starknet_sdk.errors.NetworkError` (or a
    subclass) for every failure and never retry on their own.
    """

    async def get_nonce(self, address: FieldElement) -> FieldElement:
        """Nonce of ``address`` in the pending block."""
        ...

    async def estimate_fee(self, transaction: AccountTransaction) -> FeeEstimate:
        ...

    async def simulate_transaction(
        self, transaction: AccountTransaction
    ) -> SimulationResult:
        ...

    async def add_transaction(
        self, transaction: AccountTransaction
    ) -> AddTransactionResult:
        ...


class Test(unittest.TestCase):
    def test_simulation_result(self):
        result = SimulationResult.from_json(
            {
                "trace": {
                    "function_invocation": {
                        "contract_address": "0x1",
                        "selector": "0x2",
                        "calldata": ["0x3"],
                        "result": [],
                        "internal_calls": [
                            {
                                "contract_address": "0x4",
                                "entry_point_selector": "0x5",
                                "calldata": [],
                                "result": ["0x1"],
                                "internal_calls": [],
                            }
                        ],
                    },
                    "signature": ["0x10", "0x11"],
                },
                "fee_estimation": {
                    "overall_fee": 1000,
                    "gas_price": 10,
                    "gas_usage": 100,
                    "unit": "wei",
                },
            }
        )
        invocation = result.trace.function_invocation
        assert invocation is not None
        self.assertEqual(len(invocation.internal_calls), 1)
        self.assertEqual(
            invocation.internal_calls[0].entry_point_selector, FieldElement(5)
        )
        self.assertEqual(result.fee_estimation.overall_fee, 1000)
        self.assertIsNone(result.trace.validate_invocation)

    def test_add_transaction_result(self):
        result = AddTransactionResult.from_json(
            {"code": "TRANSACTION_RECEIVED", "transaction_hash": "0xabc"}
        )
        self.assertEqual(result.code, TransactionResultCode.TRANSACTION_RECEIVED)
        self.assertEqual(result.transaction_hash, FieldElement(0xABC))
        self.assertIsNone(result.class_hash)

    def test_transaction_status(self):
        status = TransactionStatusInfo.from_json(
            {
                "tx_status": "REJECTED",
                "tx_failure_reason": {"error_message": "Invalid nonce"},
            }
        )
        self.assertTrue(status.status.is_failed())
        self.assertEqual(status.failure_reason, "Invalid nonce")
        self.assertTrue(TransactionStatus.ACCEPTED_ON_L1.is_accepted())


if __name__ == "__main__":
    unittest.main()
