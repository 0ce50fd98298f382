# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Exception hierarchy for the Starknet Python SDK.

Every failure the SDK can report is a typed exception raised at the point where
it happens and propagated unchanged to the caller. Local computations (field and
curve arithmetic, calldata encoding, class compression) fail synchronously;
network failures come from the provider and are never retried by the SDK.

Hierarchy::

    ArithmeticError
    └── FieldArithmeticError
    ValueError
    └── EncodingError
        ├── CallEncodingError
        └── ClassDecodingError
    StarknetSdkError
    ├── CompressionError
    ├── NetworkError
    │   └── ApiError
    │       ├── InvalidNonce
    │       └── TransactionNotAccepted
    ├── SignatureError
    └── TransactionCancelled
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class StarknetSdkError(Exception):
    """Base exception for failures raised by this SDK."""


class FieldArithmeticError(ArithmeticError):
    """A field or curve operation has no defined result.

    Raised for inversion of zero, the square root of a quadratic non-residue and
    doubling a point whose y-coordinate is zero.
    """


class EncodingError(ValueError):
    """Base exception for data that cannot be encoded or decoded."""


class CallEncodingError(EncodingError):
    """A call list cannot be packed into multicall calldata."""

    call_index: Optional[int]
    field: str

    def __init__(self, message: str, call_index: Optional[int], field: str):
        super().__init__(message)
        self.call_index = call_index
        self.field = field

    def __str__(self) -> str:
        if self.call_index is None:
            return f"{self.args[0]} (field: {self.field})"
        return f"{self.args[0]} (call #{self.call_index}, field: {self.field})"


class ClassDecodingError(EncodingError):
    """A contract class JSON document is malformed."""

    field: str

    def __init__(self, message: str, field: str):
        super().__init__(message)
        self.field = field


class CompressionErrorKind(Enum):
    JSON = "json"
    IO = "io"


class CompressionError(StarknetSdkError):
    """A contract class program could not be serialized or compressed."""

    kind: CompressionErrorKind

    def __init__(self, message: str, kind: CompressionErrorKind):
        super().__init__(message)
        self.kind = kind

    def __str__(self) -> str:
        return f"{self.kind.value} error: {self.args[0]}"


class NetworkError(StarknetSdkError):
    """The provider could not be reached or answered with something unreadable."""


class ApiError(NetworkError):
    """The gateway returned a non-success status code, e.g., >= 400"""

    status_code: int
    code: Optional[str]

    def __init__(self, message: str, status_code: int, code: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code

    def __str__(self) -> str:
        if self.code:
            return f"ApiError ({self.status_code}, {self.code}): {self.args[0]}"
        return f"ApiError ({self.status_code}): {self.args[0]}"


class InvalidNonce(ApiError):
    """The gateway rejected a transaction because of its nonce"""


class TransactionNotAccepted(ApiError):
    """A submitted transaction was rejected or reverted by the network"""

    transaction_hash: str

    def __init__(self, message: str, transaction_hash: str, status: str):
        super().__init__(message, 200, status)
        self.transaction_hash = transaction_hash


class SignatureError(StarknetSdkError):
    """The signer could not produce a signature."""


class TransactionCancelled(StarknetSdkError):
    """A pipeline exit was abandoned through its cancel event."""
