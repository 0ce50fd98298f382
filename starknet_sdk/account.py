# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Accounts and the transaction pipeline.

An :class:`Account` ties together a provider, a signer, an on-chain address and a
chain id. It turns calls and contract classes into signed transactions through two
builders, :class:`Execution` and :class:`Declaration`, which share one pipeline::

    Built --(nonce, encode, hash)--> Prepared --(sign)--> Signed --+--> estimate_fee()
                                                                   +--> simulate()
                                                                   +--> send()

Building a builder never touches the network. Each exit independently fetches the
account nonce (unless one was supplied with :meth:`Execution.nonce`), encodes the
payload, hashes and signs it, then makes its own provider call. Nonces are never
cached: two concurrent sends from the same account race for the same nonce and the
gateway rejects one of them with :class:`~starknet_sdk.errors.InvalidNonce`.

Estimation and simulation sign a query-version transaction, so their signatures can
never be replayed as a real submission. ``send()`` without an explicit max fee
estimates first, reusing the nonce it already fetched, and pads the estimate by
the account's ``fee_estimate_multiplier``.

Every exit accepts an optional ``asyncio.Event``. Setting it abandons the in-flight
request (the underlying HTTP request task is cancelled and its connection returned
to the pool) and raises :class:`~starknet_sdk.errors.TransactionCancelled`.

Examples:
    Minting on two contracts in one transaction::

        from starknet_sdk import chain_id
        from starknet_sdk.account import Account
        from starknet_sdk.async_client import GatewayClient
        from starknet_sdk.call import Call
        from starknet_sdk.signer import LocalSigner

        account = Account(
            GatewayClient.starknet_alpha_goerli(),
            LocalSigner(private_key),
            address,
            chain_id.TESTNET,
        )
        execution = account.execute(
            [
                Call.natural(token, "mint", [address, FieldElement(10**21), FieldElement.ZERO]),
                Call.natural(token, "mint", [address, FieldElement(2 * 10**21), FieldElement.ZERO]),
            ]
        )
        fee = await execution.estimate_fee()
        result = await execution.send()

    Sequencing transactions with explicit nonces::

        nonce = await account.get_nonce()
        first = await account.execute(calls_a).nonce(nonce).send()
        second = await account.execute(calls_b).nonce(nonce + FieldElement.ONE).send()

    Declaring a Sierra class::

        declaration = account.declare(
            sierra_class, compiled_class_hash=casm_hash, class_hash=class_hash
        )
        result = await declaration.send()
"""

from __future__ import annotations

import asyncio
import copy
import inspect
import logging
import math
import unittest
from fractions import Fraction
from typing import (
    Any,
    Awaitable,
    Dict,
    Iterable,
    List,
    Optional,
    Tuple,
    TypeVar,
    Union,
)

from . import chain_id
from .call import Call, encode_calls
from .contract_class import (
    CompressedLegacyContractClass,
    CompressedSierraClass,
    CompressionConfig,
    DeployedClass,
    FlattenedSierraClass,
    LegacyContractClass,
    LegacyEntryPoint,
    compress_legacy_class,
    compress_sierra_class,
    compute_legacy_class_hash,
)
from .errors import CallEncodingError, InvalidNonce, TransactionCancelled
from .field import FieldElement
from .provider import (
    AddTransactionResult,
    FeeEstimate,
    Provider,
    SimulationResult,
    TransactionResultCode,
    TransactionTrace,
)
from .signer import LocalSigner, Signer
from .stark_ecdsa import PrivateKey, Signature
from .transactions import (
    INVOKE_VERSION,
    LEGACY_DECLARE_VERSION,
    SIERRA_DECLARE_VERSION,
    AccountTransaction,
    DeclareTransaction,
    InvokeTransaction,
    transaction_version,
)

T = TypeVar("T")
B = TypeVar("B", bound="TransactionBuilder")

DEFAULT_FEE_ESTIMATE_MULTIPLIER = Fraction(11, 10)


async def run_cancellable(
    awaitable: Awaitable[T], cancel: Optional[asyncio.Event] = None
) -> T:
    """Await ``awaitable`` unless ``cancel`` is set first.

    The awaitable runs as its own task; when ``cancel`` fires that task is
    cancelled and awaited before :class:`TransactionCancelled` is raised, so any
    request it had in flight is torn down. Cancelling the caller cancels the task
    as well.
    """
    if cancel is None:
        return await awaitable
    if cancel.is_set():
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        raise TransactionCancelled("cancelled before the request was sent")
    task = asyncio.ensure_future(awaitable)

    waiter = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait(
            {task, waiter}, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        waiter.cancel()

    if task in done:
        return task.result()

    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    raise TransactionCancelled("cancelled while the request was in flight")


class TransactionBuilder:
    """Shared pipeline of :class:`Execution` and :class:`Declaration`.

    Subclasses only describe how to turn a nonce, a max fee and a version into an
    unsigned transaction; fetching the nonce, hashing, signing and the three exits
    live here once.
    """

    account: Account
    _nonce: Optional[FieldElement]
    _max_fee: Optional[FieldElement]

    def __init__(self, account: Account):
        self.account = account
        self._nonce = None
        self._max_fee = None

    def nonce(self: B, nonce: Union[FieldElement, int]) -> B:
        """Return a copy of this builder that uses ``nonce`` instead of fetching one."""
        builder = copy.copy(self)
        builder._nonce = nonce if isinstance(nonce, FieldElement) else FieldElement(nonce)
        return builder

    def max_fee(self: B, max_fee: Union[FieldElement, int]) -> B:
        """Return a copy of this builder with a fixed max fee, skipping estimation on send."""
        builder = copy.copy(self)
        builder._max_fee = (
            max_fee if isinstance(max_fee, FieldElement) else FieldElement(max_fee)
        )
        return builder

    def _build(
        self, nonce: FieldElement, max_fee: FieldElement, query_only: bool
    ) -> AccountTransaction:
        raise NotImplementedError

    async def _resolve_nonce(self) -> FieldElement:
        if self._nonce is not None:
            return self._nonce
        nonce = await self.account.get_nonce()
        logging.debug("fetched nonce %s for %s", nonce.hex(), self.account.address.hex())
        return nonce

    async def _prepare_signed(
        self,
        nonce: FieldElement,
        max_fee: FieldElement,
        query_only: bool,
    ) -> AccountTransaction:
        transaction = self._build(nonce, max_fee, query_only)
        tx_hash = transaction.hash(self.account.chain_id)
        logging.debug(
            "signing %s transaction %s (nonce %s, query %s)",
            type(transaction).__name__,
            tx_hash.hex(),
            nonce.hex(),
            query_only,
        )
        signature = await self.account.signer.sign_hash(tx_hash)
        return transaction.with_signature(signature)

    def _query_max_fee(self) -> FieldElement:
        return self._max_fee if self._max_fee is not None else FieldElement.ZERO

    async def _estimate_fee(self, nonce: Optional[FieldElement] = None) -> FeeEstimate:
        if nonce is None:
            nonce = await self._resolve_nonce()
        transaction = await self._prepare_signed(
            nonce, self._query_max_fee(), query_only=True
        )
        return await self.account.provider.estimate_fee(transaction)

    async def _simulate(self) -> SimulationResult:
        nonce = await self._resolve_nonce()
        transaction = await self._prepare_signed(
            nonce, self._query_max_fee(), query_only=True
        )
        return await self.account.provider.simulate_transaction(transaction)

    async def _send(self) -> AddTransactionResult:
        nonce = await self._resolve_nonce()
        max_fee = self._max_fee
        if max_fee is None:
            estimate = await self._estimate_fee(nonce)
            padded = math.floor(
                estimate.overall_fee * self.account.fee_estimate_multiplier
            )
            max_fee = FieldElement(max(padded, 0))
            logging.debug(
                "estimated fee %d, using max fee %d", estimate.overall_fee, max_fee.value
            )
        transaction = await self._prepare_signed(nonce, max_fee, query_only=False)
        result = await self.account.provider.add_transaction(transaction)
        logging.debug("submitted transaction %s", result.transaction_hash.hex())
        return result

    async def estimate_fee(self, cancel: Optional[asyncio.Event] = None) -> FeeEstimate:
        """Estimate the fee of this transaction.

        The returned estimate is passed through from the provider unchanged, even
        when it is zero.

        :param cancel: Optional event abandoning the request when set
        :raises NetworkError: If the provider fails
        :raises TransactionCancelled: If ``cancel`` is set before completion
        """
        return await run_cancellable(self._estimate_fee(), cancel)

    async def simulate(self, cancel: Optional[asyncio.Event] = None) -> SimulationResult:
        """Simulate this transaction without submitting it."""
        return await run_cancellable(self._simulate(), cancel)

    async def send(self, cancel: Optional[asyncio.Event] = None) -> AddTransactionResult:
        """Sign and submit this transaction.

        Without an explicit max fee the fee is estimated first and multiplied by
        the account's ``fee_estimate_multiplier``.

        :raises InvalidNonce: If the gateway rejects the nonce
        :raises NetworkError: If the provider fails
        :raises TransactionCancelled: If ``cancel`` is set before completion
        """
        return await run_cancellable(self._send(), cancel)


class Execution(TransactionBuilder):
    """A batch of calls executed through the account's ``__execute__`` entry point."""

    calls: Tuple[Call, ...]

    def __init__(self, account: Account, calls: Iterable[Call]):
        super().__init__(account)
        self.calls = tuple(calls)

    def _build(
        self, nonce: FieldElement, max_fee: FieldElement, query_only: bool
    ) -> InvokeTransaction:
        return InvokeTransaction(
            sender_address=self.account.address,
            calldata=tuple(encode_calls(self.calls)),
            max_fee=max_fee,
            nonce=nonce,
            version=transaction_version(INVOKE_VERSION, query_only),
        )


class Declaration(TransactionBuilder):
    """Declaration of a Sierra or legacy contract class.

    Sierra classes are declared with version 2 and need both ``class_hash`` and
    ``compiled_class_hash`` from the compiler toolchain. Legacy classes are declared
    with version 1; their class hash is computed locally unless given.
    """

    contract_class: DeployedClass
    class_hash: Optional[FieldElement]
    compiled_class_hash: Optional[FieldElement]
    # Shared by copies made through nonce()/max_fee().
    _cache: Dict[str, Any]

    def __init__(
        self,
        account: Account,
        contract_class: DeployedClass,
        compiled_class_hash: Optional[FieldElement] = None,
        class_hash: Optional[FieldElement] = None,
    ):
        super().__init__(account)
        if isinstance(contract_class, FlattenedSierraClass):
            if class_hash is None or compiled_class_hash is None:
                raise ValueError(
                    "declaring a Sierra class requires class_hash and compiled_class_hash"
                )
        elif isinstance(contract_class, LegacyContractClass):
            if compiled_class_hash is not None:
                raise ValueError("legacy classes have no compiled class hash")
        else:
            raise TypeError(
                f"expected a decoded contract class, got {type(contract_class).__name__}"
            )
        self.contract_class = contract_class
        self.class_hash = class_hash
        self.compiled_class_hash = compiled_class_hash
        self._cache = {}

    def _compressed(
        self,
    ) -> Union[CompressedSierraClass, CompressedLegacyContractClass]:
        if "compressed" not in self._cache:
            config = self.account.compression_config
            if isinstance(self.contract_class, FlattenedSierraClass):
                self._cache["compressed"] = compress_sierra_class(
                    self.contract_class, config
                )
            else:
                self._cache["compressed"] = compress_legacy_class(
                    self.contract_class, config
                )
        return self._cache["compressed"]

    def _class_hash(self) -> FieldElement:
        if self.class_hash is not None:
            return self.class_hash
        if "class_hash" not in self._cache:
            if not isinstance(self.contract_class, LegacyContractClass):
                raise TypeError("Sierra classes need an explicit class_hash")
            self._cache["class_hash"] = compute_legacy_class_hash(self.contract_class)
        return self._cache["class_hash"]

    def _build(
        self, nonce: FieldElement, max_fee: FieldElement, query_only: bool
    ) -> DeclareTransaction:
        sierra = isinstance(self.contract_class, FlattenedSierraClass)
        version = SIERRA_DECLARE_VERSION if sierra else LEGACY_DECLARE_VERSION
        return DeclareTransaction(
            sender_address=self.account.address,
            contract_class=self._compressed(),
            class_hash=self._class_hash(),
            max_fee=max_fee,
            nonce=nonce,
            version=transaction_version(version, query_only),
            compiled_class_hash=self.compiled_class_hash,
        )


class Account:
    """A Starknet account contract controlled by a single signer.

    Accounts hold no mutable state; one instance may be shared by any number of
    concurrent tasks.

    Attributes:
        provider: Network collaborator used by every pipeline exit
        signer: Holder of the account's private key
        address: On-chain address of the account contract
        chain_id: Chain the account signs for, bound into every transaction hash
        fee_estimate_multiplier: Padding applied to fee estimates by ``send()``
        compression_config: Compression settings for declared classes
    """

    provider: Provider
    signer: Signer
    address: FieldElement
    chain_id: FieldElement
    fee_estimate_multiplier: Fraction
    compression_config: CompressionConfig

    def __init__(
        self,
        provider: Provider,
        signer: Signer,
        address: FieldElement,
        chain_id: FieldElement,
        fee_estimate_multiplier: Union[
            Fraction, float, int
        ] = DEFAULT_FEE_ESTIMATE_MULTIPLIER,
        compression_config: CompressionConfig = CompressionConfig(),
    ):
        self.provider = provider
        self.signer = signer
        self.address = address
        self.chain_id = chain_id
        if isinstance(fee_estimate_multiplier, float):
            # 1.1 becomes 11/10, not the nearest binary float.
            fee_estimate_multiplier = Fraction(str(fee_estimate_multiplier))
        self.fee_estimate_multiplier = Fraction(fee_estimate_multiplier)
        self.compression_config = compression_config

    async def get_nonce(self) -> FieldElement:
        return await self.provider.get_nonce(self.address)

    def execute(self, calls: Iterable[Call]) -> Execution:
        """Start building an invoke transaction; the call list is copied."""
        return Execution(self, calls)

    def declare(
        self,
        contract_class: DeployedClass,
        compiled_class_hash: Optional[FieldElement] = None,
        class_hash: Optional[FieldElement] = None,
    ) -> Declaration:
        return Declaration(self, contract_class, compiled_class_hash, class_hash)


class Test(unittest.IsolatedAsyncioTestCase):
    ADDRESS = FieldElement(0x2DA37A17AFFBD2DF4EDE7120DAE305EC36DFE94EC96A8C3F49BBF59F4E9A9FA)
    TOKEN = FieldElement(0x7394CBE418DAA16E42B87BA67372D4AB4A5DF0B05C6E554D158458CE245BC10)

    class FakeProvider:
        """Gateway stand-in tracking a single account nonce."""

        def __init__(self, nonce: int = 0, overall_fee: int = 1000):
            self.nonce = nonce
            self.overall_fee = overall_fee
            self.nonce_requests = 0
            self.estimated: List[AccountTransaction] = []
            self.simulated: List[AccountTransaction] = []
            self.submitted: List[AccountTransaction] = []
            self.block_submission: Optional[asyncio.Event] = None
            self.submission_cancelled = False

        async def get_nonce(self, address: FieldElement) -> FieldElement:
            self.nonce_requests += 1
            nonce = self.nonce
            await asyncio.sleep(0)
            return FieldElement(nonce)

        async def estimate_fee(self, transaction: AccountTransaction) -> FeeEstimate:
            self.estimated.append(transaction)
            return FeeEstimate(self.overall_fee, 10, self.overall_fee // 10)

        async def simulate_transaction(
            self, transaction: AccountTransaction
        ) -> SimulationResult:
            self.simulated.append(transaction)
            return SimulationResult(
                TransactionTrace(None), FeeEstimate(self.overall_fee, 10, 100)
            )

        async def add_transaction(
            self, transaction: AccountTransaction
        ) -> AddTransactionResult:
            if self.block_submission is not None:
                try:
                    await self.block_submission.wait()
                except asyncio.CancelledError:
                    self.submission_cancelled = True
                    raise
            await asyncio.sleep(0)
            if transaction.nonce.value != self.nonce:
                raise InvalidNonce(
                    f"Invalid transaction nonce. Expected: {self.nonce}, got: {transaction.nonce.value}.",
                    500,
                    "StarknetErrorCode.INVALID_TRANSACTION_NONCE",
                )
            self.nonce += 1
            self.submitted.append(transaction)
            return AddTransactionResult(
                TransactionResultCode.TRANSACTION_RECEIVED,
                transaction.hash(chain_id.TESTNET),
            )

    class RecordingSigner:
        def __init__(self, private_key: PrivateKey):
            self.inner = LocalSigner(private_key)
            self.signed: List[FieldElement] = []

        def public_key(self):
            return self.inner.public_key()

        async def sign_hash(self, hash: FieldElement) -> Signature:
            self.signed.append(hash)
            return await self.inner.sign_hash(hash)

    def setUp(self):
        self.provider = Test.FakeProvider(nonce=4)
        self.signer = Test.RecordingSigner(
            PrivateKey.from_hex(
                "0x00ffffffffffffffffffffffffffffffffffffffffffffffffffffffffffffff"
            )
        )
        self.account = Account(self.provider, self.signer, self.ADDRESS, chain_id.TESTNET)

    def mint_calls(self) -> List[Call]:
        return [
            Call.natural(
                self.TOKEN,
                "mint",
                [self.ADDRESS, FieldElement.from_dec_str("1000000000000000000000"), FieldElement.ZERO],
            ),
            Call.natural(
                self.TOKEN,
                "mint",
                [self.ADDRESS, FieldElement.from_dec_str("2000000000000000000000"), FieldElement.ZERO],
            ),
        ]

    async def test_execute_is_lazy(self):
        calls = self.mint_calls()
        execution = self.account.execute(calls)
        calls.clear()
        self.assertEqual(len(execution.calls), 2)
        self.assertEqual(self.provider.nonce_requests, 0)

    async def test_estimate_fee_signs_query_version(self):
        estimate = await self.account.execute(self.mint_calls()).estimate_fee()
        self.assertEqual(estimate.overall_fee, 1000)

        transaction = self.provider.estimated[0]
        assert isinstance(transaction, InvokeTransaction)
        self.assertEqual(transaction.version.value, 2**128 + 1)
        self.assertEqual(transaction.nonce, FieldElement(4))
        self.assertEqual(transaction.max_fee, FieldElement.ZERO)
        self.assertEqual(list(transaction.calldata), encode_calls(self.mint_calls()))

        tx_hash = transaction.hash(chain_id.TESTNET)
        r, s = transaction.signature
        self.assertTrue(self.signer.public_key().verify(tx_hash, Signature(r, s)))

    async def test_zero_estimate_passes_through(self):
        self.provider.overall_fee = 0
        estimate = await self.account.execute(self.mint_calls()).estimate_fee()
        self.assertEqual(estimate.overall_fee, 0)

    async def test_simulate(self):
        result = await self.account.execute(self.mint_calls()).simulate()
        self.assertEqual(result.fee_estimation.overall_fee, 1000)
        self.assertEqual(self.provider.simulated[0].version.value, 2**128 + 1)
        self.assertEqual(self.provider.submitted, [])

    async def test_send_estimates_with_same_nonce(self):
        result = await self.account.execute(self.mint_calls()).send()
        self.assertEqual(result.code, TransactionResultCode.TRANSACTION_RECEIVED)
        self.assertEqual(self.provider.nonce_requests, 1)

        estimated = self.provider.estimated[0]
        submitted = self.provider.submitted[0]
        self.assertEqual(estimated.nonce, submitted.nonce)
        self.assertEqual(submitted.max_fee, FieldElement(1100))
        self.assertEqual(submitted.version, FieldElement.ONE)
        self.assertEqual(result.transaction_hash, submitted.hash(chain_id.TESTNET))

    async def test_send_pads_large_fee_exactly(self):
        self.provider.overall_fee = 2**60 + 7
        await self.account.execute(self.mint_calls()).send()
        self.assertEqual(
            self.provider.submitted[0].max_fee, FieldElement((2**60 + 7) * 11 // 10)
        )

        account = Account(
            self.provider, self.signer, self.ADDRESS, chain_id.TESTNET, 1.5
        )
        self.assertEqual(account.fee_estimate_multiplier, Fraction(3, 2))
        await account.execute(self.mint_calls()).send()
        self.assertEqual(
            self.provider.submitted[1].max_fee, FieldElement((2**60 + 7) * 3 // 2)
        )

    async def test_overrides(self):
        execution = self.account.execute(self.mint_calls())
        with_nonce = execution.nonce(4).max_fee(FieldElement(5000))
        self.assertIsNone(execution._nonce)

        await with_nonce.send()
        self.assertEqual(self.provider.nonce_requests, 0)
        self.assertEqual(self.provider.estimated, [])
        self.assertEqual(self.provider.submitted[0].max_fee, FieldElement(5000))

    async def test_nonce_is_not_cached(self):
        execution = self.account.execute(self.mint_calls()).max_fee(1)
        await execution.send()
        await execution.send()
        self.assertEqual(self.provider.nonce_requests, 2)
        self.assertEqual(
            [tx.nonce for tx in self.provider.submitted],
            [FieldElement(4), FieldElement(5)],
        )

    async def test_concurrent_sends_race_for_nonce(self):
        first = self.account.execute(self.mint_calls()).max_fee(1)
        second = self.account.execute(self.mint_calls()[:1]).max_fee(1)
        results = await asyncio.gather(first.send(), second.send(), return_exceptions=True)

        accepted = [r for r in results if isinstance(r, AddTransactionResult)]
        rejected = [r for r in results if isinstance(r, InvalidNonce)]
        self.assertEqual(len(accepted), 1)
        self.assertEqual(len(rejected), 1)

    async def test_encoding_error_before_signing(self):
        bad = Call(self.TOKEN, FieldElement(1), [FieldElement(1), 2])  # type: ignore[list-item]
        with self.assertRaises(CallEncodingError):
            await self.account.execute([bad]).max_fee(1).send()
        self.assertEqual(self.signer.signed, [])
        self.assertEqual(self.provider.submitted, [])

    async def test_cancel_in_flight(self):
        self.provider.block_submission = asyncio.Event()
        cancel = asyncio.Event()

        async def cancel_soon():
            while not self.signer.signed:
                await asyncio.sleep(0)
            await asyncio.sleep(0)
            cancel.set()

        canceller = asyncio.ensure_future(cancel_soon())
        with self.assertRaises(TransactionCancelled):
            await self.account.execute(self.mint_calls()).max_fee(1).send(cancel)
        await canceller
        self.assertTrue(self.provider.submission_cancelled)
        self.assertEqual(self.provider.submitted, [])

    async def test_cancel_before_start(self):
        cancel = asyncio.Event()
        cancel.set()
        with self.assertRaises(TransactionCancelled):
            await self.account.execute(self.mint_calls()).estimate_fee(cancel)
        await asyncio.sleep(0)
        self.assertEqual(self.provider.nonce_requests, 0)

    async def test_declare_sierra(self):
        sierra = FlattenedSierraClass(
            (FieldElement(1), FieldElement(2)), "0.1.0", {"EXTERNAL": []}, "[]"
        )
        with self.assertRaises(ValueError):
            self.account.declare(sierra)

        declaration = self.account.declare(
            sierra, compiled_class_hash=FieldElement(0xC2), class_hash=FieldElement(0xC1)
        )
        await declaration.max_fee(10).send()
        transaction = self.provider.submitted[0]
        assert isinstance(transaction, DeclareTransaction)
        self.assertEqual(transaction.version, FieldElement(2))
        self.assertEqual(transaction.class_hash, FieldElement(0xC1))
        self.assertEqual(transaction.compiled_class_hash, FieldElement(0xC2))
        self.assertIsInstance(transaction.contract_class, CompressedSierraClass)

    async def test_declare_legacy(self):
        legacy = LegacyContractClass(
            {"builtins": [], "data": ["0x1", "0x2"], "debug_info": None},
            {
                "EXTERNAL": [LegacyEntryPoint(FieldElement(0x10), FieldElement(0))],
                "L1_HANDLER": [],
                "CONSTRUCTOR": [],
            },
            [],
        )
        with self.assertRaises(ValueError):
            self.account.declare(legacy, compiled_class_hash=FieldElement(1))

        declaration = self.account.declare(legacy)
        estimate = await declaration.estimate_fee()
        self.assertEqual(estimate.overall_fee, 1000)
        await declaration.send()

        estimated = self.provider.estimated[0]
        submitted = self.provider.submitted[0]
        assert isinstance(submitted, DeclareTransaction)
        self.assertEqual(estimated.version.value, 2**128 + 1)
        self.assertEqual(submitted.version, FieldElement(1))
        self.assertEqual(submitted.class_hash, compute_legacy_class_hash(legacy))
        self.assertIsNone(submitted.compiled_class_hash)
        self.assertEqual(submitted.max_fee, FieldElement(1100))


if __name__ == "__main__":
    unittest.main()
