# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Pipelined submission of many invoke transactions from one account.

:class:`TransactionWorker` pairs an :class:`~starknet_sdk.account_nonce.AccountNonce`
allocator with two background tasks: one builds and submits transactions with
consecutive nonces, the other collects submission results in batches. Results are
reported in nonce order as ``(nonce, transaction_hash, error)`` tuples.

:class:`TransactionQueue` feeds the worker with call batches pushed by the
application.

Examples:
    Bulk minting::

        queue = TransactionQueue()
        worker = TransactionWorker(account, queue.next)
        worker.start()

        for recipient in recipients:
            await queue.push([Call.natural(token, "mint", [recipient, amount, FieldElement.ZERO])])

        for _ in recipients:
            nonce, tx_hash, error = await worker.next_processed_transaction()
            if error:
                print(f"Transaction {nonce.hex()} failed: {error}")
        worker.stop()

Note:
    Failed submissions are reported, never retried. A failure leaves a gap in the
    nonce sequence that later transactions cannot cross until the allocator
    resynchronizes after ``maximum_wait_time``.
"""

from __future__ import annotations

import asyncio
import logging
import typing
import unittest
import unittest.mock

from . import chain_id
from .account import Account, Execution, TransactionBuilder
from .account_nonce import AccountNonce, AccountNonceConfig
from .async_client import GatewayClient
from .call import Call
from .errors import InvalidNonce
from .field import FieldElement
from .provider import AddTransactionResult, FeeEstimate, TransactionResultCode
from .signer import LocalSigner
from .stark_ecdsa import PrivateKey

TransactionGenerator = typing.Callable[
    [Account, FieldElement], typing.Awaitable[TransactionBuilder]
]


class TransactionWorker:
    """Submits generated transactions with consecutive nonces.

    The generator receives the account and the nonce to use and returns a builder
    that already carries that nonce (``account.execute(calls).nonce(nonce)``).
    The worker then calls ``send()`` on it.

    Attributes:
        _account: Account signing every transaction
        _account_nonce: Allocator handing out nonces
        _transaction_generator: Produces the builder for each nonce
    """

    _account: Account
    _account_nonce: AccountNonce
    _transaction_generator: TransactionGenerator
    _started: bool
    _stopped: bool
    _outstanding_transactions: asyncio.Queue
    _submit_transactions_task: typing.Optional[asyncio.Task]
    _processed_transactions: asyncio.Queue
    _process_transactions_task: typing.Optional[asyncio.Task]

    def __init__(
        self,
        account: Account,
        transaction_generator: TransactionGenerator,
        nonce_config: typing.Optional[AccountNonceConfig] = None,
    ):
        if nonce_config is None:
            nonce_config = AccountNonceConfig()
            client_config = getattr(account.provider, "client_config", None)
            if client_config is not None:
                nonce_config.maximum_wait_time = client_config.transaction_wait_in_seconds
        self._account = account
        self._account_nonce = AccountNonce(
            account.provider, account.address, nonce_config
        )
        self._transaction_generator = transaction_generator

        self._started = False
        self._stopped = False
        self._outstanding_transactions = asyncio.Queue()
        self._submit_transactions_task = None
        self._processed_transactions = asyncio.Queue()
        self._process_transactions_task = None

    def address(self) -> FieldElement:
        return self._account.address

    async def _submit_transactions(self):
        try:
            while True:
                nonce = await self._account_nonce.next_nonce()
                builder = await self._transaction_generator(self._account, nonce)
                result_awaitable = builder.send()
                await self._outstanding_transactions.put((result_awaitable, nonce))
        except asyncio.CancelledError:
            return
        except Exception as e:
            # The allocator has handed out a nonce no transaction will use.
            logging.error(e, exc_info=True)

    async def _process_transactions(self):
        try:
            while True:
                # Wait for one, then drain whatever else is already queued.
                result_awaitable, nonce = await self._outstanding_transactions.get()
                awaitables = [result_awaitable]
                nonces = [nonce]

                while not self._outstanding_transactions.empty():
                    result_awaitable, nonce = await self._outstanding_transactions.get()
                    awaitables.append(result_awaitable)
                    nonces.append(nonce)

                outputs = await asyncio.gather(*awaitables, return_exceptions=True)

                for output, nonce in zip(outputs, nonces):
                    if isinstance(output, BaseException):
                        await self._processed_transactions.put((nonce, None, output))
                    else:
                        await self._processed_transactions.put(
                            (nonce, output.transaction_hash, None)
                        )
        except asyncio.CancelledError:
            return
        except Exception as e:
            logging.error(e, exc_info=True)

    async def next_processed_transaction(
        self,
    ) -> typing.Tuple[
        FieldElement, typing.Optional[FieldElement], typing.Optional[BaseException]
    ]:
        """Wait for the next submission result.

        Returns:
            ``(nonce, transaction_hash, None)`` for an accepted submission or
            ``(nonce, None, error)`` for a failed one.
        """
        return await self._processed_transactions.get()

    def stop(self):
        """Cancel both background tasks. A stopped worker cannot be restarted."""
        if not self._started:
            raise RuntimeError("Start not yet called")
        if self._stopped:
            raise RuntimeError("Already stopped")
        self._stopped = True

        self._submit_transactions_task.cancel()
        self._process_transactions_task.cancel()

    def start(self):
        if self._started:
            raise RuntimeError("Already started")
        self._started = True

        self._submit_transactions_task = asyncio.create_task(
            self._submit_transactions()
        )
        self._process_transactions_task = asyncio.create_task(
            self._process_transactions()
        )


class TransactionQueue:
    """Call batches waiting to be turned into transactions by a worker.

    Pass :meth:`next` as the worker's transaction generator.
    """

    _outstanding_transactions: asyncio.Queue

    def __init__(self):
        self._outstanding_transactions = asyncio.Queue()

    async def push(
        self,
        calls: typing.Iterable[Call],
        max_fee: typing.Optional[FieldElement] = None,
    ):
        await self._outstanding_transactions.put((list(calls), max_fee))

    async def next(self, sender: Account, nonce: FieldElement) -> Execution:
        calls, max_fee = await self._outstanding_transactions.get()
        execution = sender.execute(calls).nonce(nonce)
        if max_fee is not None:
            execution = execution.max_fee(max_fee)
        return execution


class Test(unittest.IsolatedAsyncioTestCase):
    async def test_common_path(self):
        calls = [
            Call.natural(
                FieldElement(0x49D36570D4E46F48E99674BD3FCC84644DDD6B96F7C741B1562B82F9E004DC7),
                "transfer",
                [FieldElement(0xF), FieldElement(100), FieldElement.ZERO],
            )
        ]

        nonce_patcher = unittest.mock.patch(
            "starknet_sdk.async_client.GatewayClient.get_nonce",
            return_value=FieldElement(0),
        )
        nonce_patcher.start()
        self.addCleanup(nonce_patcher.stop)
        estimate_patcher = unittest.mock.patch(
            "starknet_sdk.async_client.GatewayClient.estimate_fee",
            return_value=FeeEstimate(1000, 10, 100),
        )
        estimate_patcher.start()
        self.addCleanup(estimate_patcher.stop)
        add_patcher = unittest.mock.patch(
            "starknet_sdk.async_client.GatewayClient.add_transaction",
            return_value=AddTransactionResult(
                TransactionResultCode.TRANSACTION_RECEIVED, FieldElement(0xFF)
            ),
        )
        add_mock = add_patcher.start()

        client = GatewayClient.starknet_alpha_goerli()
        self.addAsyncCleanup(client.close)
        account = Account(
            client,
            LocalSigner(PrivateKey.random()),
            FieldElement(0xACC),
            chain_id.TESTNET,
        )
        txn_queue = TransactionQueue()
        txn_worker = TransactionWorker(account, txn_queue.next)
        self.assertEqual(
            txn_worker._account_nonce._maximum_wait_time,
            client.client_config.transaction_wait_in_seconds,
        )
        txn_worker.start()

        await txn_queue.push(calls)
        processed_txn = await txn_worker.next_processed_transaction()
        self.assertEqual(processed_txn[0], FieldElement(0))
        self.assertEqual(processed_txn[1], FieldElement(0xFF))
        self.assertEqual(processed_txn[2], None)
        submitted = add_mock.call_args[0][0]
        self.assertEqual(submitted.nonce, FieldElement(0))
        self.assertEqual(submitted.max_fee, FieldElement(1100))

        add_patcher.stop()
        exception = InvalidNonce(
            "Invalid transaction nonce. Expected: 0, got: 1.",
            500,
            "StarknetErrorCode.INVALID_TRANSACTION_NONCE",
        )
        add_patcher = unittest.mock.patch(
            "starknet_sdk.async_client.GatewayClient.add_transaction",
            side_effect=exception,
        )
        add_patcher.start()
        self.addCleanup(add_patcher.stop)

        await txn_queue.push(calls, max_fee=FieldElement(5000))
        processed_txn = await txn_worker.next_processed_transaction()
        self.assertEqual(processed_txn[0], FieldElement(1))
        self.assertEqual(processed_txn[1], None)
        self.assertEqual(processed_txn[2], exception)

        txn_worker.stop()
        with self.assertRaises(RuntimeError):
            txn_worker.stop()


if __name__ == "__main__":
    unittest.main()
