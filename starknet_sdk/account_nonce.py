# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Caller-side nonce allocation for high-throughput senders.

:class:`~starknet_sdk.account.Account` never caches nonces, which is right for
independent transactions but means only one transaction per account can be in
flight at a time. Callers who need to pipeline many transactions from one account
allocate nonces here instead and pass them explicitly with
``account.execute(calls).nonce(n)``.

Key features:
- Concurrent nonce allocation serialized by an asyncio lock (FIFO)
- Flow control: at most ``maximum_in_flight`` nonces ahead of the network
- Timeout-based recovery: when the network stops advancing for
  ``maximum_wait_time`` seconds the allocator resynchronizes from the provider

Examples:
    Pipelining transfers::

        from starknet_sdk.account_nonce import AccountNonce

        nonces = AccountNonce(client, account.address)
        for calls in batches:
            nonce = await nonces.next_nonce()
            await account.execute(calls).nonce(nonce).max_fee(max_fee).send()

        # Wait for every allocated nonce to be consumed on chain
        await nonces.synchronize()

    Custom flow control::

        config = AccountNonceConfig(maximum_in_flight=20, maximum_wait_time=120)
        nonces = AccountNonce(client, account.address, config)

Warning:
    Manage each account with exactly one :class:`AccountNonce` and do not send
    transactions from that account by other means while it is in use.
"""

from __future__ import annotations

import asyncio
import logging
import time
import unittest
import unittest.mock
from dataclasses import dataclass
from typing import Callable, Optional

from .async_client import GatewayClient
from .field import FieldElement
from .provider import Provider


@dataclass
class AccountNonceConfig:
    """Flow control parameters for :class:`AccountNonce`.

    Attributes:
        maximum_in_flight: Maximum number of allocated nonces not yet seen by the
            network (default: 100).
        maximum_wait_time: Seconds without progress before forcing a resync
            (default: 30).
        sleep_time: Seconds to sleep between network polls when waiting
            (default: 0.5).
    """

    maximum_in_flight: int = 100
    maximum_wait_time: int = 30
    sleep_time: float = 0.5


class AccountNonce:
    """Nonce allocator for one account.

    The allocator syncs with the pending nonce reported by the provider on first
    use, then hands out consecutive nonces. When ``maximum_in_flight`` nonces are
    outstanding it polls the provider until the network catches up.

    Attributes:
        _provider: Provider answering nonce queries
        _address: The account being managed
        _lock: Serializes allocation
        _last_uncommitted_number: Pending nonce last reported by the network
        _current_number: Next nonce to allocate
    """

    _provider: Provider
    _address: FieldElement
    _lock: asyncio.Lock

    _maximum_in_flight: int = 100
    _maximum_wait_time: int = 30
    _sleep_time: float = 0.5

    _last_uncommitted_number: int = 0
    _current_number: int = 0
    _initialized = False

    def __init__(
        self,
        provider: Provider,
        address: FieldElement,
        config: AccountNonceConfig = AccountNonceConfig(),
    ):
        self._provider = provider
        self._address = address
        self._lock = asyncio.Lock()

        self._maximum_in_flight = config.maximum_in_flight
        self._maximum_wait_time = config.maximum_wait_time
        self._sleep_time = config.sleep_time

    async def next_nonce(self, block: bool = True) -> Optional[FieldElement]:
        """Allocate the next nonce.

        Args:
            block: If True (default), wait while ``maximum_in_flight`` nonces are
                outstanding. If False, return None instead of waiting.

        Returns:
            The nonce to use, or None when ``block`` is False and the account is
            at capacity.

        Raises:
            NetworkError: If the provider cannot be queried.
        """
        async with self._lock:
            if not self._initialized:
                await self._initialize()
            # At capacity: refresh once, then either give up or wait for a slot.
            if (
                self._current_number - self._last_uncommitted_number
                >= self._maximum_in_flight
            ):
                await self._update()
                if (
                    self._current_number - self._last_uncommitted_number
                    >= self._maximum_in_flight
                ):
                    if not block:
                        return None
                    await self._resync(
                        lambda an: an._current_number - an._last_uncommitted_number
                        >= an._maximum_in_flight
                    )

            next_number = self._current_number
            self._current_number += 1
        return FieldElement(next_number)

    async def _initialize(self):
        self._initialized = True
        self._current_number = await self._network_nonce()
        self._last_uncommitted_number = self._current_number

    async def synchronize(self):
        """Block allocation until every allocated nonce has been consumed.

        Returns early, after resyncing from the network, when no progress is seen
        for ``maximum_wait_time`` seconds.
        """
        async with self._lock:
            await self._update()
            await self._resync(
                lambda an: an._last_uncommitted_number != an._current_number
            )

    async def _resync(self, check: Callable[[AccountNonce], bool]):
        start_time = time.monotonic()
        while check(self):
            if time.monotonic() - start_time >= self._maximum_wait_time:
                logging.warning(
                    f"Waited over {self._maximum_wait_time} seconds for nonce {self._last_uncommitted_number} to be consumed, resyncing {self._address.hex()}"
                )
                # Transactions that never reached the network leave gaps; restart from the network's view.
                await self._initialize()
                return
            await asyncio.sleep(self._sleep_time)
            await self._update()

    async def _update(self) -> int:
        self._last_uncommitted_number = await self._network_nonce()
        return self._last_uncommitted_number

    async def _network_nonce(self) -> int:
        return (await self._provider.get_nonce(self._address)).value


class Test(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.client = GatewayClient.starknet_alpha_goerli()
        self.addAsyncCleanup(self.client.close)

    async def test_common_path(self):
        patcher = unittest.mock.patch(
            "starknet_sdk.async_client.GatewayClient.get_nonce",
            return_value=FieldElement(0),
        )
        patcher.start()

        account_nonce = AccountNonce(
            self.client, FieldElement(0xF), AccountNonceConfig(sleep_time=0)
        )
        last_nonce = FieldElement(0)
        for nonce in range(5):
            last_nonce = await account_nonce.next_nonce()
            self.assertEqual(last_nonce, FieldElement(nonce))

        patcher.stop()
        patcher = unittest.mock.patch(
            "starknet_sdk.async_client.GatewayClient.get_nonce",
            return_value=FieldElement(5),
        )
        patcher.start()

        for nonce in range(AccountNonce._maximum_in_flight):
            last_nonce = await account_nonce.next_nonce()
            self.assertEqual(last_nonce, FieldElement(nonce + 5))

        self.assertEqual(await account_nonce.next_nonce(block=False), None)
        next_nonce = last_nonce.value + 1
        patcher.stop()
        patcher = unittest.mock.patch(
            "starknet_sdk.async_client.GatewayClient.get_nonce",
            return_value=FieldElement(next_nonce),
        )
        patcher.start()

        self.assertNotEqual(account_nonce._last_uncommitted_number, next_nonce)
        await account_nonce.synchronize()
        self.assertEqual(account_nonce._current_number, next_nonce)
        self.assertEqual(account_nonce._last_uncommitted_number, next_nonce)
        patcher.stop()

    async def test_resync_after_timeout(self):
        with unittest.mock.patch(
            "starknet_sdk.async_client.GatewayClient.get_nonce",
            return_value=FieldElement(3),
        ):
            account_nonce = AccountNonce(
                self.client,
                FieldElement(0xF),
                AccountNonceConfig(maximum_wait_time=0, sleep_time=0),
            )
            self.assertEqual(await account_nonce.next_nonce(), FieldElement(3))
            self.assertEqual(await account_nonce.next_nonce(), FieldElement(4))
            # The network never sees nonces 3 and 4; allocation restarts at 3.
            with self.assertLogs(level="WARNING"):
                await account_nonce.synchronize()
            self.assertEqual(await account_nonce.next_nonce(), FieldElement(3))


if __name__ == "__main__":
    unittest.main()
