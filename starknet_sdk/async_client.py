# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Asynchronous client for the Starknet sequencer gateway.

:class:`GatewayClient` implements :class:`~starknet_sdk.provider.Provider` on top
of ``httpx`` and adds the read endpoints the SDK's tooling needs. The sequencer
exposes two services:

- the **gateway** (``/gateway``), which accepts transactions; and
- the **feeder gateway** (``/feeder_gateway``), which answers queries: nonces,
  fee estimates, simulations, classes and transaction statuses.

Key Features:
- **HTTP/2** and connection pooling through ``httpx.AsyncClient``.
- **Typed Errors**: gateway error bodies become :class:`ApiError` carrying the
  gateway's ``StarknetErrorCode``; nonce rejections become :class:`InvalidNonce`;
  transport failures and unreadable responses become :class:`NetworkError`.
- **No Retries**: every call is exactly one request. Retry policy belongs to the
  caller.
- **Injectable Transport**: pass ``transport=httpx.MockTransport(handler)`` to
  run against canned responses.

Examples:
    Querying a nonce::

        from starknet_sdk.async_client import GatewayClient

        client = GatewayClient.starknet_alpha_goerli()
        nonce = await client.get_nonce(account_address)
        await client.close()

    Waiting for a submitted transaction::

        result = await client.add_transaction(signed_transaction)
        status = await client.wait_for_transaction(result.transaction_hash)

    Custom configuration::

        config = ClientConfig(timeout=30.0, transaction_wait_in_seconds=300)
        client = GatewayClient(
            "https://alpha-mainnet.starknet.io/gateway",
            "https://alpha-mainnet.starknet.io/feeder_gateway",
            config,
        )

Note:
    Always call :meth:`GatewayClient.close` when done so pooled connections are
    released.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
import unittest
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, TypeVar

import httpx

from . import chain_id
from .contract_class import DeployedClass, FlattenedSierraClass, decode_deployed_class
from .errors import ApiError, InvalidNonce, NetworkError, TransactionNotAccepted
from .field import FieldElement
from .metadata import Metadata
from .provider import (
    AddTransactionResult,
    FeeEstimate,
    SimulationResult,
    TransactionStatus,
    TransactionStatusInfo,
)
from .transactions import AccountTransaction, InvokeTransaction

T = TypeVar("T")

INVALID_NONCE_CODE = "INVALID_TRANSACTION_NONCE"


@dataclass
class ClientConfig:
    """Configuration parameters for :class:`GatewayClient`.

    Network Parameters:
        http2: Enable HTTP/2 (default: True)
        api_key: Optional API key, sent as a bearer token (default: None)
        timeout: Per-request timeout in seconds (default: 60)

    Polling Parameters:
        transaction_wait_in_seconds: How long :meth:`GatewayClient.wait_for_transaction`
            polls before giving up (default: 120)
        poll_interval: Delay between two status polls in seconds (default: 5)

    Examples:
        Faster polling against a local devnet::

            config = ClientConfig(poll_interval=0.5, transaction_wait_in_seconds=30)
    """

    transaction_wait_in_seconds: int = 120
    poll_interval: float = 5.0
    timeout: float = 60.0
    http2: bool = True
    api_key: Optional[str] = None


class GatewayClient:
    """Async client for the sequencer gateway and feeder gateway.

    Attributes:
        gateway_url: Base URL of the gateway, e.g. ``https://alpha4.starknet.io/gateway``
        feeder_gateway_url: Base URL of the feeder gateway
        chain_id: Chain the endpoints belong to, when known from a preset
        client: Underlying HTTP client with connection pooling
    """

    MAINNET_URL = "https://alpha-mainnet.starknet.io"
    GOERLI_URL = "https://alpha4.starknet.io"

    gateway_url: str
    feeder_gateway_url: str
    chain_id: Optional[FieldElement]
    client: httpx.AsyncClient
    client_config: ClientConfig

    def __init__(
        self,
        gateway_url: str,
        feeder_gateway_url: str,
        client_config: ClientConfig = ClientConfig(),
        transport: Optional[httpx.AsyncBaseTransport] = None,
        chain_id: Optional[FieldElement] = None,
    ):
        self.gateway_url = gateway_url.rstrip("/")
        self.feeder_gateway_url = feeder_gateway_url.rstrip("/")
        self.chain_id = chain_id
        # Default limits
        limits = httpx.Limits()
        # No pool timeout: requests queue for a connection as long as progress is made.
        timeout = httpx.Timeout(client_config.timeout, pool=None)
        headers = {Metadata.STARKNET_HEADER: Metadata.get_starknet_header_val()}
        self.client = httpx.AsyncClient(
            http2=client_config.http2,
            limits=limits,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )
        self.client_config = client_config
        if client_config.api_key:
            self.client.headers["Authorization"] = f"Bearer {client_config.api_key}"

    @staticmethod
    def starknet_alpha_mainnet(
        client_config: ClientConfig = ClientConfig(),
    ) -> GatewayClient:
        return GatewayClient(
            f"{GatewayClient.MAINNET_URL}/gateway",
            f"{GatewayClient.MAINNET_URL}/feeder_gateway",
            client_config,
            chain_id=chain_id.MAINNET,
        )

    @staticmethod
    def starknet_alpha_goerli(
        client_config: ClientConfig = ClientConfig(),
    ) -> GatewayClient:
        return GatewayClient(
            f"{GatewayClient.GOERLI_URL}/gateway",
            f"{GatewayClient.GOERLI_URL}/feeder_gateway",
            client_config,
            chain_id=chain_id.TESTNET,
        )

    async def close(self):
        """Close the underlying HTTP client connection."""
        await self.client.aclose()

    #
    # Provider
    #

    async def get_nonce(self, address: FieldElement) -> FieldElement:
        """Nonce of ``address`` as seen by the pending block.

        :raises ApiError: If the feeder gateway rejects the request
        :raises NetworkError: If the gateway is unreachable or the answer is unreadable
        """
        response = await self._get(
            self.feeder_gateway_url,
            "get_nonce",
            params={"contractAddress": address.hex(), "blockNumber": "pending"},
        )
        return self._parse(response, _parse_felt_response)

    async def estimate_fee(self, transaction: AccountTransaction) -> FeeEstimate:
        response = await self._post(
            self.feeder_gateway_url,
            "estimate_fee",
            params={"blockNumber": "pending"},
            data=transaction.to_json(),
        )
        return self._parse(response, FeeEstimate.from_json)

    async def simulate_transaction(
        self, transaction: AccountTransaction
    ) -> SimulationResult:
        response = await self._post(
            self.feeder_gateway_url,
            "simulate_transaction",
            params={"blockNumber": "pending"},
            data=transaction.to_json(),
        )
        return self._parse(response, SimulationResult.from_json)

    async def add_transaction(
        self, transaction: AccountTransaction
    ) -> AddTransactionResult:
        """Submit a signed transaction to the gateway.

        A ``TRANSACTION_RECEIVED`` answer only means the gateway accepted the
        request; use :meth:`wait_for_transaction` to learn the outcome.
        """
        response = await self._post(
            self.gateway_url, "add_transaction", data=transaction.to_json()
        )
        return self._parse(response, AddTransactionResult.from_json)

    #
    # Feeder gateway queries
    #

    async def get_class_by_hash(self, class_hash: FieldElement) -> DeployedClass:
        response = await self._get(
            self.feeder_gateway_url,
            "get_class_by_hash",
            params={"classHash": class_hash.hex(), "blockNumber": "pending"},
        )
        self._check(response)
        # Class documents that fail structural checks are ClassDecodingError, not network errors.
        return decode_deployed_class(self._json(response))

    async def get_transaction_status(
        self, transaction_hash: FieldElement
    ) -> TransactionStatusInfo:
        response = await self._get(
            self.feeder_gateway_url,
            "get_transaction_status",
            params={"transactionHash": transaction_hash.hex()},
        )
        return self._parse(response, TransactionStatusInfo.from_json)

    async def wait_for_transaction(
        self, transaction_hash: FieldElement
    ) -> TransactionStatusInfo:
        """
        Poll the status of a transaction until it is accepted or fails.

        Polls every ``client_config.poll_interval`` seconds for up to
        ``client_config.transaction_wait_in_seconds``.

        :raises TransactionNotAccepted: If the transaction is rejected or reverted
        :raises NetworkError: If the wait times out
        """
        deadline = time.monotonic() + self.client_config.transaction_wait_in_seconds
        while True:
            info = await self.get_transaction_status(transaction_hash)
            if info.status.is_accepted():
                return info
            if info.status.is_failed():
                raise TransactionNotAccepted(
                    info.failure_reason or info.status.value,
                    transaction_hash.hex(),
                    info.status.value,
                )
            if time.monotonic() >= deadline:
                raise NetworkError(
                    f"transaction {transaction_hash.hex()} timed out in status {info.status.value}"
                )
            logging.debug(
                "transaction %s is %s", transaction_hash.hex(), info.status.value
            )
            await asyncio.sleep(self.client_config.poll_interval)

    #
    # Plumbing
    #

    def _check(self, response: httpx.Response):
        if response.status_code < 400:
            return
        code: Optional[str] = None
        message = response.text
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            code = body.get("code")
            message = body.get("message", message)
        if code is not None and code.endswith(INVALID_NONCE_CODE):
            raise InvalidNonce(message, response.status_code, code)
        raise ApiError(message, response.status_code, code)

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(f"malformed response: {response.text!r}") from e

    def _parse(self, response: httpx.Response, parser: Callable[[Any], T]) -> T:
        self._check(response)
        data = self._json(response)
        try:
            return parser(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise NetworkError(f"malformed response: {data!r}") from e

    async def _post(
        self,
        base_url: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        # format params:
        params = {} if params is None else params
        params = {key: val for key, val in params.items() if val is not None}
        try:
            return await self.client.post(
                url=f"{base_url}/{endpoint}",
                params=params,
                json=data,
            )
        except httpx.HTTPError as e:
            raise NetworkError(f"{endpoint} request failed: {e}") from e

    async def _get(
        self, base_url: str, endpoint: str, params: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        # format params:
        params = {} if params is None else params
        params = {key: val for key, val in params.items() if val is not None}
        try:
            return await self.client.get(url=f"{base_url}/{endpoint}", params=params)
        except httpx.HTTPError as e:
            raise NetworkError(f"{endpoint} request failed: {e}") from e


def _parse_felt_response(data: Any) -> FieldElement:
    if not isinstance(data, str):
        raise TypeError(f"expected a hex string, got {type(data).__name__}")
    return FieldElement.from_hex(data)


class Test(unittest.IsolatedAsyncioTestCase):
    def client(
        self, handler: Callable[[httpx.Request], httpx.Response], **config: Any
    ) -> GatewayClient:
        client = GatewayClient(
            "https://gateway.test/gateway",
            "https://gateway.test/feeder_gateway",
            ClientConfig(**config),
            transport=httpx.MockTransport(handler),
        )
        self.addAsyncCleanup(client.close)
        return client

    @staticmethod
    def invoke() -> InvokeTransaction:
        return InvokeTransaction(
            sender_address=FieldElement(0xA),
            calldata=(FieldElement(1),),
            max_fee=FieldElement(100),
            nonce=FieldElement(2),
            version=FieldElement.ONE,
        )

    async def test_get_nonce(self):
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json="0x7")

        nonce = await self.client(handler).get_nonce(FieldElement(0xABC))
        self.assertEqual(nonce, FieldElement(7))
        self.assertEqual(requests[0].url.path, "/feeder_gateway/get_nonce")
        self.assertEqual(requests[0].url.params["contractAddress"], "0xabc")
        self.assertEqual(requests[0].url.params["blockNumber"], "pending")
        self.assertTrue(
            requests[0]
            .headers[Metadata.STARKNET_HEADER]
            .startswith("starknet-python-sdk/")
        )

    async def test_add_transaction(self):
        bodies: List[Dict[str, Any]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            self.assertEqual(request.url.path, "/gateway/add_transaction")
            bodies.append(json.loads(request.content))
            return httpx.Response(
                200,
                json={"code": "TRANSACTION_RECEIVED", "transaction_hash": "0x123"},
            )

        result = await self.client(handler).add_transaction(self.invoke())
        self.assertEqual(result.transaction_hash, FieldElement(0x123))
        self.assertEqual(bodies[0]["type"], "INVOKE_FUNCTION")
        self.assertEqual(bodies[0]["calldata"], ["1"])

    async def test_estimate_fee(self):
        def handler(request: httpx.Request) -> httpx.Response:
            self.assertEqual(request.url.path, "/feeder_gateway/estimate_fee")
            return httpx.Response(
                200, json={"overall_fee": 0, "gas_price": 1, "gas_usage": 0}
            )

        estimate = await self.client(handler).estimate_fee(self.invoke())
        self.assertEqual(estimate.overall_fee, 0)

    async def test_error_mapping(self):
        def nonce_error(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                500,
                json={
                    "code": "StarknetErrorCode.INVALID_TRANSACTION_NONCE",
                    "message": "Invalid transaction nonce. Expected: 3, got: 2.",
                },
            )

        with self.assertRaises(InvalidNonce) as context:
            await self.client(nonce_error).add_transaction(self.invoke())
        self.assertEqual(context.exception.status_code, 500)
        self.assertIn("Expected: 3", str(context.exception))

        def other_error(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400,
                json={
                    "code": "StarknetErrorCode.UNDECLARED_CLASS",
                    "message": "Class is not declared.",
                },
            )

        with self.assertRaises(ApiError) as api_context:
            await self.client(other_error).get_class_by_hash(FieldElement(1))
        self.assertNotIsInstance(api_context.exception, InvalidNonce)
        self.assertEqual(api_context.exception.code, "StarknetErrorCode.UNDECLARED_CLASS")

        def plain_error(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway")

        with self.assertRaises(ApiError) as plain_context:
            await self.client(plain_error).get_nonce(FieldElement(1))
        self.assertIsNone(plain_context.exception.code)
        self.assertEqual(plain_context.exception.status_code, 502)

    async def test_transport_and_malformed_errors(self):
        def unreachable(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with self.assertRaises(NetworkError):
            await self.client(unreachable).get_nonce(FieldElement(1))

        def garbage(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>")

        with self.assertRaises(NetworkError):
            await self.client(garbage).get_nonce(FieldElement(1))

        def wrong_shape(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"unexpected": True})

        with self.assertRaises(NetworkError):
            await self.client(wrong_shape).estimate_fee(self.invoke())

    async def test_get_class_by_hash(self):
        def handler(request: httpx.Request) -> httpx.Response:
            self.assertEqual(request.url.params["classHash"], "0x99")
            return httpx.Response(
                200,
                json={
                    "sierra_program": ["0x1"],
                    "contract_class_version": "0.1.0",
                    "entry_points_by_type": {"EXTERNAL": []},
                    "abi": "[]",
                },
            )

        contract_class = await self.client(handler).get_class_by_hash(FieldElement(0x99))
        self.assertIsInstance(contract_class, FlattenedSierraClass)

    async def test_wait_for_transaction(self):
        statuses = iter(["RECEIVED", "PENDING", "ACCEPTED_ON_L2"])

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"tx_status": next(statuses)})

        info = await self.client(handler, poll_interval=0).wait_for_transaction(
            FieldElement(0x1)
        )
        self.assertEqual(info.status, TransactionStatus.ACCEPTED_ON_L2)

    async def test_wait_for_rejected_transaction(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "tx_status": "REJECTED",
                    "tx_failure_reason": {"error_message": "Invalid nonce"},
                },
            )

        with self.assertRaises(TransactionNotAccepted) as context:
            await self.client(handler, poll_interval=0).wait_for_transaction(
                FieldElement(0x1)
            )
        self.assertEqual(context.exception.transaction_hash, "0x1")
        self.assertEqual(context.exception.code, "REJECTED")

    async def test_wait_times_out(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"tx_status": "RECEIVED"})

        with self.assertRaises(NetworkError):
            await self.client(
                handler, poll_interval=0, transaction_wait_in_seconds=0
            ).wait_for_transaction(FieldElement(0x1))

    async def test_presets(self):
        mainnet = GatewayClient.starknet_alpha_mainnet()
        self.addAsyncCleanup(mainnet.close)
        self.assertEqual(mainnet.gateway_url, "https://alpha-mainnet.starknet.io/gateway")
        self.assertEqual(mainnet.chain_id, chain_id.MAINNET)
        goerli = GatewayClient.starknet_alpha_goerli()
        self.addAsyncCleanup(goerli.close)
        self.assertEqual(
            goerli.feeder_gateway_url, "https://alpha4.starknet.io/feeder_gateway"
        )
        self.assertEqual(goerli.chain_id, chain_id.TESTNET)


if __name__ == "__main__":
    unittest.main()
