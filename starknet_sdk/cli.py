# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Command-line interface for common account operations.

Supported Commands:
- nonce: print the pending nonce of the account
- invoke: execute one contract call from the account (or only estimate its fee)
- declare: declare a Sierra or legacy contract class from a JSON file

Settings are resolved in this order, first match wins:

1. command-line flags;
2. environment variables ``STARKNET_GATEWAY_URL``, ``STARKNET_FEEDER_GATEWAY_URL``,
   ``STARKNET_ACCOUNT_ADDRESS``, ``STARKNET_PRIVATE_KEY`` and ``STARKNET_CHAIN``;
3. a TOML profile given with ``--profile``;
4. the public gateway of the selected chain (mainnet or testnet).

Profile format::

    chain = "testnet"
    account = "0x2da37a17affbd2df4ede7120dae305ec36dfe94ec96a8c3f49bbf59f4e9a9fa"
    private_key_path = "~/.starknet/key.txt"
    # gateway_url and feeder_gateway_url default to the chain's public gateway

Examples:
    Minting tokens::

        python -m starknet_sdk.cli invoke \\
            --profile ./testnet.toml \\
            --contract 0x7394cbe418daa16e42b87ba67372d4ab4a5df0b05c6e554d158458ce245bc10 \\
            --function mint \\
            --calldata 0x2da37... 1000000000000000000000 0 \\
            --wait

    Declaring a class::

        python -m starknet_sdk.cli declare \\
            --profile ./testnet.toml \\
            --contract-class ./build/token.contract_class.json \\
            --class-hash 0x... --compiled-class-hash 0x...

Note:
    Private keys are read from a file or from ``STARKNET_PRIVATE_KEY``; they are
    never accepted as a command-line flag.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import io
import os
import os.path
import sys
import tempfile
import unittest
import unittest.mock
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import tomli

from . import chain_id
from .account import Account
from .async_client import ClientConfig, GatewayClient
from .call import Call
from .contract_class import decode_deployed_class
from .field import FieldElement
from .provider import (
    AddTransactionResult,
    FeeEstimate,
    TransactionResultCode,
    TransactionStatus,
    TransactionStatusInfo,
)
from .signer import LocalSigner
from .stark_ecdsa import PrivateKey
from .utils import parse_felt

ENVIRONMENT_KEYS = {
    "gateway_url": "STARKNET_GATEWAY_URL",
    "feeder_gateway_url": "STARKNET_FEEDER_GATEWAY_URL",
    "account": "STARKNET_ACCOUNT_ADDRESS",
    "private_key": "STARKNET_PRIVATE_KEY",
    "chain": "STARKNET_CHAIN",
}

PUBLIC_GATEWAYS = {
    "mainnet": GatewayClient.MAINNET_URL,
    "testnet": GatewayClient.GOERLI_URL,
}


@dataclass
class Settings:
    gateway_url: str
    feeder_gateway_url: str
    account: FieldElement
    private_key: PrivateKey
    chain_id: FieldElement


def load_profile(path: str) -> Dict[str, Any]:
    with open(os.path.expanduser(path), "rb") as f:
        return tomli.load(f)


def _read_private_key(path: str) -> PrivateKey:
    with open(os.path.expanduser(path)) as f:
        return PrivateKey.from_hex(f.read().strip())


def resolve_settings(
    parsed_args: argparse.Namespace,
    parser: argparse.ArgumentParser,
    environ: Mapping[str, str] = os.environ,
) -> Settings:
    """Merge flags, environment and profile into :class:`Settings`.

    Calls ``parser.error`` (exiting) when a required setting is missing or invalid.
    """
    profile: Dict[str, Any] = {}
    if parsed_args.profile is not None:
        try:
            profile = load_profile(parsed_args.profile)
        except FileNotFoundError:
            parser.error(f"Profile not found: {parsed_args.profile}")
        except tomli.TOMLDecodeError as e:
            parser.error(f"Invalid profile {parsed_args.profile}: {e}")

    def setting(name: str) -> Optional[str]:
        value = getattr(parsed_args, name, None)
        if value is None:
            value = environ.get(ENVIRONMENT_KEYS[name])
        if value is None:
            value = profile.get(name)
        return value

    chain = setting("chain") or "testnet"
    public_gateway = PUBLIC_GATEWAYS.get(chain.lower())
    gateway_url = setting("gateway_url")
    feeder_gateway_url = setting("feeder_gateway_url")
    if gateway_url is None or feeder_gateway_url is None:
        if public_gateway is None:
            parser.error(
                f"No public gateway for chain {chain}, set --gateway-url and --feeder-gateway-url"
            )
        gateway_url = gateway_url or f"{public_gateway}/gateway"
        feeder_gateway_url = feeder_gateway_url or f"{public_gateway}/feeder_gateway"

    account = setting("account")
    if account is None:
        parser.error("Missing required argument '--account'")

    try:
        private_key_path = parsed_args.private_key_path
        raw_key = environ.get(ENVIRONMENT_KEYS["private_key"])
        if private_key_path is None and raw_key is None:
            private_key_path = profile.get("private_key_path")
        if private_key_path is not None:
            private_key = _read_private_key(private_key_path)
        elif raw_key is not None:
            private_key = PrivateKey.from_hex(raw_key.strip())
        else:
            parser.error(
                "Missing private key, set '--private-key-path' or STARKNET_PRIVATE_KEY"
            )
    except FileNotFoundError:
        parser.error(f"Private key file not found: {private_key_path}")
    except ValueError as e:
        parser.error(f"Failed to load private key: {e}")

    try:
        return Settings(
            gateway_url=gateway_url,
            feeder_gateway_url=feeder_gateway_url,
            account=parse_felt(account),
            private_key=private_key,
            chain_id=chain_id.from_name(chain),
        )
    except ValueError as e:
        parser.error(str(e))


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Starknet Python CLI")
    parser.add_argument(
        "command",
        type=str,
        help="The command to execute",
        choices=["nonce", "invoke", "declare"],
    )
    parser.add_argument("--profile", help="Path to a TOML profile", type=str)
    parser.add_argument(
        "--chain", help="mainnet, testnet, testnet2, sepolia or a raw chain id"
    )
    parser.add_argument("--gateway-url", dest="gateway_url", type=str)
    parser.add_argument("--feeder-gateway-url", dest="feeder_gateway_url", type=str)
    parser.add_argument("--account", help="Address of the account contract", type=str)
    parser.add_argument(
        "--private-key-path",
        help="Path to a file containing the account's private key in hex",
        type=str,
    )
    parser.add_argument("--contract", help="Contract to invoke", type=parse_felt)
    parser.add_argument("--function", help="Function to invoke", type=str)
    parser.add_argument(
        "--calldata",
        help="Call arguments as decimal or 0x-prefixed hex",
        nargs="*",
        type=parse_felt,
        default=[],
    )
    parser.add_argument(
        "--contract-class", help="Path to a contract class JSON file", type=str
    )
    parser.add_argument("--class-hash", type=parse_felt)
    parser.add_argument("--compiled-class-hash", type=parse_felt)
    parser.add_argument(
        "--max-fee", help="Maximum fee in wei, skips estimation", type=parse_felt
    )
    parser.add_argument(
        "--estimate-only",
        help="Print the fee estimate instead of sending",
        action="store_true",
    )
    parser.add_argument(
        "--wait", help="Wait until the transaction is accepted", action="store_true"
    )
    return parser


async def main(args: List[str], environ: Mapping[str, str] = os.environ):
    parser = _parser()
    parsed_args = parser.parse_args(args)

    if parsed_args.command == "invoke":
        if parsed_args.contract is None:
            parser.error("Missing required argument '--contract'")
        if parsed_args.function is None:
            parser.error("Missing required argument '--function'")
    if parsed_args.command == "declare" and parsed_args.contract_class is None:
        parser.error("Missing required argument '--contract-class'")

    settings = resolve_settings(parsed_args, parser, environ)
    client = GatewayClient(
        settings.gateway_url,
        settings.feeder_gateway_url,
        ClientConfig(),
        chain_id=settings.chain_id,
    )
    try:
        account = Account(
            client,
            LocalSigner(settings.private_key),
            settings.account,
            settings.chain_id,
        )
        if parsed_args.command == "nonce":
            print((await account.get_nonce()).hex())
            return

        if parsed_args.command == "invoke":
            builder = account.execute(
                [
                    Call.natural(
                        parsed_args.contract,
                        parsed_args.function,
                        parsed_args.calldata,
                    )
                ]
            )
        else:
            with open(parsed_args.contract_class, "rb") as f:
                contract_class = decode_deployed_class(f.read())
            builder = account.declare(
                contract_class,
                compiled_class_hash=parsed_args.compiled_class_hash,
                class_hash=parsed_args.class_hash,
            )
        if parsed_args.max_fee is not None:
            builder = builder.max_fee(parsed_args.max_fee)

        if parsed_args.estimate_only:
            estimate = await builder.estimate_fee()
            print(f"{estimate.overall_fee} {estimate.unit}")
            return

        result = await builder.send()
        print(result.transaction_hash.hex())
        if result.class_hash is not None:
            print(f"class hash: {result.class_hash.hex()}")
        if parsed_args.wait:
            info = await client.wait_for_transaction(result.transaction_hash)
            print(info.status.value)
    finally:
        await client.close()


class Test(unittest.IsolatedAsyncioTestCase):
    PRIVATE_KEY = "0x3c1e9550e66958296d11b60f8e8e7a7ad990d07fa65d5f7652c4a6c87d4e3cc"
    ACCOUNT = "0x2da37a17affbd2df4ede7120dae305ec36dfe94ec96a8c3f49bbf59f4e9a9fa"

    def setUp(self):
        self.directory = tempfile.TemporaryDirectory()
        self.addCleanup(self.directory.cleanup)

    def write(self, name: str, content: str) -> str:
        path = os.path.join(self.directory.name, name)
        with open(path, "w") as f:
            f.write(content)
        return path

    def resolve(self, args: List[str], environ: Mapping[str, str]) -> Settings:
        parser = _parser()
        return resolve_settings(parser.parse_args(args), parser, environ)

    def test_profile_and_environment(self):
        key_path = self.write("key.txt", self.PRIVATE_KEY + "\n")
        profile = self.write(
            "profile.toml",
            f'chain = "mainnet"\naccount = "{self.ACCOUNT}"\nprivate_key_path = "{key_path}"\n',
        )

        settings = self.resolve(["nonce", "--profile", profile], {})
        self.assertEqual(settings.chain_id, chain_id.MAINNET)
        self.assertEqual(settings.gateway_url, f"{GatewayClient.MAINNET_URL}/gateway")
        self.assertEqual(settings.account, FieldElement.from_hex(self.ACCOUNT))
        self.assertEqual(settings.private_key, PrivateKey.from_hex(self.PRIVATE_KEY))

        settings = self.resolve(
            ["nonce", "--profile", profile, "--account", "0x5"],
            {"STARKNET_GATEWAY_URL": "http://localhost:5050/gateway"},
        )
        self.assertEqual(settings.account, FieldElement(5))
        self.assertEqual(settings.gateway_url, "http://localhost:5050/gateway")
        self.assertEqual(
            settings.feeder_gateway_url, f"{GatewayClient.MAINNET_URL}/feeder_gateway"
        )

    def test_environment_private_key(self):
        settings = self.resolve(
            ["nonce"],
            {
                "STARKNET_ACCOUNT_ADDRESS": self.ACCOUNT,
                "STARKNET_PRIVATE_KEY": self.PRIVATE_KEY,
            },
        )
        self.assertEqual(settings.chain_id, chain_id.TESTNET)
        self.assertEqual(settings.private_key, PrivateKey.from_hex(self.PRIVATE_KEY))

    def test_environment_private_key_overrides_profile(self):
        profile_key = "0x" + "1" * 63
        key_path = self.write("key.txt", profile_key + "\n")
        profile = self.write(
            "profile.toml",
            f'account = "{self.ACCOUNT}"\nprivate_key_path = "{key_path}"\n',
        )

        settings = self.resolve(
            ["nonce", "--profile", profile],
            {"STARKNET_PRIVATE_KEY": self.PRIVATE_KEY},
        )
        self.assertEqual(settings.private_key, PrivateKey.from_hex(self.PRIVATE_KEY))

        settings = self.resolve(
            ["nonce", "--profile", profile, "--private-key-path", key_path],
            {"STARKNET_PRIVATE_KEY": self.PRIVATE_KEY},
        )
        self.assertEqual(settings.private_key, PrivateKey.from_hex(profile_key))

    def test_missing_settings(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                self.resolve(["nonce"], {"STARKNET_PRIVATE_KEY": self.PRIVATE_KEY})
            with self.assertRaises(SystemExit):
                self.resolve(["nonce"], {"STARKNET_ACCOUNT_ADDRESS": self.ACCOUNT})
            with self.assertRaises(SystemExit):
                self.resolve(
                    ["nonce", "--chain", "SN_DEVNET"],
                    {
                        "STARKNET_ACCOUNT_ADDRESS": self.ACCOUNT,
                        "STARKNET_PRIVATE_KEY": self.PRIVATE_KEY,
                    },
                )

    async def test_invoke(self):
        environ = {
            "STARKNET_ACCOUNT_ADDRESS": self.ACCOUNT,
            "STARKNET_PRIVATE_KEY": self.PRIVATE_KEY,
        }
        with unittest.mock.patch(
            "starknet_sdk.async_client.GatewayClient.get_nonce",
            return_value=FieldElement(7),
        ), unittest.mock.patch(
            "starknet_sdk.async_client.GatewayClient.estimate_fee",
            return_value=FeeEstimate(2000, 10, 200),
        ), unittest.mock.patch(
            "starknet_sdk.async_client.GatewayClient.add_transaction",
            return_value=AddTransactionResult(
                TransactionResultCode.TRANSACTION_RECEIVED, FieldElement(0xABC)
            ),
        ) as add_transaction, unittest.mock.patch(
            "starknet_sdk.async_client.GatewayClient.wait_for_transaction",
            return_value=TransactionStatusInfo(TransactionStatus.ACCEPTED_ON_L2),
        ):
            output = io.StringIO()
            with contextlib.redirect_stdout(output):
                await main(
                    [
                        "invoke",
                        "--contract",
                        "0x7394cbe418daa16e42b87ba67372d4ab4a5df0b05c6e554d158458ce245bc10",
                        "--function",
                        "mint",
                        "--calldata",
                        self.ACCOUNT,
                        "1000",
                        "0",
                        "--wait",
                    ],
                    environ,
                )
            self.assertEqual(output.getvalue().split(), ["0xabc", "ACCEPTED_ON_L2"])
            submitted = add_transaction.call_args[0][0]
            self.assertEqual(submitted.nonce, FieldElement(7))
            self.assertEqual(submitted.max_fee, FieldElement(2200))
            # One call: [1, to, selector, 0, 3, 3, data...]
            self.assertEqual(submitted.calldata[0], FieldElement(1))
            self.assertEqual(submitted.calldata[-2], FieldElement(1000))

            output = io.StringIO()
            with contextlib.redirect_stdout(output):
                await main(["nonce"], environ)
            self.assertEqual(output.getvalue().strip(), "0x7")

    async def test_declare_estimate_only(self):
        contract_class = self.write(
            "class.json",
            '{"sierra_program": ["0x1", "0x2"], "contract_class_version": "0.1.0",'
            ' "entry_points_by_type": {"EXTERNAL": [], "L1_HANDLER": [], "CONSTRUCTOR": []},'
            ' "abi": "[]"}',
        )
        with unittest.mock.patch(
            "starknet_sdk.async_client.GatewayClient.get_nonce",
            return_value=FieldElement(0),
        ), unittest.mock.patch(
            "starknet_sdk.async_client.GatewayClient.estimate_fee",
            return_value=FeeEstimate(1234, 1, 1234),
        ) as estimate_fee:
            output = io.StringIO()
            with contextlib.redirect_stdout(output):
                await main(
                    [
                        "declare",
                        "--contract-class",
                        contract_class,
                        "--class-hash",
                        "0x1234",
                        "--compiled-class-hash",
                        "0x5678",
                        "--estimate-only",
                    ],
                    {
                        "STARKNET_ACCOUNT_ADDRESS": self.ACCOUNT,
                        "STARKNET_PRIVATE_KEY": self.PRIVATE_KEY,
                    },
                )
            self.assertEqual(output.getvalue().strip(), "1234 wei")
            estimated = estimate_fee.call_args[0][0]
            self.assertEqual(estimated.compiled_class_hash, FieldElement(0x5678))
            self.assertEqual(estimated.version.value, 2**128 + 2)


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:]))
