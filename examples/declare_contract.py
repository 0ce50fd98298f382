# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Declaring a contract class.

Legacy (Cairo 0) classes are declared as they are: their class hash is computed
by the SDK. Sierra classes additionally need the class hash and the compiled
(CASM) class hash produced by the compiler toolchain.

Examples:
    Declare a legacy class::

        python -m examples.declare_contract ./build/token_compiled.json

    Declare a Sierra class::

        python -m examples.declare_contract ./target/token.contract_class.json \\
            0x<class hash> 0x<compiled class hash>
"""

import asyncio
import sys

from starknet_sdk import chain_id
from starknet_sdk.account import Account
from starknet_sdk.async_client import GatewayClient
from starknet_sdk.contract_class import decode_deployed_class
from starknet_sdk.field import FieldElement
from starknet_sdk.signer import LocalSigner
from starknet_sdk.stark_ecdsa import PrivateKey

from .common import ACCOUNT_ADDRESS, CHAIN, FEEDER_GATEWAY_URL, GATEWAY_URL, PRIVATE_KEY


async def main(class_path: str, hashes: list):
    if ACCOUNT_ADDRESS is None or PRIVATE_KEY is None:
        raise SystemExit("Set STARKNET_ACCOUNT_ADDRESS and STARKNET_PRIVATE_KEY")

    client = GatewayClient(GATEWAY_URL, FEEDER_GATEWAY_URL)
    account = Account(
        client,
        LocalSigner(PrivateKey.from_hex(PRIVATE_KEY)),
        FieldElement.from_hex(ACCOUNT_ADDRESS),
        chain_id.from_name(CHAIN),
    )

    # :!:>section_1
    with open(class_path, "rb") as f:
        contract_class = decode_deployed_class(f.read())

    if hashes:
        class_hash, compiled_class_hash = [FieldElement.from_hex(h) for h in hashes]
        declaration = account.declare(
            contract_class,
            compiled_class_hash=compiled_class_hash,
            class_hash=class_hash,
        )
    else:
        declaration = account.declare(contract_class)
    # <:!:section_1

    estimate = await declaration.estimate_fee()
    print(f"Estimated fee: {estimate.overall_fee} {estimate.unit}")

    # :!:>section_2
    result = await declaration.send()
    print(f"Transaction: {result.transaction_hash.hex()}")
    if result.class_hash is not None:
        print(f"Class hash: {result.class_hash.hex()}")
    status = await client.wait_for_transaction(result.transaction_hash)
    print(f"Status: {status.status.value}")  # <:!:section_2

    await client.close()


if __name__ == "__main__":
    if len(sys.argv) not in (2, 4):
        raise SystemExit(
            "usage: python -m examples.declare_contract CLASS_JSON [CLASS_HASH COMPILED_CLASS_HASH]"
        )
    asyncio.run(main(sys.argv[1], sys.argv[2:]))
