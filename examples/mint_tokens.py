# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Multicall example: two mints in a single invoke transaction.

The account calls ``mint(recipient, amount)`` twice on a test token. Both calls
travel in one transaction, so they are executed in order and share one nonce and
one fee. The example first estimates and simulates the transaction, then sends it
with a max fee derived from the estimate.

Examples:
    Run against the Goerli testnet::

        export STARKNET_ACCOUNT_ADDRESS=0x...
        export STARKNET_PRIVATE_KEY=0x...
        python -m examples.mint_tokens
"""

import asyncio

from starknet_sdk import chain_id
from starknet_sdk.account import Account
from starknet_sdk.async_client import GatewayClient
from starknet_sdk.call import Call
from starknet_sdk.field import FieldElement
from starknet_sdk.signer import LocalSigner
from starknet_sdk.stark_ecdsa import PrivateKey

from .common import (
    ACCOUNT_ADDRESS,
    CHAIN,
    FEEDER_GATEWAY_URL,
    GATEWAY_URL,
    PRIVATE_KEY,
    TOKEN_ADDRESS,
)


def uint256(value: int):
    """Split an integer into the (low, high) felts of a Cairo ``Uint256``."""
    return [FieldElement(value & (2**128 - 1)), FieldElement(value >> 128)]


async def main():
    if ACCOUNT_ADDRESS is None or PRIVATE_KEY is None:
        raise SystemExit("Set STARKNET_ACCOUNT_ADDRESS and STARKNET_PRIVATE_KEY")

    # :!:>section_1
    client = GatewayClient(GATEWAY_URL, FEEDER_GATEWAY_URL)
    account = Account(
        client,
        LocalSigner(PrivateKey.from_hex(PRIVATE_KEY)),
        FieldElement.from_hex(ACCOUNT_ADDRESS),
        chain_id.from_name(CHAIN),
    )  # <:!:section_1
    token = FieldElement.from_hex(TOKEN_ADDRESS)

    # :!:>section_2
    execution = account.execute(
        [
            Call.natural(
                token, "mint", [account.address] + uint256(1_000 * 10**18)
            ),
            Call.natural(
                token, "mint", [account.address] + uint256(2_000 * 10**18)
            ),
        ]
    )  # <:!:section_2

    print("\n=== Account ===")
    print(f"Address: {account.address.hex()}")
    print(f"Nonce: {(await account.get_nonce()).value}")

    # :!:>section_3
    estimate = await execution.estimate_fee()
    print("\n=== Fee Estimate ===")
    print(f"Overall fee: {estimate.overall_fee} {estimate.unit}")

    simulation = await execution.simulate()
    invocation = simulation.trace.function_invocation
    if invocation is not None:
        print(f"Internal calls: {len(invocation.internal_calls)}")
    # <:!:section_3

    # :!:>section_4
    result = await execution.send()
    print("\n=== Submitted ===")
    print(f"Transaction: {result.transaction_hash.hex()}")
    status = await client.wait_for_transaction(result.transaction_hash)
    print(f"Status: {status.status.value}")  # <:!:section_4

    await client.close()


if __name__ == "__main__":
    asyncio.run(main())
