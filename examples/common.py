# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Common configuration for the Starknet Python SDK examples.

Every setting can be overridden through the environment so the same scripts run
against the public Goerli gateway or a local devnet.

Environment Variables:
    STARKNET_GATEWAY_URL: Gateway accepting transactions
    STARKNET_FEEDER_GATEWAY_URL: Feeder gateway answering queries
    STARKNET_CHAIN: Chain name or raw chain id (default: testnet)
    STARKNET_ACCOUNT_ADDRESS: Deployed account contract used by the examples
    STARKNET_PRIVATE_KEY: Private key of that account, in hex
    STARKNET_TOKEN_ADDRESS: Token contract with a public ``mint`` entry point

Usage Examples:
    Against a local devnet::

        export STARKNET_GATEWAY_URL=http://127.0.0.1:5050/gateway
        export STARKNET_FEEDER_GATEWAY_URL=http://127.0.0.1:5050/feeder_gateway
        export STARKNET_CHAIN=SN_GOERLI
        python -m examples.mint_tokens
"""

import os

# :!:>section_1
GATEWAY_URL = os.getenv(
    "STARKNET_GATEWAY_URL",
    "https://alpha4.starknet.io/gateway",
)

FEEDER_GATEWAY_URL = os.getenv(
    "STARKNET_FEEDER_GATEWAY_URL",
    "https://alpha4.starknet.io/feeder_gateway",
)

CHAIN = os.getenv("STARKNET_CHAIN", "testnet")

ACCOUNT_ADDRESS = os.getenv("STARKNET_ACCOUNT_ADDRESS")

PRIVATE_KEY = os.getenv("STARKNET_PRIVATE_KEY")

# Test token accepting mints from anyone
TOKEN_ADDRESS = os.getenv(
    "STARKNET_TOKEN_ADDRESS",
    "0x07394cbe418daa16e42b87ba67372d4ab4a5df0b05c6e554d158458ce245bc10",
)
# <:!:section_1
