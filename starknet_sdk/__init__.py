# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Starknet Python SDK - an asyncio client library for Starknet accounts.

The SDK turns contract calls and contract classes into signed account
transactions and sends them through the sequencer gateway. Everything that
touches the chain is an awaitable; everything that does not (field and curve
arithmetic, hashing, calldata encoding, class compression) is plain synchronous
code usable on its own.

Core Features:
- **Field and Curve Arithmetic**: Stark field elements and short-Weierstrass
  point arithmetic on the Stark curve
- **Hashing**: Pedersen hash, hash-on-elements, ``starknet_keccak`` selectors
- **Signing**: Stark-curve ECDSA with RFC 6979 nonces behind a ``Signer`` protocol
- **Multicall**: Any number of calls in one invoke transaction
- **Declarations**: Sierra and legacy classes, gzip-compressed for the gateway
- **Fee Handling**: Estimation, simulation and padded max fees from one pipeline
- **Cancellation**: Every network exit accepts an ``asyncio.Event``
- **High Throughput**: Nonce allocation and a background transaction worker

Supported Networks:
- **Mainnet**: ``SN_MAIN``
- **Goerli testnets**: ``SN_GOERLI`` and ``SN_GOERLI2``
- **Sepolia**: ``SN_SEPOLIA``
- **Devnets**: any gateway URL with an explicit chain id

Quick Start:
    Minting on a token contract::

        import asyncio
        from starknet_sdk import chain_id
        from starknet_sdk.account import Account
        from starknet_sdk.async_client import GatewayClient
        from starknet_sdk.call import Call
        from starknet_sdk.field import FieldElement
        from starknet_sdk.signer import LocalSigner
        from starknet_sdk.stark_ecdsa import PrivateKey

        async def main():
            client = GatewayClient.starknet_alpha_goerli()
            account = Account(
                client,
                LocalSigner(PrivateKey.from_hex(private_key_hex)),
                FieldElement.from_hex(account_address_hex),
                chain_id.TESTNET,
            )

            execution = account.execute(
                [Call.natural(token, "mint", [account.address, FieldElement(10**18), FieldElement.ZERO])]
            )
            print(await execution.estimate_fee())
            result = await execution.send()
            await client.wait_for_transaction(result.transaction_hash)

            await client.close()

        asyncio.run(main())

Module Organization:
    Primitives:
    - **field**: ``FieldElement`` and the Stark prime
    - **curve**: Curve constants, affine and projective points
    - **pedersen**: Pedersen hash and hash-on-elements
    - **utils**: Keccak selectors and Cairo short strings
    - **chain_id**: Well-known chain identifiers

    Cryptography:
    - **stark_ecdsa**: Private and public keys, signatures
    - **signer**: ``Signer`` protocol and the in-process ``LocalSigner``

    Transactions:
    - **call**: ``Call`` and multicall calldata encoding
    - **contract_class**: Class models, decoding, compression, legacy class hash
    - **transactions**: Invoke and declare transactions, hashes, gateway JSON
    - **account**: ``Account`` and the transaction pipeline

    Network:
    - **provider**: ``Provider`` protocol and response models
    - **async_client**: ``GatewayClient`` on httpx
    - **account_nonce**: Caller-side nonce allocation
    - **transaction_worker**: Pipelined submission of queued calls

    Tooling:
    - **cli**: ``python -m starknet_sdk.cli``
    - **metadata**: SDK identification header
    - **errors**: Every error the SDK raises

Development:
    Running tests::

        pip install -e ".[test]"
        python -m pytest
        behave

Security Considerations:
    - **Private Keys**: Never logged; ``PrivateKey`` redacts itself in ``repr``
    - **Query Signatures**: Estimation and simulation sign query versions that
      the network never accepts for submission
    - **Nonces**: Never cached; concurrent sends from one account race and one
      fails with ``InvalidNonce``

License:
    Apache License 2.0
"""
