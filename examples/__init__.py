"""
Starknet Python SDK examples.

Example Scripts:
    - common.py: Shared configuration read from the environment
    - mint_tokens.py: Two mints in one multicall, with fee estimation
    - declare_contract.py: Declaring a Sierra or legacy contract class

Quick Start:
    Every example needs a deployed, funded account::

        export STARKNET_ACCOUNT_ADDRESS=0x...
        export STARKNET_PRIVATE_KEY=0x...
        python -m examples.mint_tokens
        python -m examples.declare_contract ./build/token.contract_class.json

Safety:
    The examples default to the Goerli testnet. Point them at mainnet only with an
    account you are prepared to spend from.
"""
