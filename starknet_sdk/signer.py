# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Signer interface consumed by accounts.

An :class:`~starknet_sdk.account.Account` never touches key material directly; it
asks a :class:`Signer` for its public key and for signatures over transaction
hashes. ``sign_hash`` is a coroutine so that implementations backed by a remote
key service or a hardware device fit the same interface as :class:`LocalSigner`.

Examples:
    Wrapping an in-memory key::

        from starknet_sdk.signer import LocalSigner
        from starknet_sdk.stark_ecdsa import PrivateKey

        signer = LocalSigner(PrivateKey.from_hex(os.environ["STARKNET_PRIVATE_KEY"]))
        signature = await signer.sign_hash(tx_hash)

    Any object with the same two methods is accepted::

        class RemoteSigner:
            def public_key(self) -> PublicKey: ...
            async def sign_hash(self, hash: FieldElement) -> Signature: ...
"""

from __future__ import annotations

import unittest

from typing_extensions import Protocol

from .errors import SignatureError
from .field import FieldElement
from .stark_ecdsa import PrivateKey, PublicKey, Signature


class Signer(Protocol):
    """Protocol for holders of a Stark private key.

    Implementations report failures (unavailable key, invalid hash) by raising
    :class:`~starknet_sdk.errors.SignatureError`.
    """

    def public_key(self) -> PublicKey:
        """Return the public key matching the signing key."""
        ...

    async def sign_hash(self, hash: FieldElement) -> Signature:
        """Sign a 251-bit hash and return ``(r, s)``."""
        ...


class LocalSigner:
    """A :class:`Signer` holding a :class:`~starknet_sdk.stark_ecdsa.PrivateKey` in memory."""

    private_key: PrivateKey

    def __init__(self, private_key: PrivateKey):
        self.private_key = private_key

    def public_key(self) -> PublicKey:
        return self.private_key.public_key()

    async def sign_hash(self, hash: FieldElement) -> Signature:
        try:
            return self.private_key.sign(hash)
        except SignatureError:
            raise
        except (ArithmeticError, ValueError) as e:
            raise SignatureError(f"unable to sign {hash.hex()}: {e}") from e


class Test(unittest.IsolatedAsyncioTestCase):
    async def test_local_signer(self):
        private_key = PrivateKey.random()
        signer: Signer = LocalSigner(private_key)
        msg_hash = FieldElement(0xABCDEF)

        signature = await signer.sign_hash(msg_hash)
        self.assertEqual(signature, private_key.sign(msg_hash))
        self.assertTrue(signer.public_key().verify(msg_hash, signature))

    async def test_invalid_hash(self):
        signer = LocalSigner(PrivateKey.random())
        with self.assertRaises(SignatureError):
            await signer.sign_hash(FieldElement(2**251))


if __name__ == "__main__":
    unittest.main()
