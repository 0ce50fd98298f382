# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
SDK identification for HTTP requests.

Every request sent by :class:`~starknet_sdk.async_client.GatewayClient` carries a
``x-starknet-client`` header naming this SDK and its installed version, so that
gateway operators can tell Python SDK traffic apart in their logs.

Examples:
    Adding the header to a custom client::

        import httpx
        from starknet_sdk.metadata import Metadata

        headers = {Metadata.STARKNET_HEADER: Metadata.get_starknet_header_val()}
        async with httpx.AsyncClient(headers=headers) as client:
            ...
"""

import importlib.metadata as metadata
import unittest

# Package name constant for metadata lookup
PACKAGE_NAME = "starknet-sdk"


class Metadata:
    # HTTP header name for client identification
    STARKNET_HEADER = "x-starknet-client"

    @staticmethod
    def get_starknet_header_val() -> str:
        """Header value in the format ``starknet-python-sdk/{version}``.

        The version comes from the installed package metadata; a source checkout
        that was never installed reports ``unknown``.
        """
        try:
            version = metadata.version(PACKAGE_NAME)
        except metadata.PackageNotFoundError:
            version = "unknown"
        return f"starknet-python-sdk/{version}"


class Test(unittest.TestCase):
    def test_header_value(self):
        self.assertTrue(
            Metadata.get_starknet_header_val().startswith("starknet-python-sdk/")
        )


if __name__ == "__main__":
    unittest.main()
