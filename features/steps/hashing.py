import typing

from behave import then, use_step_matcher, when

from starknet_sdk.field import FieldElement
from starknet_sdk.pedersen import pedersen_hash
from starknet_sdk.stark_ecdsa import PrivateKey
from starknet_sdk.utils import get_selector_from_name

# Use regular expressions
use_step_matcher("re")


@when("I compute the selector")
def when_compute_selector(context: typing.Any):
    context.output = get_selector_from_name(context.input)


@when("I compute the pedersen hash")
def when_compute_pedersen_hash(context: typing.Any):
    left, right = context.input
    context.output = pedersen_hash(left, right)


@when("I compute the public key")
def when_compute_public_key(context: typing.Any):
    private_key = PrivateKey(context.input.value)
    context.output = FieldElement.from_hex(private_key.public_key().hex())


@when(r"I sign the hash (?P<msg_hash>\S+)")
def when_sign_hash(context: typing.Any, msg_hash: str):
    context.private_key = PrivateKey(context.input.value)
    context.msg_hash = FieldElement.from_hex(msg_hash)
    context.signature = context.private_key.sign(context.msg_hash)


@then("the signature should verify")
def then_signature_verifies(context: typing.Any):
    public_key = context.private_key.public_key()
    assert public_key.verify(context.msg_hash, context.signature)
    assert not public_key.verify(
        context.msg_hash + FieldElement.ONE, context.signature
    )
