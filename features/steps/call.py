import typing

from behave import given, then, use_step_matcher, when

from starknet_sdk.call import Call, encode_calls
from starknet_sdk.errors import CallEncodingError
from starknet_sdk.field import FIELD_PRIME, FieldElement

# Use regular expressions
use_step_matcher("re")


def parse_word(value: str) -> typing.Any:
    # Out-of-field words stay raw ints so encoding can reject them.
    number = int(value, 0)
    return FieldElement(number) if number < FIELD_PRIME else number


@given(
    r"a call to (?P<to>\S+) with selector (?P<selector>\S+) and calldata \[(?P<calldata>\S*)]"
)
def given_call(context: typing.Any, to: str, selector: str, calldata: str):
    if not hasattr(context, "calls"):
        context.calls = []
    words = [parse_word(value) for value in calldata.split(",")] if calldata else []
    context.calls.append(Call(parse_word(to), parse_word(selector), words))


@when("I encode the calls")
def when_encode_calls(context: typing.Any):
    try:
        context.output = encode_calls(getattr(context, "calls", []))
    except CallEncodingError as e:
        context.output = e


@then(r"encoding should fail at (?P<field>\S+) of call (?P<call_index>\d+)")
def then_encoding_fails(context: typing.Any, field: str, call_index: str):
    assert isinstance(context.output, CallEncodingError), str(context.output)
    assert context.output.field == field, context.output.field
    assert context.output.call_index == int(call_index)
