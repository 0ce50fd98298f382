from behave import *

from starknet_sdk.field import FieldElement
from starknet_sdk.utils import cairo_short_string_to_felt

# Use regular expressions
use_step_matcher("re")


@when("I parse the field element")
def when_parse_field_element(context):
    try:
        if context.input.startswith("0x"):
            context.output = FieldElement.from_hex(context.input)
        else:
            context.output = FieldElement.from_dec_str(context.input)
    except Exception as e:
        context.output = e


@when("I convert the short string")
def when_convert_short_string(context):
    context.output = cairo_short_string_to_felt(context.input)


@then("I should fail to parse the field element")
def then_fail_field_element(context):
    assert isinstance(context.output, ValueError)
