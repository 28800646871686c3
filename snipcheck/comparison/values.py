"""Deep equality and display rendering for the tagged value model."""

import math
import re
from decimal import Decimal

from snipcheck.models import (
    ArrayValue,
    BoolValue,
    NumberValue,
    ObjectValue,
    OpaqueValue,
    StringValue,
    Value,
)

PLAIN_KEY = re.compile(r"^[A-Za-z_$][\w$]*$")
LONE_SURROGATE = re.compile("[\ud800-\udfff]")


def values_equal(left: Value, right: Value) -> bool:
    """Structural equality.

    Arrays are order-sensitive, objects need identical key sets (order is
    ignored). NaN equals NaN and 0 equals -0.
    """
    if left.kind != right.kind:
        return False

    if isinstance(left, NumberValue):
        if math.isnan(left.value) and math.isnan(right.value):
            return True
        return left.value == right.value

    if isinstance(left, (BoolValue, StringValue)):
        return left.value == right.value

    if isinstance(left, ArrayValue):
        return len(left.items) == len(right.items) and all(
            values_equal(a, b) for a, b in zip(left.items, right.items)
        )

    if isinstance(left, ObjectValue):
        if left.entries.keys() != right.entries.keys():
            return False
        return all(values_equal(v, right.entries[k]) for k, v in left.entries.items())

    if isinstance(left, OpaqueValue):
        return left.description == right.description

    # null / undefined
    return True


def render_number(value: float) -> str:
    """Format a number the way JavaScript's ``Number#toString`` does."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0 and math.copysign(1.0, value) < 0:
        return "-0"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))

    sign = "-" if value < 0 else ""
    # repr gives the shortest round-tripping digits, same as JavaScript
    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    significant = digits.rstrip("0")
    exponent += len(digits) - len(significant)
    k = len(significant)
    n = exponent + k

    if k <= n <= 21:
        return sign + significant + "0" * (n - k)
    if 0 < n <= 21:
        return sign + significant[:n] + "." + significant[n:]
    if -6 < n <= 0:
        return sign + "0." + "0" * -n + significant
    mantissa = significant[0] + ("." + significant[1:] if k > 1 else "")
    return f"{sign}{mantissa}e{'+' if n > 0 else '-'}{abs(n - 1)}"


def replace_surrogates(text: str) -> str:
    """Replace lone UTF-16 surrogates with U+FFFD so the text can be encoded."""
    return LONE_SURROGATE.sub("\ufffd", text)


def _quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")
    escaped = LONE_SURROGATE.sub(lambda m: f"\\u{ord(m.group(0)):X}", escaped)
    return f"'{escaped}'"


def render_value(value: Value) -> str:
    """Render a value in Node's inspect style, e.g. ``{ name: 'John', age: 42 }``."""
    if isinstance(value, NumberValue):
        return render_number(value.value)
    if isinstance(value, BoolValue):
        return "true" if value.value else "false"
    if isinstance(value, StringValue):
        return _quote(value.value)
    if isinstance(value, ArrayValue):
        if not value.items:
            return "[]"
        return "[ " + ", ".join(render_value(item) for item in value.items) + " ]"
    if isinstance(value, ObjectValue):
        if not value.entries:
            return "{}"
        parts = []
        for key, item in value.entries.items():
            shown_key = key if PLAIN_KEY.match(key) else _quote(key)
            parts.append(f"{shown_key}: {render_value(item)}")
        return "{ " + ", ".join(parts) + " }"
    if isinstance(value, OpaqueValue):
        return value.description
    return value.kind


def render_console_arg(value: Value) -> str:
    """Render one console.log argument; top-level strings print unquoted."""
    if isinstance(value, StringValue):
        return value.value
    return render_value(value)
