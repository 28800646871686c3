"""Result comparison."""

from .comparator import compare, describe_actual, describe_expected
from .values import render_value, values_equal

__all__ = [
    "compare",
    "describe_actual",
    "describe_expected",
    "render_value",
    "values_equal",
]
