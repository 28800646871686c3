"""Tests for structural comparison and value rendering."""

import math

import pytest

from snipcheck.comparison.comparator import compare, describe_actual, describe_expected
from snipcheck.comparison.values import render_number, render_value, replace_surrogates, values_equal
from snipcheck.extraction.annotation_parser import parse_literal
from snipcheck.models import (
    ArrayValue,
    ErrorResult,
    NumberValue,
    OpaqueValue,
    StringValue,
    ValueAnnotation,
    ValueResult,
)

REPRESENTABLE = [
    "null",
    "undefined",
    "true",
    "0",
    "-0",
    "NaN",
    "Infinity",
    "3.25",
    "'text'",
    "[]",
    "{}",
    "[1, [2, [3]], { a: null }]",
    "{ name: 'John Doe', age: 42, tags: ['a', 'b'] }",
    "[Function: greet]",
]


class TestValuesEqual:
    """Tests for deep equality."""

    @pytest.mark.parametrize("text", REPRESENTABLE)
    def test_reflexive(self, text):
        """Test every value equals itself."""
        value = parse_literal(text)

        assert values_equal(value, value)
        assert values_equal(value, parse_literal(text))

    def test_object_key_order_irrelevant(self):
        assert values_equal(parse_literal("{ a: 1, b: 2 }"), parse_literal("{ b: 2, a: 1 }"))

    def test_object_key_sets_must_match(self):
        """Test that extra or missing keys fail."""
        assert not values_equal(parse_literal("{ a: 1 }"), parse_literal("{ a: 1, b: 2 }"))
        assert not values_equal(parse_literal("{ a: 1, b: undefined }"), parse_literal("{ a: 1 }"))

    def test_array_order_matters(self):
        assert not values_equal(parse_literal("[1, 2]"), parse_literal("[2, 1]"))
        assert not values_equal(parse_literal("[1]"), parse_literal("[1, 1]"))

    def test_no_type_coercion(self):
        """Test that '1' and 1, null and undefined differ."""
        assert not values_equal(parse_literal("'1'"), parse_literal("1"))
        assert not values_equal(parse_literal("null"), parse_literal("undefined"))
        assert not values_equal(parse_literal("0"), parse_literal("false"))

    def test_numbers(self):
        assert values_equal(NumberValue(value=math.nan), NumberValue(value=math.nan))
        assert values_equal(NumberValue(value=0.0), NumberValue(value=-0.0))
        assert not values_equal(NumberValue(value=0.1 + 0.2), NumberValue(value=0.3))


class TestRendering:
    """Tests for Node-style display."""

    def test_render_object(self):
        value = parse_literal("{ name: 'John Doe', 'my-key': [1, 2], empty: {} }")

        assert render_value(value) == "{ name: 'John Doe', 'my-key': [ 1, 2 ], empty: {} }"

    def test_render_numbers(self):
        assert render_number(42.0) == "42"
        assert render_number(-0.0) == "-0"
        assert render_number(1.5) == "1.5"
        assert render_number(1e-7) == "1e-7"
        assert render_number(math.inf) == "Infinity"
        assert render_number(math.nan) == "NaN"

    def test_render_numbers_like_javascript(self):
        """Test small and large magnitudes switch notation where JavaScript does."""
        assert render_number(0.000001) == "0.000001"
        assert render_number(0.00001) == "0.00001"
        assert render_number(1.5e-7) == "1.5e-7"
        assert render_number(123.456) == "123.456"
        assert render_number(-0.5) == "-0.5"
        assert render_number(1e21) == "1e+21"
        assert render_number(2.5e22) == "2.5e+22"

    def test_render_string_quotes(self):
        assert render_value(StringValue(value="it's")) == "'it\\'s'"

    def test_lone_surrogates(self):
        """Test unpaired surrogates are escaped in display and replaced in plain text."""
        assert render_value(StringValue(value="a\ud800")) == "'a\\uD800'"
        assert replace_surrogates("a\ud800b") == "a\ufffdb"
        assert replace_surrogates("caf\u00e9 \U0001f600") == "caf\u00e9 \U0001f600"


class TestCompare:
    """Tests for producing mismatch reports."""

    def test_value_pass(self, make_snippet):
        snippet = make_snippet("[1, 2, 3].map(n => n * 2)", " => [2, 4, 6]")
        result = ValueResult(value=parse_literal("[2, 4, 6]"))

        report = compare(snippet, result)

        assert report.passed
        assert report.reason == ""
        assert report.expected == snippet.annotation

    def test_value_mismatch(self, make_snippet):
        snippet = make_snippet("x", " => { a: 1 }")
        result = ValueResult(value=parse_literal("{ a: 2 }"))

        report = compare(snippet, result)

        assert not report.passed
        assert "expected { a: 1 }, got { a: 2 }" in report.reason

    @pytest.mark.parametrize("text", REPRESENTABLE)
    def test_compare_reflexive(self, make_snippet, text):
        """Test compare(x, x) passes for every representable value."""
        snippet = make_snippet("x", f" => {text}")
        report = compare(snippet, ValueResult(value=parse_literal(text)))

        assert report.passed

    def test_bindings(self, make_snippet):
        snippet = make_snippet("const [a, b = 3] = [1]", " => a = 1, b = 3")

        passing = ValueResult(value=parse_literal("{ a: 1, b: 3 }"))
        failing = ValueResult(value=parse_literal("{ a: 1, b: undefined }"))

        assert compare(snippet, passing).passed
        report = compare(snippet, failing)
        assert not report.passed
        assert "b: expected 3, got undefined" in report.reason

    def test_runtime_fault_fails_value(self, make_snippet):
        snippet = make_snippet("user = {}", " => {}")
        result = ErrorResult(
            fault="runtime_fault",
            kind="TypeError",
            message="Assignment to constant variable.",
        )

        report = compare(snippet, result)

        assert not report.passed
        assert report.reason == "RuntimeFault: TypeError: Assignment to constant variable."

    def test_expected_error(self, make_snippet):
        snippet = make_snippet("user = {}", " throws TypeError: Assignment to constant variable.")
        result = ErrorResult(
            fault="runtime_fault",
            kind="TypeError",
            message="Assignment to constant variable.",
        )

        assert compare(snippet, result).passed

    def test_expected_error_wrong_kind_or_message(self, make_snippet):
        snippet = make_snippet("x", " throws TypeError: boom")

        wrong_kind = ErrorResult(fault="runtime_fault", kind="RangeError", message="boom")
        wrong_message = ErrorResult(fault="runtime_fault", kind="TypeError", message="bang")
        no_error = ValueResult(value=NumberValue(value=1))

        assert not compare(snippet, wrong_kind).passed
        assert not compare(snippet, wrong_message).passed
        assert "expected TypeError to be thrown" in compare(snippet, no_error).reason

    def test_timeout_always_fails(self, make_snippet):
        snippet = make_snippet("while (true) {}", " throws Timeout")
        result = ErrorResult(fault="timeout", kind="Timeout", message="exceeded 2s")

        report = compare(snippet, result)

        assert not report.passed
        assert report.reason.startswith("timed out")

    def test_logs(self, make_snippet):
        snippet = make_snippet("console.log(1, 2)", " logs: 1 2")

        assert compare(snippet, ValueResult(value=parse_literal("undefined"), console=["0", "1 2"])).passed
        assert not compare(snippet, ValueResult(value=parse_literal("undefined"))).passed

    def test_descriptions(self, make_snippet):
        snippet = make_snippet("x", " => a = [1], b = 'x'")

        assert describe_expected(snippet.annotation) == "a = [ 1 ], b = 'x'"
        assert describe_actual(ValueResult(value=OpaqueValue(description="[Circular]"))) == "[Circular]"
        assert describe_actual(ErrorResult(fault="timeout", kind="Timeout")) == "Timeout"

    def test_annotation_object_unchanged(self, make_snippet):
        """Test comparison does not mutate the snippet."""
        snippet = make_snippet("x", " => [1]")
        before = snippet.model_dump()

        compare(snippet, ValueResult(value=ArrayValue(items=[NumberValue(value=2)])))

        assert snippet.model_dump() == before
        assert isinstance(snippet.annotation, ValueAnnotation)
        assert snippet.annotation.expected == ArrayValue(items=[NumberValue(value=1)])
