"""Comparison of evaluation results against expected-output annotations."""

from snipcheck.comparison.values import render_value, values_equal
from snipcheck.models import (
    Annotation,
    BindingsAnnotation,
    ErrorAnnotation,
    ErrorResult,
    EvaluationResult,
    LogsAnnotation,
    MismatchReport,
    ObjectValue,
    Snippet,
    ValueAnnotation,
    ValueResult,
)


def describe_expected(annotation: Annotation) -> str:
    """Short display form of what the annotation expects."""
    if isinstance(annotation, ValueAnnotation):
        return render_value(annotation.expected)
    if isinstance(annotation, BindingsAnnotation):
        return ", ".join(f"{name} = {render_value(v)}" for name, v in annotation.bindings.items())
    if isinstance(annotation, ErrorAnnotation):
        if annotation.message:
            return f"throws {annotation.error_kind}: {annotation.message}"
        return f"throws {annotation.error_kind}"
    return f"logs: {annotation.text}"


def describe_actual(result: EvaluationResult) -> str:
    """Short display form of an evaluation result."""
    if isinstance(result, ErrorResult):
        if result.fault == "timeout":
            return f"Timeout: {result.message}" if result.message else "Timeout"
        return f"{result.kind}: {result.message}" if result.message else result.kind
    return render_value(result.value)


def _check_value(annotation: ValueAnnotation, result: ValueResult) -> tuple[bool, str]:
    if values_equal(annotation.expected, result.value):
        return True, ""
    return False, f"expected {render_value(annotation.expected)}, got {render_value(result.value)}"


def _check_bindings(annotation: BindingsAnnotation, result: ValueResult) -> tuple[bool, str]:
    actual = result.value
    if not isinstance(actual, ObjectValue):
        return False, f"could not read bindings, got {render_value(actual)}"

    wrong = [
        name
        for name, expected in annotation.bindings.items()
        if name not in actual.entries or not values_equal(expected, actual.entries[name])
    ]
    if not wrong:
        return True, ""

    details = ", ".join(
        f"{name}: expected {render_value(annotation.bindings[name])}, "
        f"got {render_value(actual.entries[name]) if name in actual.entries else 'nothing'}"
        for name in wrong
    )
    return False, f"binding mismatch ({details})"


def _check_error(annotation: ErrorAnnotation, result: EvaluationResult) -> tuple[bool, str]:
    if isinstance(result, ValueResult):
        return False, (
            f"expected {annotation.error_kind} to be thrown, "
            f"completed with {render_value(result.value)}"
        )

    if result.kind != annotation.error_kind:
        return False, f"expected {annotation.error_kind}, got {describe_actual(result)}"

    if annotation.message is not None and annotation.message.strip() != result.message.strip():
        return False, (
            f"expected message {annotation.message.strip()!r}, got {result.message.strip()!r}"
        )
    return True, ""


def _check_logs(annotation: LogsAnnotation, result: ValueResult) -> tuple[bool, str]:
    if not result.console:
        return False, f"expected console output {annotation.text!r}, nothing was logged"

    last = result.console[-1].strip()
    if last == annotation.text.strip():
        return True, ""
    return False, f"expected console output {annotation.text!r}, got {last!r}"


def compare(snippet: Snippet, result: EvaluationResult) -> MismatchReport:
    """Compare one evaluation result with the snippet's annotation.

    Never raises; every outcome is a pass or a fail.
    """
    annotation = snippet.annotation

    if isinstance(result, ErrorResult) and result.fault == "timeout":
        passed, reason = False, f"timed out: {result.message}" if result.message else "timed out"
    elif isinstance(annotation, ErrorAnnotation):
        passed, reason = _check_error(annotation, result)
    elif isinstance(result, ErrorResult):
        passed, reason = False, f"RuntimeFault: {describe_actual(result)}"
    elif isinstance(annotation, ValueAnnotation):
        passed, reason = _check_value(annotation, result)
    elif isinstance(annotation, BindingsAnnotation):
        passed, reason = _check_bindings(annotation, result)
    else:
        passed, reason = _check_logs(annotation, result)

    return MismatchReport(
        snippet=snippet,
        expected=annotation,
        actual=result,
        passed=passed,
        reason=reason,
    )
