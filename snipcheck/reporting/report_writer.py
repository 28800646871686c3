"""Machine-readable records and human-readable summaries of a run."""

import json
from typing import Any, Iterator

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from snipcheck.comparison.comparator import describe_actual, describe_expected
from snipcheck.models import ErrorResult, MismatchReport, RunReport


def build_record(report: MismatchReport) -> dict[str, Any]:
    """One JSON-serialisable record per verified snippet."""
    actual = report.actual
    return {
        "snippet": report.snippet.id,
        "section": report.snippet.section,
        "start_line": report.snippet.start_line,
        "end_line": report.snippet.end_line,
        "status": "pass" if report.passed else "fail",
        "expected": describe_expected(report.expected),
        "actual": describe_actual(actual),
        "fault": actual.fault if isinstance(actual, ErrorResult) else None,
        "reason": report.reason or None,
        "console": actual.console,
        "elapsed_ms": round(actual.elapsed * 1000, 2),
    }


def iter_records(run_report: RunReport) -> Iterator[str]:
    """Yield one JSON line per report, in document order."""
    for report in run_report.reports:
        yield json.dumps(build_record(report), ensure_ascii=False)


def print_summary(run_report: RunReport, console: Console, show_failures: bool = True) -> None:
    """Print counts and a table of failures."""
    if show_failures and run_report.failed:
        table = Table(title=f"Failed snippets in {escape(run_report.source)}")
        table.add_column("Lines", style="cyan", justify="right")
        table.add_column("Section", style="blue")
        table.add_column("Expected", style="green")
        table.add_column("Actual", style="red")
        table.add_column("Reason", style="white")

        for report in run_report.reports:
            if report.passed:
                continue
            snippet = report.snippet
            table.add_row(
                f"{snippet.start_line}-{snippet.end_line}",
                escape(snippet.section or "-"),
                escape(describe_expected(report.expected)),
                escape(describe_actual(report.actual)),
                escape(report.reason),
            )

        console.print(table)

    console.print(
        f"\n[bold]{escape(run_report.source)}[/bold]: "
        f"[green]{run_report.passed} passed[/green], "
        f"[red]{run_report.failed} failed[/red], "
        f"[yellow]{run_report.skipped} skipped[/yellow]"
        + (f", [magenta]{run_report.cancelled} cancelled[/magenta]" if run_report.cancelled else "")
    )

    if run_report.partial:
        console.print("[yellow]Run was cancelled; results are partial.[/yellow]")
    elif run_report.total == 0:
        console.print("[dim]No annotated snippets found.[/dim]")
