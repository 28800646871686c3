"""CLI application using Typer."""

import sys
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from snipcheck.comparison.comparator import describe_expected
from snipcheck.config import VerifyOptions, get_config
from snipcheck.exceptions import MalformedAnnotation, SandboxError
from snipcheck.extraction.snippet_extractor import extract_document
from snipcheck.models import Document
from snipcheck.parsers.base import get_parser
from snipcheck.parsers.markdown_parser import MarkdownParser
from snipcheck.utils.logging_config import get_logger, setup_logging

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_MALFORMED = 2

app = typer.Typer(
    name="snipcheck",
    help="Verify the expected-output annotations of documentation code examples",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)
logger = get_logger()


def load_document(path: Optional[Path]) -> Document:
    """Parse a document file, or markdown from stdin when path is None or '-'."""
    if path is None or str(path) == "-":
        return MarkdownParser().parse_text(sys.stdin.read(), source="<stdin>")

    parser = get_parser(path)
    return parser.parse(path)


def _fail_input(message: str) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(EXIT_MALFORMED)


PATH_ARGUMENT = typer.Argument(
    None,
    help="Document to check (.md, .markdown, .mdx, .rst); '-' or omitted reads markdown from stdin",
    dir_okay=False,
)
LANG_OPTION = typer.Option(
    None,
    "--lang",
    "-l",
    help="Fence language to verify (repeatable, default: js, javascript, mjs, cjs, es6)",
)


@app.command()
def verify(
    path: Optional[Path] = PATH_ARGUMENT,
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Per-snippet execution bound in seconds (env: SNIPCHECK_TIMEOUT, default 2)",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-w",
        help="Number of snippets evaluated in parallel (default: CPU count)",
    ),
    lang: Optional[List[str]] = LANG_OPTION,
    max_memory: Optional[int] = typer.Option(
        None,
        "--max-memory",
        help="Heap limit per sandbox in bytes",
    ),
    summary: bool = typer.Option(
        True,
        "--summary/--no-summary",
        help="Print a human-readable summary after the records",
    ),
    progress: bool = typer.Option(
        False,
        "--progress/--no-progress",
        help="Show a progress bar on stderr",
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON"),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also write logs to this file",
        dir_okay=False,
    ),
):
    """Evaluate annotated snippets and report pass/fail per snippet.

    Writes one JSON record per verified snippet to stdout, followed by a
    summary. Exit code is 0 when everything passes, 1 when a snippet fails
    and 2 when the document cannot be read or has a malformed annotation.
    """
    from snipcheck.pipeline.verify import Verifier
    from snipcheck.reporting.report_writer import iter_records, print_summary

    setup_logging(log_level, json_logs, log_file)

    try:
        options = VerifyOptions.from_config(
            get_config(),
            timeout=timeout,
            workers=workers,
            languages=tuple(lang) if lang else None,
            max_memory=max_memory,
            progress=progress,
        )
    except ValidationError as e:
        _fail_input(f"invalid options: {e}")

    try:
        document = load_document(path)
    except (FileNotFoundError, ValueError, UnicodeDecodeError) as e:
        _fail_input(str(e))

    verifier = Verifier(options)
    try:
        run_report = verifier.verify_document(document)
    except MalformedAnnotation as e:
        _fail_input(str(e))
    except SandboxError as e:
        logger.error(f"Sandbox failure while verifying {document.source}: {e}", exc_info=True)
        err_console.print(f"[red]Sandbox error:[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_FAILED)

    for record in iter_records(run_report):
        typer.echo(record)

    if summary:
        print_summary(run_report, console)

    if run_report.ok and not run_report.partial:
        raise typer.Exit(EXIT_OK)
    raise typer.Exit(EXIT_FAILED)


@app.command(name="list")
def list_snippets(
    path: Optional[Path] = PATH_ARGUMENT,
    lang: Optional[List[str]] = LANG_OPTION,
):
    """List annotated snippets without evaluating them."""
    languages = tuple(lang) if lang else VerifyOptions().languages

    try:
        document = load_document(path)
        snippets, skipped = extract_document(document, languages)
    except (FileNotFoundError, ValueError, UnicodeDecodeError, MalformedAnnotation) as e:
        _fail_input(str(e))

    if not snippets:
        console.print(f"[yellow]No annotated snippets in {escape(document.source)}.[/yellow]")
        console.print(f"Skipped blocks: {skipped}")
        return

    table = Table(title=f"Snippets in {escape(document.title)}")
    table.add_column("#", style="cyan", justify="right", width=4)
    table.add_column("Lines", style="cyan", justify="right")
    table.add_column("Section", style="blue")
    table.add_column("Kind", style="yellow")
    table.add_column("Expected", style="green")

    for i, snippet in enumerate(snippets, 1):
        table.add_row(
            str(i),
            f"{snippet.start_line}-{snippet.end_line}",
            escape(snippet.section or "-"),
            snippet.annotation.kind,
            escape(describe_expected(snippet.annotation)),
        )

    console.print(table)
    console.print(f"\n[dim]{len(snippets)} annotated, {skipped} skipped[/dim]")


if __name__ == "__main__":
    app()
