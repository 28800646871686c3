"""Verification pipeline: extract, evaluate in a worker pool, compare, join."""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from snipcheck.comparison.comparator import compare
from snipcheck.config import VerifyOptions
from snipcheck.evaluation.evaluator import Evaluator
from snipcheck.extraction.snippet_extractor import extract_document
from snipcheck.models import Document, MismatchReport, RunReport, Snippet
from snipcheck.parsers.base import BaseParser, get_parser
from snipcheck.parsers.markdown_parser import MarkdownParser
from snipcheck.utils.logging_config import get_logger

logger = get_logger()


class CancellationToken:
    """Run-level cancellation flag shared with the worker pool.

    Cancelling stops snippets that have not started yet; running snippets
    finish (each is bounded by its own timeout).
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class Verifier:
    """Evaluates snippets concurrently and assembles the run report."""

    def __init__(
        self,
        options: Optional[VerifyOptions] = None,
        evaluator: Optional[Evaluator] = None,
    ):
        self.options = options or VerifyOptions()
        self._owns_evaluator = evaluator is None
        self.evaluator = evaluator or Evaluator(
            timeout=self.options.timeout,
            max_memory=self.options.max_memory,
            workers=self.options.pool_size,
        )

    def _verify_one(self, snippet: Snippet, token: CancellationToken) -> Optional[MismatchReport]:
        if token.cancelled:
            return None
        result = self.evaluator.evaluate(snippet)
        return compare(snippet, result)

    def verify_snippets(
        self,
        snippets: list[Snippet],
        token: Optional[CancellationToken] = None,
    ) -> tuple[list[MismatchReport], int]:
        """Verify snippets on the worker pool.

        Args:
            snippets: Snippets in document order
            token: Cancellation token (a fresh one if omitted)

        Returns:
            (reports in document order, number of cancelled snippets)
        """
        token = token or CancellationToken()
        results: dict[int, MismatchReport] = {}
        futures: dict[Future, int] = {}

        if not snippets:
            return [], 0

        pool_size = min(self.options.pool_size, len(snippets))
        logger.info(f"Verifying {len(snippets)} snippets with {pool_size} workers")

        executor = ThreadPoolExecutor(max_workers=pool_size, thread_name_prefix="snipcheck")
        try:
            for index, snippet in enumerate(snippets):
                futures[executor.submit(self._verify_one, snippet, token)] = index

            with tqdm(
                total=len(futures),
                desc="Verifying snippets",
                unit="snippet",
                disable=not self.options.progress,
            ) as bar:
                for future in as_completed(futures):
                    report = future.result()
                    if report is not None:
                        results[futures[future]] = report
                    bar.update(1)

        except KeyboardInterrupt:
            logger.warning("Interrupted, cancelling pending snippets")
            token.cancel()

        finally:
            executor.shutdown(wait=True, cancel_futures=True)
            if self._owns_evaluator:
                self.evaluator.close()

        # Keep whatever finished while shutting down
        for future, index in futures.items():
            if index in results or not future.done() or future.cancelled():
                continue
            if future.exception() is None and future.result() is not None:
                results[index] = future.result()

        cancelled = len(snippets) - len(results)
        if cancelled:
            logger.warning(f"{cancelled} snippets were cancelled before evaluation")

        return [results[i] for i in sorted(results)], cancelled

    def verify_document(
        self,
        document: Document,
        token: Optional[CancellationToken] = None,
    ) -> RunReport:
        """Extract and verify every snippet of a document.

        Raises:
            MalformedAnnotation: If the document has an unparseable annotation
        """
        snippets, skipped = extract_document(document, self.options.languages)
        reports, cancelled = self.verify_snippets(snippets, token)

        report = RunReport(
            source=document.source,
            reports=reports,
            skipped=skipped,
            cancelled=cancelled,
            partial=cancelled > 0,
        )
        logger.info(
            f"Verification of {document.source} complete: {report.passed} passed, "
            f"{report.failed} failed, {report.skipped} skipped, {report.cancelled} cancelled"
        )
        return report

    def verify_text(
        self,
        text: str,
        source: str = "<stdin>",
        parser: Optional[BaseParser] = None,
        token: Optional[CancellationToken] = None,
    ) -> RunReport:
        """Verify raw document text (markdown unless another parser is given)."""
        document = (parser or MarkdownParser()).parse_text(text, source=source)
        return self.verify_document(document, token)

    def verify_file(
        self,
        file_path: Path,
        token: Optional[CancellationToken] = None,
    ) -> RunReport:
        """Verify a document file, choosing the parser by extension.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If no parser supports the file type
        """
        parser = get_parser(file_path)
        document = parser.parse(file_path)
        return self.verify_document(document, token)
