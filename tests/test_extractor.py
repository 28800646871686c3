"""Tests for snippet extraction."""

import pytest

from snipcheck.exceptions import MalformedAnnotation
from snipcheck.extraction.snippet_extractor import (
    SnippetExtractor,
    SnippetSequence,
    extract_document,
    iter_snippets,
)
from snipcheck.models import BindingsAnnotation, ErrorAnnotation, ValueAnnotation
from snipcheck.parsers.markdown_parser import MarkdownParser
from snipcheck.parsers.rst_parser import RstParser


def test_extract_sample(sample_markdown):
    """Test annotated blocks become snippets, others are skipped."""
    document = MarkdownParser().parse_text(sample_markdown, source="doc.md")
    snippets, skipped = extract_document(document)

    assert len(snippets) == 4
    assert skipped == 1  # the illustrative js block; python is ignored

    first = snippets[0]
    assert first.id == "doc.md:7"
    assert first.section == "Destructuring"
    assert first.position == (7, 9)
    assert first.annotation_line == 8
    assert first.code == "const [a, b = 3] = [1]"
    assert isinstance(first.annotation, BindingsAnnotation)

    assert isinstance(snippets[1].annotation, ValueAnnotation)
    assert snippets[1].code.endswith("rest")
    assert snippets[2].language == "javascript"
    assert snippets[3].section == "Constants"


def test_sequence_is_lazy_and_restartable(sample_markdown):
    """Test that iterating twice yields identical snippets."""
    sequence = SnippetSequence(sample_markdown, source="doc.md")

    first = list(sequence)
    second = list(sequence)

    assert first == second
    assert len(first) == 4


def test_iter_snippets_is_a_generator(sample_markdown):
    """Test the functional entry point."""
    snippets = iter_snippets(sample_markdown)

    assert next(snippets).section == "Destructuring"


def test_whole_line_annotation_is_removed():
    """Test an annotation on its own line after the code."""
    text = "```js\nconst a = [1, 2];\n[...a, 3]\n// => [1, 2, 3]\n```\n"
    snippet = next(iter_snippets(text))

    assert snippet.code == "const a = [1, 2];\n[...a, 3]"
    assert snippet.annotation_line == 4


def test_trailing_blank_lines_ignored():
    """Test blank lines after the annotation."""
    text = "```js\n1 + 1 // => 2\n\n\n```\n"
    snippet = next(iter_snippets(text))

    assert snippet.code == "1 + 1"


def test_annotation_must_be_last():
    """Test that an annotation followed by more code is not used."""
    text = "```js\n1 + 1 // => 2\nconst x = 3;\n```\n"

    assert list(iter_snippets(text)) == []


def test_skip_flag():
    """Test blocks flagged no-verify."""
    text = "```js no-verify\nwhile (true) {} // => 1\n```\n"
    document = MarkdownParser().parse_text(text)
    snippets, skipped = extract_document(document)

    assert snippets == []
    assert skipped == 1


def test_language_filter():
    """Test custom language sets."""
    text = "```ts\nconst n: number = 1;\nn // => 1\n```\n"

    assert list(iter_snippets(text)) == []
    assert len(list(iter_snippets(text, languages=["ts"]))) == 1


def test_error_annotation():
    """Test throws annotations."""
    text = "```js\nconst x = 1;\nx = 2 // throws TypeError\n```\n"
    snippet = next(iter_snippets(text))

    assert isinstance(snippet.annotation, ErrorAnnotation)
    assert snippet.code == "const x = 1;\nx = 2"


def test_malformed_annotation_reports_location():
    """Test that malformed annotations carry source and line."""
    text = "# Title\n\n```js\nconst o = {};\no // => { a: }\n```\n"

    with pytest.raises(MalformedAnnotation) as exc_info:
        list(iter_snippets(text, source="bad.md"))

    assert exc_info.value.line == 5
    assert exc_info.value.source == "bad.md"
    assert "bad.md:5" in str(exc_info.value)


def test_zero_snippets():
    """Test a document with no code at all."""
    document = MarkdownParser().parse_text("# Nothing here\n\nJust prose.\n")

    assert extract_document(document) == ([], 0)


def test_rst_snippets():
    """Test extraction through the reStructuredText parser."""
    text = "Spread\n======\n\n.. code-block:: js\n\n   Math.max(...[1, 5, 3]) // => 5\n"
    snippets = list(iter_snippets(text, source="doc.rst", parser=RstParser()))

    assert len(snippets) == 1
    assert snippets[0].code == "Math.max(...[1, 5, 3])"
    assert snippets[0].annotation_line == 6


def test_extractor_accepts():
    """Test language matching is case-insensitive on configuration."""
    extractor = SnippetExtractor(["JS"])
    document = MarkdownParser().parse_text("```js\n1 // => 1\n```\n")

    assert extractor.accepts(next(document.iter_blocks()))


def test_regex_literal_in_annotated_line():
    """Test a regex containing '//' does not hide the annotation."""
    text = "```js\n'a/b'.replace(/\\//g, '-') // => 'a-b'\n```\n"
    document = MarkdownParser().parse_text(text)
    snippets, skipped = extract_document(document)

    assert skipped == 0
    assert snippets[0].code == "'a/b'.replace(/\\//g, '-')"
