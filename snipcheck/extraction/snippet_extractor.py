"""Snippet extraction from parsed documents."""

from typing import Iterable, Iterator, Optional

from snipcheck.config import DEFAULT_LANGUAGES
from snipcheck.exceptions import MalformedAnnotation
from snipcheck.extraction.annotation_parser import parse_annotation, split_trailing_comment
from snipcheck.models import CodeBlock, Document, Snippet
from snipcheck.parsers.base import BaseParser
from snipcheck.utils.logging_config import get_logger

logger = get_logger()

SKIP_FLAGS = {"no-verify", "noverify", "skip", "snipcheck-skip"}


class SnippetExtractor:
    """Turns code blocks into snippets.

    Only blocks in one of ``languages`` are considered. Of those, a block is
    a snippet when its last non-blank line carries an annotation comment;
    the rest are illustrative and reported as skipped.
    """

    def __init__(self, languages: Iterable[str] = DEFAULT_LANGUAGES):
        self.languages = {lang.lower() for lang in languages}

    def accepts(self, block: CodeBlock) -> bool:
        """Check if the block's language is verified at all."""
        return block.language in self.languages

    def extract(self, block: CodeBlock, source: str) -> Optional[Snippet]:
        """Build a snippet from a block.

        Returns:
            Snippet, or None when the block is illustrative only

        Raises:
            MalformedAnnotation: If the annotation comment cannot be parsed
        """
        if SKIP_FLAGS.intersection(block.flags):
            return None

        last = len(block.lines) - 1
        while last >= 0 and not block.lines[last].strip():
            last -= 1
        if last < 0:
            return None

        code_part, comment = split_trailing_comment(block.lines[last])
        if comment is None:
            return None

        annotation_line = block.body_start_line + last
        try:
            annotation = parse_annotation(comment)
        except MalformedAnnotation as e:
            raise MalformedAnnotation(e.reason, source=source, line=annotation_line) from e

        if annotation is None:
            return None

        code_lines = block.lines[:last]
        if code_part.strip():
            code_lines.append(code_part)

        return Snippet(
            id=f"{source}:{block.start_line}",
            source=source,
            code="\n".join(code_lines).rstrip(),
            annotation=annotation,
            language=block.language,
            start_line=block.start_line,
            end_line=block.end_line,
            annotation_line=annotation_line,
            section=block.section,
        )

    def iter_blocks(self, document: Document) -> Iterator[tuple[CodeBlock, Optional[Snippet]]]:
        """Yield each verifiable-language block with its snippet (or None)."""
        for block in document.iter_blocks():
            if not self.accepts(block):
                continue
            yield block, self.extract(block, document.source)

    def iter_snippets(self, document: Document) -> Iterator[Snippet]:
        """Lazily yield snippets in document order."""
        for _, snippet in self.iter_blocks(document):
            if snippet is not None:
                yield snippet


class SnippetSequence:
    """Restartable, lazy sequence of snippets over raw document text.

    Each iteration re-parses the text, so iterating twice yields identical
    snippets.
    """

    def __init__(
        self,
        text: str,
        source: str = "<stdin>",
        parser: Optional[BaseParser] = None,
        languages: Iterable[str] = DEFAULT_LANGUAGES,
    ):
        from snipcheck.parsers.markdown_parser import MarkdownParser

        self.text = text
        self.source = source
        self.parser = parser or MarkdownParser()
        self.extractor = SnippetExtractor(languages)

    def document(self) -> Document:
        return self.parser.parse_text(self.text, source=self.source)

    def __iter__(self) -> Iterator[Snippet]:
        return self.extractor.iter_snippets(self.document())


def iter_snippets(
    text: str,
    source: str = "<stdin>",
    parser: Optional[BaseParser] = None,
    languages: Iterable[str] = DEFAULT_LANGUAGES,
) -> Iterator[Snippet]:
    """Lazily extract snippets from raw document text."""
    return iter(SnippetSequence(text, source=source, parser=parser, languages=languages))


def extract_document(
    document: Document,
    languages: Iterable[str] = DEFAULT_LANGUAGES,
) -> tuple[list[Snippet], int]:
    """Eagerly extract every snippet of a document.

    Returns:
        (snippets, skipped) where skipped counts unannotated blocks

    Raises:
        MalformedAnnotation: On the first unparseable annotation
    """
    extractor = SnippetExtractor(languages)
    snippets: list[Snippet] = []
    skipped = 0

    for block, snippet in extractor.iter_blocks(document):
        if snippet is None:
            skipped += 1
            logger.debug(f"{document.source}:{block.start_line}: no annotation, skipping")
        else:
            snippets.append(snippet)

    logger.info(f"Extracted {len(snippets)} snippets from {document.source} ({skipped} skipped)")
    return snippets, skipped
