"""Markdown parser for fenced code blocks and headings."""

import re
from typing import Optional

from snipcheck.models import CodeBlock, Document, Section
from snipcheck.parsers.base import BaseParser
from snipcheck.utils.logging_config import get_logger

logger = get_logger()

ATX_HEADING = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?(?:[ \t]+#+)?[ \t]*$")
SETEXT_UNDERLINE = re.compile(r"^ {0,3}(=+|-+)[ \t]*$")
FENCE_OPEN = re.compile(r"^( {0,3})(`{3,}|~{3,})(.*)$")


def parse_info_string(info: str) -> tuple[str, list[str]]:
    """Split a fence info string into language and flags.

    ``js no-verify`` -> ("js", ["no-verify"]); ``{.javascript}`` -> ("javascript", []).
    """
    words = info.strip().split()
    if not words:
        return "", []

    language = words[0].strip("{}").lstrip(".").lower()
    flags = [w.strip("{}").lower() for w in words[1:]]
    return language, flags


class MarkdownParser(BaseParser):
    """Parser for Markdown documents (CommonMark fences, ATX and setext headings)."""

    def supports_format(self, extension: str) -> bool:
        """Check if extension is a markdown extension."""
        return extension.lower() in {".md", ".markdown", ".mdx"}

    def parse_text(self, text: str, source: str = "<stdin>") -> Document:
        lines = text.splitlines()
        sections = [Section()]
        title: Optional[str] = None

        fence: Optional[dict] = None
        prev_text: Optional[str] = None

        for line_no, line in enumerate(lines, start=1):
            if fence is not None:
                if self._closes(line, fence):
                    sections[-1].blocks.append(self._block(fence, end_line=line_no))
                    fence = None
                else:
                    fence["lines"].append(self._strip_indent(line, fence["indent"]))
                continue

            opening = FENCE_OPEN.match(line)
            if opening and not (opening.group(2)[0] == "`" and "`" in opening.group(3)):
                language, flags = parse_info_string(opening.group(3))
                fence = {
                    "indent": len(opening.group(1)),
                    "marker": opening.group(2),
                    "language": language,
                    "flags": flags,
                    "start_line": line_no,
                    "section": sections[-1].title,
                    "lines": [],
                }
                prev_text = None
                continue

            heading = ATX_HEADING.match(line)
            if heading:
                heading_text = (heading.group(2) or "").strip()
                sections.append(Section(title=heading_text, level=len(heading.group(1))))
                title = title or heading_text
                prev_text = None
                continue

            underline = SETEXT_UNDERLINE.match(line)
            if underline and prev_text:
                level = 1 if underline.group(1).startswith("=") else 2
                sections.append(Section(title=prev_text, level=level))
                title = title or prev_text
                prev_text = None
                continue

            prev_text = line.strip() or None

        if fence is not None:
            logger.warning(f"{source}:{fence['start_line']}: unclosed code fence")
            sections[-1].blocks.append(self._block(fence, end_line=max(len(lines), fence["start_line"])))

        # Drop an empty preamble
        if not sections[0].blocks and len(sections) > 1:
            sections = sections[1:]

        block_count = sum(len(s.blocks) for s in sections)
        logger.debug(f"Parsed {source}: {len(sections)} sections, {block_count} code blocks")

        return Document(source=source, title=title or source, sections=sections)

    def _closes(self, line: str, fence: dict) -> bool:
        marker = fence["marker"]
        pattern = rf"^ {{0,3}}{re.escape(marker[0])}{{{len(marker)},}}[ \t]*$"
        return re.match(pattern, line) is not None

    def _strip_indent(self, line: str, indent: int) -> str:
        # Remove at most as many leading spaces as the opening fence had
        removable = len(line) - len(line.lstrip(" "))
        return line[min(indent, removable):]

    def _block(self, fence: dict, end_line: int) -> CodeBlock:
        return CodeBlock(
            language=fence["language"],
            flags=fence["flags"],
            lines=fence["lines"],
            start_line=fence["start_line"],
            end_line=end_line,
            body_start_line=fence["start_line"] + 1,
            section=fence["section"],
        )
