"""reStructuredText parser for code-block directives and section titles."""

import re

from snipcheck.models import CodeBlock, Document, Section
from snipcheck.parsers.base import BaseParser
from snipcheck.utils.logging_config import get_logger

logger = get_logger()

DIRECTIVE = re.compile(r"^(\s*)\.\.\s+(?:code-block|code|sourcecode)::[ \t]*(\S*)(.*)$")
OPTION = re.compile(r"^\s+:([\w-]+):\s*(.*)$")
ADORNMENT = re.compile(r"^([=\-~^\"'`*+#:.])\1{2,}\s*$")


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())


class RstParser(BaseParser):
    """Parser for reStructuredText documents."""

    def supports_format(self, extension: str) -> bool:
        """Check if extension is .rst."""
        return extension.lower() in {".rst", ".rest"}

    def parse_text(self, text: str, source: str = "<stdin>") -> Document:
        lines = text.splitlines()
        sections = [Section()]
        levels: list[str] = []
        title = None

        i = 0
        while i < len(lines):
            line = lines[i]

            directive = DIRECTIVE.match(line)
            if directive:
                block, i = self._read_directive(lines, i, directive, sections[-1].title)
                sections[-1].blocks.append(block)
                continue

            # Title with underline (optionally with overline)
            if (
                line.strip()
                and not ADORNMENT.match(line)
                and i + 1 < len(lines)
                and ADORNMENT.match(lines[i + 1])
                and len(lines[i + 1].rstrip()) >= len(line.rstrip())
            ):
                char = lines[i + 1].strip()[0]
                overlined = i > 0 and ADORNMENT.match(lines[i - 1]) is not None
                style = f"{char}{'o' if overlined else ''}"
                if style not in levels:
                    levels.append(style)
                heading_text = line.strip()
                sections.append(Section(title=heading_text, level=levels.index(style) + 1))
                title = title or heading_text
                i += 2
                continue

            i += 1

        if not sections[0].blocks and len(sections) > 1:
            sections = sections[1:]

        return Document(source=source, title=title or source, sections=sections)

    def _read_directive(self, lines: list[str], start: int, match: re.Match, section: str):
        """Read a code directive starting at ``start``.

        Returns the block and the index of the first line after it.
        """
        base_indent = len(match.group(1))
        language = match.group(2).lower()
        flags: list[str] = []

        i = start + 1
        # Directive options
        while i < len(lines):
            option = OPTION.match(lines[i])
            if not option or _indent(lines[i]) <= base_indent:
                break
            flags.append(option.group(1).lower())
            flags.extend(w.lower() for w in option.group(2).split())
            i += 1

        # Body: everything indented deeper than the directive
        body: list[tuple[int, str]] = []
        while i < len(lines):
            line = lines[i]
            if line.strip() and _indent(line) <= base_indent:
                break
            body.append((i + 1, line))
            i += 1

        while body and not body[0][1].strip():
            body.pop(0)
        while body and not body[-1][1].strip():
            body.pop()

        if body:
            body_indent = min(_indent(line) for _, line in body if line.strip())
            code_lines = [line[body_indent:] for _, line in body]
            body_start = body[0][0]
            end_line = body[-1][0]
        else:
            code_lines = []
            body_start = start + 2
            end_line = start + 1

        block = CodeBlock(
            language=language,
            flags=flags,
            lines=code_lines,
            start_line=start + 1,
            end_line=end_line,
            body_start_line=body_start,
            section=section,
        )
        return block, i
