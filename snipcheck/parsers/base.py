"""Base parser interface for documentation sources."""

from abc import ABC, abstractmethod
from pathlib import Path

from snipcheck.models import Document


class BaseParser(ABC):
    """Abstract base class for documentation parsers."""

    @abstractmethod
    def parse_text(self, text: str, source: str = "<stdin>") -> Document:
        """Parse raw document text into sections and code blocks.

        Args:
            text: Full document text
            source: Name used in snippet ids and error messages

        Returns:
            Document with sections in reading order
        """
        pass

    @abstractmethod
    def supports_format(self, extension: str) -> bool:
        """Check if this parser supports the given file extension.

        Args:
            extension: File extension (e.g., '.md', '.rst')

        Returns:
            True if supported, False otherwise
        """
        pass

    def parse(self, file_path: Path) -> Document:
        """Read and parse a document file.

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        text = file_path.read_text(encoding="utf-8")
        return self.parse_text(text, source=str(file_path))


def get_parser(file_path: Path) -> BaseParser:
    """Get appropriate parser for a file based on extension.

    Args:
        file_path: Path to the file

    Returns:
        Parser instance for the file type

    Raises:
        ValueError: If no parser supports the file type
    """
    from snipcheck.parsers.markdown_parser import MarkdownParser
    from snipcheck.parsers.rst_parser import RstParser

    extension = file_path.suffix.lower()

    parsers = [MarkdownParser(), RstParser()]

    for parser in parsers:
        if parser.supports_format(extension):
            return parser

    raise ValueError(f"No parser available for file type: {extension or file_path.name}")
