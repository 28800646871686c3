"""Documentation parsers."""

from .base import BaseParser, get_parser
from .markdown_parser import MarkdownParser
from .rst_parser import RstParser

__all__ = ["BaseParser", "get_parser", "MarkdownParser", "RstParser"]
