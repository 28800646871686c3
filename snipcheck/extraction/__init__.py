"""Snippet and annotation extraction."""

from .annotation_parser import LiteralSyntaxError, parse_annotation, parse_literal
from .snippet_extractor import SnippetExtractor, SnippetSequence, extract_document, iter_snippets

__all__ = [
    "LiteralSyntaxError",
    "parse_annotation",
    "parse_literal",
    "SnippetExtractor",
    "SnippetSequence",
    "extract_document",
    "iter_snippets",
]
