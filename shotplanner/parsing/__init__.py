"""
Markdown shotlist parsing.

Regex-driven. Nothing here raises on malformed input.
"""

from .characters import parse_all_markdown, parse_character_establishment
from .ingest import MarkdownDocuments, classify_markdown_documents
from .shotlist import parse_shotlist_markdown

__all__ = [
    "parse_shotlist_markdown",
    "parse_character_establishment",
    "parse_all_markdown",
    "classify_markdown_documents",
    "MarkdownDocuments",
]
