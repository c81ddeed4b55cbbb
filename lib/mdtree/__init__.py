"""
mdtree Markdown Parser v1.0

A small single-pass Markdown parser that builds a navigable document tree.

This module provides:
- Block-level parsing (metadata, headings, paragraphs, block quotes, lists,
  fenced and indented code, tables, thematic breaks)
- Inline parsing (emphasis, strong, strikethrough, code spans, links,
  images, autolinks, hard breaks, escapes)
- Named link references resolved after their definition, wherever it is
- Tree navigation helpers and iterative tree release

Usage:
    from lib.mdtree import parseMarkdown, collectAllText, releaseDocument

    document = parseMarkdown("# Hello World\\n\\nThis is **bold** text.")
    heading = document.firstChild
    print(collectAllText(heading))  # Hello World
    releaseDocument(document)
"""

from .block_parser import BlockParser, BlockState, TableState
from .inline_parser import InlineParser, InlineResult, LinkSyntax
from .lookahead import LineSource, isTableSeparator
from .nodes import (
    MDNode,
    NodeType,
    collectAllText,
    getFirstChild,
    getLastChild,
    getMetadata,
    getNextSibling,
    getParent,
    getPrevSibling,
    getText,
    getType,
    getUrl,
    getWhitespace,
    isBlock,
    releaseTree,
)
from .parser import DEFAULT_OPTIONS, MarkdownParser, parseMarkdown, releaseDocument
from .references import Reference, ReferenceTable

__version__ = "1.0.0"
__all__ = [
    "MarkdownParser",
    "parseMarkdown",
    "releaseDocument",
    "DEFAULT_OPTIONS",
    "BlockParser",
    "BlockState",
    "TableState",
    "InlineParser",
    "InlineResult",
    "LinkSyntax",
    "LineSource",
    "isTableSeparator",
    "Reference",
    "ReferenceTable",
    # Tree
    "MDNode",
    "NodeType",
    "releaseTree",
    "collectAllText",
    "getMetadata",
    "getType",
    "getText",
    "getUrl",
    "getWhitespace",
    "getParent",
    "getFirstChild",
    "getLastChild",
    "getPrevSibling",
    "getNextSibling",
    "isBlock",
]
