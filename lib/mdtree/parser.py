"""
Main Markdown Parser for mdtree

This module provides the MarkdownParser class that feeds input lines through
the block parser (which in turn drives the inline parser and the reference
table) and returns the document tree.
"""

import logging
from typing import Any, Dict, Iterable, Optional, Union

from .block_parser import BlockParser
from .lookahead import LineSource
from .nodes import MDNode, releaseTree
from .references import ReferenceTable

logger = logging.getLogger(__name__)

DEFAULT_OPTIONS: Dict[str, Any] = {
    # Longer lines are parsed but reported as a known limitation
    "maxLineLength": 65536,
    "maxTableColumns": 256,
    "tabSize": 4,
}


class MarkdownParser:
    """
    Main Markdown parser that coordinates all parsing stages.

    One parse is a single pass over the input lines:
    1. Block Parsing: classify each line and build the block structure
    2. Inline Parsing: split the text of each line into inline nodes
    3. Reference Resolution: patch named links once their definition is
       seen, then give every undefined one its name as URL
    """

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        """
        Initialize the Markdown parser.

        Args:
            options: Optional parser configuration, see DEFAULT_OPTIONS

        Raises:
            ValueError: If an option has an invalid value
        """
        self.options: Dict[str, Any] = dict(DEFAULT_OPTIONS)
        if options:
            for key, value in options.items():
                self.setOption(key, value)

        self.parseStats: Dict[str, Any] = {}
        self._resetStats()

    def parse(self, source: Union[str, Iterable[str]]) -> MDNode:
        """
        Parse Markdown text into a document tree.

        Args:
            source: Whole Markdown text, or an iterable of lines such as an
                open text file

        Returns:
            Document root node, release it with releaseDocument()

        Raises:
            ValueError: If input is not text
        """
        if isinstance(source, (bytes, bytearray)):
            raise ValueError("Input must be a string or an iterable of strings")
        if not isinstance(source, str):
            try:
                source = iter(source)
            except TypeError as e:
                raise ValueError("Input must be a string or an iterable of strings") from e

        self._resetStats()

        references = ReferenceTable()
        blockParser = BlockParser(
            references,
            maxLineLength=self.options["maxLineLength"],
            maxTableColumns=self.options["maxTableColumns"],
            tabSize=self.options["tabSize"],
        )
        state = blockParser.parse(LineSource(source))
        document = state.root

        blocks = 0
        inlines = 0
        for node in document.walk():
            if node is document:
                continue
            if node.isBlock:
                blocks += 1
            else:
                inlines += 1

        self.parseStats = {
            "linesProcessed": state.lineNumber,
            "blocksParsed": blocks,
            "inlineElementsParsed": inlines,
            "referencesResolved": references.resolvedCount,
            "referencesFallback": references.fallbackCount,
            "warnings": list(state.warnings),
        }
        logger.debug(f"Parse finished: {self.parseStats}")
        return document

    def _resetStats(self) -> None:
        """Reset parsing statistics."""
        self.parseStats = {
            "linesProcessed": 0,
            "blocksParsed": 0,
            "inlineElementsParsed": 0,
            "referencesResolved": 0,
            "referencesFallback": 0,
            "warnings": [],
        }

    def getStats(self) -> Dict[str, Any]:
        """
        Get parsing statistics from the last parse operation.

        Returns:
            Dictionary containing parsing statistics
        """
        stats = self.parseStats.copy()
        stats["warnings"] = list(stats["warnings"])
        return stats

    def setOption(self, key: str, value: Any) -> None:
        """
        Set a parser option.

        Args:
            key: Option name
            value: Option value

        Raises:
            ValueError: If a numeric option is not a positive integer
        """
        if key in DEFAULT_OPTIONS:
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"Option '{key}' must be a positive integer, got {value!r}")
        else:
            logger.warning(f"Unknown parser option '{key}'")
        self.options[key] = value

    def getOption(self, key: str, default: Any = None) -> Any:
        """
        Get a parser option.

        Args:
            key: Option name
            default: Default value if option not found

        Returns:
            Option value or default
        """
        return self.options.get(key, default)


# Convenience functions


def parseMarkdown(source: Union[str, Iterable[str]], **options) -> MDNode:
    """
    Parse Markdown text into a document tree.

    Args:
        source: Markdown text or iterable of lines
        **options: Parser options

    Returns:
        Document root node
    """
    parser = MarkdownParser(options)
    return parser.parse(source)


def releaseDocument(document: Optional[MDNode]) -> int:
    """Release a parsed document, returns the number of released nodes."""
    return releaseTree(document)
