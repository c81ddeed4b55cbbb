"""
Pytest configuration and common fixtures for mdtree tests.

All fixtures follow camelCase naming convention.
"""

import pytest

from lib.mdtree import InlineParser, MarkdownParser, MDNode, NodeType, ReferenceTable


@pytest.fixture
def parser() -> MarkdownParser:
    """Provide a parser with default options."""
    return MarkdownParser()


@pytest.fixture
def referenceTable() -> ReferenceTable:
    """Provide an empty reference table."""
    return ReferenceTable()


@pytest.fixture
def inlineParser(referenceTable) -> InlineParser:
    """Provide an inline parser bound to the referenceTable fixture."""
    return InlineParser(referenceTable)


@pytest.fixture
def paragraph() -> MDNode:
    """
    Provide an empty paragraph attached to a fresh document.

    Returns:
        MDNode: PARAGRAPH node, its parent is the document
    """
    document = MDNode.createDocument()
    return document.addChild(NodeType.PARAGRAPH)
