"""
Test utilities for mdtree tests.
"""

from typing import List, Optional

from lib.mdtree import MDNode, NodeType


def childTypes(node: Optional[MDNode]) -> List[NodeType]:
    """Get types of the direct children of a node."""
    return [child.type for child in node.children] if node is not None else []


def childTexts(node: Optional[MDNode]) -> List[Optional[str]]:
    """Get texts of the direct children of a node."""
    return [child.text for child in node.children] if node is not None else []
