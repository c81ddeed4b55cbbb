"""
Document tree nodes for the mdtree parser.

This module defines the node type ordering and the node class the whole
parser builds on. A parsed document is a tree of MDNode objects rooted at a
single DOCUMENT node. Nodes are created through MDNode.addChild(), which
appends them as the new last child of their parent; MDNode.insertChild() is
only used to put back the delimiter of an unterminated inline span.
"""

import logging
from enum import Enum
from typing import Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)


class NodeType(Enum):
    """Enumeration of all node types, block types first."""

    NONE = "none"
    DOCUMENT = "document"
    METADATA = "metadata"
    BLOCK_QUOTE = "block_quote"
    ORDERED_LIST = "ordered_list"
    UNORDERED_LIST = "unordered_list"
    LIST_ITEM = "list_item"
    TABLE = "table"
    TABLE_HEADER = "table_header"
    TABLE_BODY = "table_body"
    TABLE_ROW = "table_row"
    HEADING_1 = "heading_1"
    HEADING_2 = "heading_2"
    HEADING_3 = "heading_3"
    HEADING_4 = "heading_4"
    HEADING_5 = "heading_5"
    HEADING_6 = "heading_6"
    PARAGRAPH = "paragraph"
    CODE_BLOCK = "code_block"
    THEMATIC_BREAK = "thematic_break"
    TABLE_HEADER_CELL = "table_header_cell"
    TABLE_BODY_CELL_LEFT = "table_body_cell_left"
    TABLE_BODY_CELL_CENTER = "table_body_cell_center"
    TABLE_BODY_CELL_RIGHT = "table_body_cell_right"
    NORMAL_TEXT = "normal_text"
    EMPHASIZED_TEXT = "emphasized_text"
    STRONG_TEXT = "strong_text"
    STRUCK_TEXT = "struck_text"
    LINKED_TEXT = "linked_text"
    CODE_TEXT = "code_text"
    IMAGE = "image"
    HARD_BREAK = "hard_break"
    SOFT_BREAK = "soft_break"
    METADATA_TEXT = "metadata_text"

    @property
    def ordinal(self) -> int:
        """Position of this type in the type ordering."""
        return _TYPE_ORDER[self]

    @property
    def isBlock(self) -> bool:
        """Block types precede the first inline type."""
        return self is not NodeType.NONE and self.ordinal < NodeType.NORMAL_TEXT.ordinal

    @property
    def isHeading(self) -> bool:
        return self in _HEADINGS

    @classmethod
    def heading(cls, level: int) -> "NodeType":
        """Get heading type for level 1-6."""
        if not 1 <= level <= 6:
            raise ValueError(f"Heading level must be 1-6, got {level}")
        return _HEADINGS[level - 1]


_TYPE_ORDER: Dict[NodeType, int] = {nodeType: index for index, nodeType in enumerate(NodeType)}
_HEADINGS = (
    NodeType.HEADING_1,
    NodeType.HEADING_2,
    NodeType.HEADING_3,
    NodeType.HEADING_4,
    NodeType.HEADING_5,
    NodeType.HEADING_6,
)


class MDNode:
    """
    A node of the document tree.

    The parent owns its children through the ordered ``children`` list.
    ``parent`` is a back-reference, and the sibling links are derived from
    the parent's list, so they always agree with it.
    """

    def __init__(
        self,
        nodeType: NodeType,
        whitespace: bool = False,
        text: Optional[str] = None,
        url: Optional[str] = None,
    ):
        self.type = nodeType
        self.whitespace = whitespace
        self.text = text
        self.url = url
        self.parent: Optional["MDNode"] = None
        self.children: List["MDNode"] = []

    @classmethod
    def createDocument(cls) -> "MDNode":
        """Create an empty document root."""
        return cls(NodeType.DOCUMENT)

    def addChild(
        self,
        nodeType: NodeType,
        whitespace: bool = False,
        text: Optional[str] = None,
        url: Optional[str] = None,
    ) -> "MDNode":
        """Create a node and append it as the new last child."""
        child = MDNode(nodeType, whitespace, text, url)
        child.parent = self
        self.children.append(child)
        return child

    def insertChild(
        self,
        index: int,
        nodeType: NodeType,
        whitespace: bool = False,
        text: Optional[str] = None,
        url: Optional[str] = None,
    ) -> "MDNode":
        """Create a node and put it at ``index`` among the children."""
        child = MDNode(nodeType, whitespace, text, url)
        child.parent = self
        self.children.insert(index, child)
        return child

    def detach(self) -> None:
        """
        Remove this node from its parent's children.

        Children of the detached node stay attached to it.
        """
        if self.parent is None:
            return
        siblings = self.parent.children
        for index, sibling in enumerate(siblings):
            if sibling is self:
                del siblings[index]
                break
        self.parent = None

    @property
    def isBlock(self) -> bool:
        return self.type.isBlock

    @property
    def firstChild(self) -> Optional["MDNode"]:
        return self.children[0] if self.children else None

    @property
    def lastChild(self) -> Optional["MDNode"]:
        return self.children[-1] if self.children else None

    @property
    def prevSibling(self) -> Optional["MDNode"]:
        index = self._indexInParent()
        if index is None or index == 0:
            return None
        return self.parent.children[index - 1]  # type: ignore

    @property
    def nextSibling(self) -> Optional["MDNode"]:
        index = self._indexInParent()
        if index is None:
            return None
        siblings = self.parent.children  # type: ignore
        return siblings[index + 1] if index + 1 < len(siblings) else None

    def _indexInParent(self) -> Optional[int]:
        if self.parent is None:
            return None
        # Nodes are mostly looked up near the end of the list while parsing
        siblings = self.parent.children
        for index in range(len(siblings) - 1, -1, -1):
            if siblings[index] is self:
                return index
        return None

    def walk(self) -> Iterator["MDNode"]:
        """Yield this node and all descendants in document order."""
        stack: List["MDNode"] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def __repr__(self) -> str:
        parts = [f"type={self.type.value}"]
        if self.whitespace:
            parts.append("whitespace=True")
        if self.text is not None:
            parts.append(f"text={self.text!r}")
        if self.url is not None:
            parts.append(f"url={self.url!r}")
        if self.children:
            parts.append(f"children={len(self.children)}")
        return f"MDNode({', '.join(parts)})"


def releaseTree(root: Optional[MDNode]) -> int:
    """
    Release the whole subtree rooted at ``root``, including ``root``.

    Uses an explicit worklist, so nesting depth is not limited by the call
    stack. Every node is unlinked exactly once.

    Returns:
        Number of released nodes
    """
    if root is None:
        return 0

    root.detach()
    released = 0
    worklist: List[MDNode] = [root]
    while worklist:
        node = worklist.pop()
        worklist.extend(node.children)
        node.children = []
        node.parent = None
        node.text = None
        node.url = None
        released += 1

    logger.debug(f"Released {released} nodes")
    return released


def collectAllText(node: Optional[MDNode]) -> str:
    """
    Concatenate the text of every descendant of ``node`` in document order.

    A single space is inserted before each descendant flagged with
    whitespace, except before the first piece of text collected.

    Returns:
        Collected text, empty string if no descendant carries text
    """
    if node is None:
        return ""

    pieces: List[str] = []
    stack: List[MDNode] = list(reversed(node.children))
    while stack:
        current = stack.pop()
        if current.text is not None:
            if current.whitespace and pieces:
                pieces.append(" ")
            pieces.append(current.text)
        stack.extend(reversed(current.children))

    return "".join(pieces)


def getMetadata(document: Optional[MDNode], keyword: str) -> Optional[str]:
    """
    Get the value of a document metadata keyword.

    Only looks at the document's first child, and only when it is a
    metadata block. Returns the trimmed text after ``"<keyword>:"``.
    """
    metadata = getFirstChild(document)
    if metadata is None or metadata.type != NodeType.METADATA:
        return None

    prefix = f"{keyword}:"
    for child in metadata.children:
        if child.type == NodeType.METADATA_TEXT and child.text is not None and child.text.startswith(prefix):
            return child.text[len(prefix) :].strip()

    return None


# Null-safe accessors


def getType(node: Optional[MDNode]) -> NodeType:
    return node.type if node is not None else NodeType.NONE


def getText(node: Optional[MDNode]) -> Optional[str]:
    return node.text if node is not None else None


def getUrl(node: Optional[MDNode]) -> Optional[str]:
    return node.url if node is not None else None


def getWhitespace(node: Optional[MDNode]) -> bool:
    return node.whitespace if node is not None else False


def getParent(node: Optional[MDNode]) -> Optional[MDNode]:
    return node.parent if node is not None else None


def getFirstChild(node: Optional[MDNode]) -> Optional[MDNode]:
    return node.firstChild if node is not None else None


def getLastChild(node: Optional[MDNode]) -> Optional[MDNode]:
    return node.lastChild if node is not None else None


def getPrevSibling(node: Optional[MDNode]) -> Optional[MDNode]:
    return node.prevSibling if node is not None else None


def getNextSibling(node: Optional[MDNode]) -> Optional[MDNode]:
    return node.nextSibling if node is not None else None


def isBlock(node: Optional[MDNode]) -> bool:
    return node.isBlock if node is not None else False
