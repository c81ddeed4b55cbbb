"""
Block Parser for the mdtree parser

This module classifies input lines one by one and builds the block structure
of the document: metadata, headings, paragraphs, block quotes, lists, code
blocks, tables and thematic breaks. The text of every non-verbatim line is
handed to the inline parser.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .inline_parser import InlineParser
from .lookahead import LineSource
from .nodes import MDNode, NodeType
from .references import ReferenceTable

logger = logging.getLogger(__name__)

UNORDERED_MARKER_PATTERN = re.compile(r"^[-+*](?:\s+|$)")
ORDERED_MARKER_PATTERN = re.compile(r"^\d+\.(?:\s+|$)")
HEADING_MARKER_PATTERN = re.compile(r"^#+")

# Leading columns that turn a line into indented code
CODE_INDENT = 4
_LIST_TYPES = (NodeType.ORDERED_LIST, NodeType.UNORDERED_LIST)


@dataclass
class TableState:
    """Per-table parsing state: sections, column alignment and row count."""

    node: Optional[MDNode] = None
    header: Optional[MDNode] = None
    body: Optional[MDNode] = None
    columns: List[NodeType] = field(default_factory=list)
    numColumns: int = 0
    rows: int = 0


@dataclass
class BlockState:
    """
    Mutable state of one parse, carried from line to line.

    ``context`` is the block under which new blocks are appended, ``active``
    is the block still receiving text (or None).
    """

    root: MDNode
    context: MDNode
    active: Optional[MDNode] = None
    table: TableState = field(default_factory=TableState)
    blankCode: bool = False
    metadata: Optional[MDNode] = None
    lineNumber: int = 0
    warnings: List[str] = field(default_factory=list)


class BlockParser:
    """
    Line classification state machine.

    Every line is matched against the block rules in priority order, the
    first matching rule decides what happens to it.
    """

    def __init__(
        self,
        references: ReferenceTable,
        maxLineLength: int = 65536,
        maxTableColumns: int = 256,
        tabSize: int = 4,
    ):
        self.references = references
        self.inlineParser = InlineParser(references)
        self.maxLineLength = maxLineLength
        self.maxTableColumns = maxTableColumns
        self.tabSize = tabSize

    def parse(self, source: LineSource) -> BlockState:
        """
        Parse every line from ``source`` into a new document tree.

        Pending references get their fallback URL once the input ends.

        Returns:
            Final parser state, ``state.root`` is the document
        """
        root = MDNode.createDocument()
        state = BlockState(root=root, context=root)

        for line in source:
            state.lineNumber = source.lineNumber
            self._checkLine(state, line)
            self.processLine(state, line, source)

        fallbacks = self.references.finalize()
        logger.debug(f"Parsed {state.lineNumber} lines, {fallbacks} reference(s) fell back to their name")
        return state

    def _checkLine(self, state: BlockState, line: str) -> None:
        if len(line) > self.maxLineLength:
            self._warn(state, f"Line {state.lineNumber} is longer than {self.maxLineLength} characters")
        if "\0" in line:
            self._warn(state, f"Line {state.lineNumber} contains a NUL character")

    def _warn(self, state: BlockState, message: str) -> None:
        logger.warning(message)
        state.warnings.append(message)

    def processLine(self, state: BlockState, line: str, source: LineSource) -> None:
        """Classify one line and update the tree and ``state``."""
        if state.metadata is not None:
            self._parseMetadataLine(state, line)
            return

        columns, content = self._splitIndent(line)

        if (
            columns >= CODE_INDENT
            and content
            and state.active is None
            and (state.context is state.root or state.context.type == NodeType.CODE_BLOCK)
        ):
            self._addIndentedCode(state, " " * (columns - CODE_INDENT) + content)
            return

        if self._isFence(content):
            self._toggleFence(state)
            return

        if state.active is not None and state.active.type == NodeType.CODE_BLOCK:
            state.active.addChild(NodeType.CODE_TEXT, text=line + "\n")
            return

        if not state.root.children and content.rstrip() == "---":
            logger.debug(f"Metadata block opened at line {state.lineNumber}")
            state.metadata = state.root.addChild(NodeType.METADATA)
            state.active = None
            return

        if state.active is None and self._isThematicBreak(content):
            self._leaveLeafContext(state)
            state.context = self._blockBase(state)
            state.context.addChild(NodeType.THEMATIC_BREAK)
            return

        quoted = content.startswith(">")
        if quoted:
            content = self._enterQuote(state, content)
        else:
            self._leaveQuote(state)

        self._classifyLine(state, content, columns > 0 or quoted, source)

    def _classifyLine(self, state: BlockState, content: str, indented: bool, source: LineSource) -> None:
        """Block rules that also apply inside block quotes."""
        if not content:
            state.blankCode = state.context.type == NodeType.CODE_BLOCK
            state.active = None
            if state.context.type == NodeType.TABLE:
                state.context = state.context.parent  # type: ignore
            return

        if "|" in content and (state.context.type == NodeType.TABLE or source.isTableAhead()):
            self._parseTableRow(state, content)
            return
        if state.context.type == NodeType.TABLE:
            logger.debug(f"Table ended before line {state.lineNumber}")
            state.context = state.context.parent  # type: ignore
            state.active = None

        if content == "+":
            self._toggleListParagraph(state)
            return

        if (
            state.active is not None
            and state.active.type == NodeType.PARAGRAPH
            and self._isSetextUnderline(content)
        ):
            state.active.type = NodeType.HEADING_1 if content.lstrip()[0] == "=" else NodeType.HEADING_2
            state.active = None
            return

        nodeType, text = self._deriveBlockType(state, content, indented)
        self._addLine(state, nodeType, text)

    def _deriveBlockType(self, state: BlockState, content: str, indented: bool) -> Tuple[NodeType, str]:
        """Get the block type for a line and the text left after its marker."""
        match = UNORDERED_MARKER_PATTERN.match(content)
        if match:
            self._enterList(state, NodeType.UNORDERED_LIST)
            state.active = None
            return NodeType.LIST_ITEM, content[match.end() :]

        match = ORDERED_MARKER_PATTERN.match(content)
        if match:
            self._enterList(state, NodeType.ORDERED_LIST)
            state.active = None
            return NodeType.LIST_ITEM, content[match.end() :]

        match = HEADING_MARKER_PATTERN.match(content)
        if match:
            self._leaveLeafContext(state)
            state.context = self._blockBase(state)
            level = match.end()
            if level > 6:
                return NodeType.PARAGRAPH, content
            state.active = None
            text = content[level:].strip().rstrip("#").strip()
            return NodeType.heading(level), text

        if state.active is None:
            if not indented:
                state.context = state.root
            return NodeType.PARAGRAPH, content

        return state.active.type, content

    def _addLine(self, state: BlockState, nodeType: NodeType, text: str) -> None:
        """Open a block of ``nodeType`` when needed and parse ``text`` into it."""
        fresh = False
        if state.active is None or state.active.type != nodeType:
            self._leaveLeafContext(state)
            state.active = state.context.addChild(nodeType)
            fresh = True
            logger.debug(f"Opened {nodeType.value} under {state.context.type.value} at line {state.lineNumber}")

        result = self.inlineParser.parseLine(state.active, text)

        if fresh and result.nodeCount == 0 and result.definitionCount > 0:
            # Definition lines do not produce a visible block
            container = state.active.parent
            state.active.detach()
            state.active = None
            if container is not None and container.type in _LIST_TYPES and not container.children:
                state.context = self._blockBase(state)
                container.detach()
        elif nodeType.isHeading:
            state.active = None

    def _parseMetadataLine(self, state: BlockState, line: str) -> None:
        text = line.strip()
        if text in ("---", "..."):
            logger.debug(f"Metadata block closed at line {state.lineNumber}")
            state.metadata = None
            return
        if text:
            state.metadata.addChild(NodeType.METADATA_TEXT, text=text)  # type: ignore

    def _addIndentedCode(self, state: BlockState, text: str) -> None:
        if state.context is state.root:
            state.context = state.root.addChild(NodeType.CODE_BLOCK)
            logger.debug(f"Indented code block opened at line {state.lineNumber}")

        if state.blankCode:
            state.context.addChild(NodeType.CODE_TEXT, text="\n")
        state.context.addChild(NodeType.CODE_TEXT, text=text + "\n")
        state.blankCode = False

    def _toggleFence(self, state: BlockState) -> None:
        active = state.active
        if active is not None and active.type == NodeType.CODE_BLOCK:
            logger.debug(f"Fenced code block closed at line {state.lineNumber}")
            state.active = None
            return

        self._leaveLeafContext(state)
        if active is not None and active.type == NodeType.LIST_ITEM:
            parent = active
        elif active is not None and active.parent is not None and active.parent.type == NodeType.LIST_ITEM:
            parent = active.parent
        else:
            parent = state.context

        state.active = parent.addChild(NodeType.CODE_BLOCK)
        logger.debug(f"Fenced code block opened under {parent.type.value} at line {state.lineNumber}")

    def _toggleListParagraph(self, state: BlockState) -> None:
        active = state.active
        if active is None:
            return
        if active.type == NodeType.LIST_ITEM:
            state.active = active.addChild(NodeType.PARAGRAPH)
        elif active.parent is not None and active.parent.type == NodeType.LIST_ITEM:
            state.active = active.parent.addChild(NodeType.PARAGRAPH)
        else:
            state.active = None

    def _enterQuote(self, state: BlockState, content: str) -> str:
        """Find or open the block quote for a ``>`` line, returns the quoted text."""
        node = state.context
        while node is not state.root and node.type != NodeType.BLOCK_QUOTE:
            node = node.parent  # type: ignore

        if node.type != NodeType.BLOCK_QUOTE:
            state.context = state.root.addChild(NodeType.BLOCK_QUOTE)
            state.active = None
            logger.debug(f"Block quote opened at line {state.lineNumber}")

        content = content[1:]
        if content.startswith(" "):
            content = content[1:]
        return content.lstrip()

    def _leaveQuote(self, state: BlockState) -> None:
        context = state.context
        if context.type == NodeType.BLOCK_QUOTE:
            state.context = context.parent  # type: ignore
        elif (
            context.type == NodeType.TABLE
            and context.parent is not None
            and context.parent.type == NodeType.BLOCK_QUOTE
        ):
            state.context = context.parent.parent  # type: ignore

    def _enterList(self, state: BlockState, listType: NodeType) -> None:
        if state.context.type == listType:
            return

        self._leaveLeafContext(state)
        base = self._blockBase(state)
        last = base.lastChild
        if last is not None and last.type == listType:
            state.context = last
        else:
            state.context = base.addChild(listType)
            logger.debug(f"Opened {listType.value} under {base.type.value} at line {state.lineNumber}")

    def _parseTableRow(self, state: BlockState, content: str) -> None:
        """Add a header, separator or body row to the current table, opening it first if needed."""
        if state.context.type != NodeType.TABLE:
            self._leaveLeafContext(state)
            base = self._blockBase(state)
            node = base.addChild(NodeType.TABLE)
            state.context = node
            state.active = None
            state.table = TableState(node=node, header=node.addChild(NodeType.TABLE_HEADER))
            logger.debug(f"Table opened under {base.type.value} at line {state.lineNumber}")

        table = state.table
        cells = self._splitCells(content)

        while len(table.columns) < len(cells):
            table.columns.append(NodeType.TABLE_BODY_CELL_LEFT)

        if table.rows == 1:
            for col, cell in enumerate(cells):
                table.columns[col] = self._getAlignment(cell)
        else:
            isHeader = table.rows == 0
            if isHeader:
                section = table.header
            else:
                if table.body is None:
                    table.body = table.node.addChild(NodeType.TABLE_BODY)  # type: ignore
                section = table.body
            row = section.addChild(NodeType.TABLE_ROW)  # type: ignore

            for col, cell in enumerate(cells):
                cellType = NodeType.TABLE_HEADER_CELL if isHeader else table.columns[col]
                cellNode = row.addChild(cellType)
                self.inlineParser.parseLine(cellNode, cell.strip())

            if not isHeader:
                for col in range(len(cells), table.numColumns):
                    row.addChild(table.columns[col])

        table.numColumns = max(table.numColumns, len(cells))
        table.rows += 1

    def _splitCells(self, content: str) -> List[str]:
        text = content.strip()
        if text.startswith("|"):
            text = text[1:]
        if text.endswith("|"):
            text = text[:-1]
        if not text:
            return []

        cells = text.split("|")
        if len(cells) > self.maxTableColumns:
            logger.debug(f"Dropping {len(cells) - self.maxTableColumns} table column(s) at line {text!r}")
            cells = cells[: self.maxTableColumns]
        return cells

    def _getAlignment(self, cell: str) -> NodeType:
        """Get body cell type from a separator cell: ``:-:`` center, ``-:`` right, else left."""
        cell = cell.strip()
        if len(cell) > 1 and cell.startswith(":") and cell.endswith(":"):
            return NodeType.TABLE_BODY_CELL_CENTER
        if len(cell) > 1 and cell.endswith(":"):
            return NodeType.TABLE_BODY_CELL_RIGHT
        return NodeType.TABLE_BODY_CELL_LEFT

    def _blockBase(self, state: BlockState) -> MDNode:
        """Nearest block quote containing the context, or the root."""
        node = state.context
        while node is not state.root and node.type != NodeType.BLOCK_QUOTE:
            node = node.parent  # type: ignore
        return node

    def _leaveLeafContext(self, state: BlockState) -> None:
        while state.context.type in (NodeType.CODE_BLOCK, NodeType.TABLE):
            state.context = state.context.parent  # type: ignore

    def _splitIndent(self, line: str) -> Tuple[int, str]:
        """Measure leading whitespace in columns, returns it with the rest of the line."""
        columns = 0
        pos = 0
        while pos < len(line) and line[pos].isspace():
            if line[pos] == "\t":
                columns += self.tabSize - columns % self.tabSize
            else:
                columns += 1
            pos += 1
        return columns, line[pos:]

    def _isFence(self, content: str) -> bool:
        text = content.rstrip()
        if text == "`":
            return True
        return text.startswith("``") and "`" not in text.lstrip("`")

    def _isThematicBreak(self, content: str) -> bool:
        text = content.strip()
        if not text or text[0] not in "-*_":
            return False
        marks = [char for char in text if not char.isspace()]
        return len(marks) >= 3 and all(char == text[0] for char in marks)

    def _isSetextUnderline(self, content: str) -> bool:
        text = content.strip()
        if not text or text[0] not in "=-":
            return False
        marks = [char for char in text if not char.isspace()]
        return len(marks) >= 3 and all(char == text[0] for char in marks)
