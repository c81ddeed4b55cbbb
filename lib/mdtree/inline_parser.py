"""
Inline Parser for the mdtree parser

This module turns the text of one line into inline nodes (plain, emphasized,
strong, struck and code text, links, images, hard breaks) appended to a
block node. Link and image syntax is resolved through the reference table.
"""

import logging
from typing import List, NamedTuple, Optional

from .nodes import MDNode, NodeType
from .references import ReferenceTable

logger = logging.getLogger(__name__)


class LinkSyntax(NamedTuple):
    """Parsed bracketed construct: [text](url), [text][name], [text] or [name]: url."""

    text: str
    url: Optional[str]
    refName: Optional[str]
    isDefinition: bool
    end: int


class InlineResult(NamedTuple):
    """Outcome of parsing one line."""

    nodeCount: int
    definitionCount: int


class InlineParser:
    """
    Parser for inline Markdown elements.

    Scans a line left to right keeping a run of plain characters, the type of
    the currently open span and a flag telling whether whitespace preceded
    the next node. Words are separate nodes: every whitespace run outside a
    code span ends the current one.
    """

    def __init__(self, references: ReferenceTable):
        self.references = references
        self._reset(None, "")

    def _reset(self, parent: Optional[MDNode], line: str) -> None:
        self.parent = parent
        self.line = line
        self.pos = 0
        self.run: List[str] = []
        self.whitespace = bool(parent is not None and parent.children)
        self.spanType = NodeType.NORMAL_TEXT
        self.spanDelimiter = ""
        self.spanWhitespace = False
        self.spanNodes: List[MDNode] = []
        self.spanIndex = 0
        self.nodeCount = 0
        self.definitionCount = 0

    def parseLine(self, parent: MDNode, line: str) -> InlineResult:
        """
        Parse one line and append the resulting inline nodes to ``parent``.

        Args:
            parent: Block node receiving the inline nodes
            line: Line text without line terminator

        Returns:
            InlineResult with the number of nodes added and the number of
            reference definitions absorbed
        """
        self._reset(parent, line)

        while self.pos < len(self.line):
            if self.spanType == NodeType.CODE_TEXT:
                self._scanCodeSpan()
            elif not self._tryParseInlineElement():
                self.run.append(self.line[self.pos])
                self.pos += 1

        self._flushText()
        if self.spanType != NodeType.NORMAL_TEXT:
            self._revertOpenSpan()

        result = InlineResult(self.nodeCount, self.definitionCount)
        self._reset(None, "")
        return result

    def _tryParseInlineElement(self) -> bool:
        """Try every inline rule at the current position, in priority order."""
        char = self.line[self.pos]

        if char.isspace():
            self._parseWhitespace()
            return True
        if char == "!":
            return self._tryParseImage()
        if char == "[":
            return self._tryParseLink()
        if char == "<":
            return self._tryParseAutolink()
        if char in "*_":
            return self._tryParseEmphasis(char)
        if char == "~":
            return self._tryParseStrikethrough()
        if char == "`":
            return self._tryOpenCodeSpan()
        if char == "\\":
            return self._parseEscape()
        return False

    def _parseWhitespace(self) -> None:
        self._flushText()
        self.whitespace = True

        start = self.pos
        while self.pos < len(self.line) and self.line[self.pos].isspace():
            self.pos += 1

        if self.pos == len(self.line) and self.line[start:] == "  ":
            self._addNode(NodeType.HARD_BREAK)

    def _tryParseImage(self) -> bool:
        if not self.line.startswith("![", self.pos):
            return False

        link = self.parseLinkSyntax(self.line, self.pos + 1)
        if link is None:
            return False

        self._flushText()
        self.pos = link.end

        if link.isDefinition:
            self._defineReference(link)
            return True

        node = self._addNode(NodeType.IMAGE, link.text, link.url)
        if link.refName is not None:
            self.references.use(node, link.refName)
        return True

    def _tryParseLink(self) -> bool:
        link = self.parseLinkSyntax(self.line, self.pos)
        if link is None:
            return False

        self._flushText()
        self.pos = link.end

        if link.isDefinition:
            self._defineReference(link)
            return True

        text = link.text
        if text.startswith("`"):
            text = text[1:]
            if text.endswith("`"):
                text = text[:-1]
            node = self._addNode(NodeType.CODE_TEXT, text, link.url)
        else:
            node = self._addNode(NodeType.LINKED_TEXT, text, link.url)

        if link.refName is not None:
            self.references.use(node, link.refName)
        return True

    def _tryParseAutolink(self) -> bool:
        end = self.line.find(">", self.pos + 1)
        if end <= self.pos + 1:
            return False

        self._flushText()
        url = self.line[self.pos + 1 : end]
        self._addNode(NodeType.LINKED_TEXT, url, url)
        self.pos = end + 1
        return True

    def _tryParseEmphasis(self, char: str) -> bool:
        """Handle ``*``/``_`` markers, returns False for a literal marker."""
        doubled = self._charAt(self.pos + 1) == char

        if self.spanType in (NodeType.EMPHASIZED_TEXT, NodeType.STRONG_TEXT):
            if self.spanDelimiter[0] != char:
                return False
            if self.spanType == NodeType.STRONG_TEXT:
                if not doubled:
                    return False
                self._closeSpan(2)
            else:
                self._closeSpan(1)
            return True

        if self.spanType != NodeType.NORMAL_TEXT:
            return False

        if doubled:
            delimiter = char * 2
            if self._canOpenSpan(delimiter):
                self._openSpan(NodeType.STRONG_TEXT, delimiter)
            else:
                self.run.append(delimiter)
                self.pos += 2
            return True

        if self._canOpenSpan(char):
            self._openSpan(NodeType.EMPHASIZED_TEXT, char)
            return True
        return False

    def _tryParseStrikethrough(self) -> bool:
        if not self.line.startswith("~~", self.pos):
            return False

        if self.spanType == NodeType.STRUCK_TEXT:
            self._closeSpan(2)
        elif self.spanType == NodeType.NORMAL_TEXT and self._canOpenSpan("~~"):
            self._openSpan(NodeType.STRUCK_TEXT, "~~")
        else:
            self.run.append("~~")
            self.pos += 2
        return True

    def _tryOpenCodeSpan(self) -> bool:
        if self.spanType != NodeType.NORMAL_TEXT or self.line.find("`", self.pos + 1) == -1:
            return False
        self._openSpan(NodeType.CODE_TEXT, "`")
        return True

    def _scanCodeSpan(self) -> None:
        """Inside a code span everything but the closing backtick is literal."""
        char = self.line[self.pos]
        if char == "`":
            self._closeSpan(1)
        else:
            self.run.append(char)
            self.pos += 1

    def _parseEscape(self) -> bool:
        if self.pos + 1 >= len(self.line):
            return False
        self.run.append(self.line[self.pos + 1])
        self.pos += 2
        return True

    def _canOpenSpan(self, delimiter: str) -> bool:
        """A span opens when not followed by whitespace and closed later on the line."""
        after = self._charAt(self.pos + len(delimiter))
        if not after or after.isspace():
            return False
        return self.line.find(delimiter, self.pos + len(delimiter) + 1) != -1

    def _openSpan(self, spanType: NodeType, delimiter: str) -> None:
        self._flushText()
        self.spanType = spanType
        self.spanDelimiter = delimiter
        self.spanWhitespace = self.whitespace
        self.spanNodes = []
        self.spanIndex = len(self.parent.children)  # type: ignore
        self.pos += len(delimiter)

    def _closeSpan(self, length: int) -> None:
        self._flushText()
        self.spanType = NodeType.NORMAL_TEXT
        self.spanDelimiter = ""
        self.spanNodes = []
        self.pos += length

    def _revertOpenSpan(self) -> None:
        """Turn an unterminated span back into plain text keeping its opening delimiter in place."""
        children = self.parent.children  # type: ignore
        following = children[self.spanIndex] if self.spanIndex < len(children) else None

        if following is not None and self.spanNodes and following is self.spanNodes[0]:
            following.text = self.spanDelimiter + (following.text or "")
        else:
            # A link or image took the first place after the delimiter
            if following is not None:
                following.whitespace = False
            self.parent.insertChild(  # type: ignore
                self.spanIndex, NodeType.NORMAL_TEXT, self.spanWhitespace, self.spanDelimiter
            )
            self.nodeCount += 1

        for node in self.spanNodes:
            node.type = NodeType.NORMAL_TEXT

        self.spanType = NodeType.NORMAL_TEXT
        self.spanDelimiter = ""
        self.spanNodes = []

    def _flushText(self) -> None:
        """Emit the accumulated run as a node of the current span type."""
        if not self.run:
            return
        node = self._addNode(self.spanType, "".join(self.run))
        if self.spanType != NodeType.NORMAL_TEXT:
            self.spanNodes.append(node)
        self.run = []

    def _addNode(self, nodeType: NodeType, text: Optional[str] = None, url: Optional[str] = None) -> MDNode:
        node = self.parent.addChild(nodeType, self.whitespace, text, url)  # type: ignore
        self.nodeCount += 1
        self.whitespace = False
        return node

    def _defineReference(self, link: LinkSyntax) -> None:
        logger.debug(f"Reference definition '{link.text}' -> '{link.url}'")
        self.references.define(link.text, link.url)  # type: ignore
        self.definitionCount += 1

    def _charAt(self, pos: int) -> str:
        return self.line[pos] if pos < len(self.line) else ""

    def parseLinkSyntax(self, line: str, pos: int) -> Optional[LinkSyntax]:
        """
        Parse a bracketed construct starting at the ``[`` at ``pos``.

        Recognizes ``[text](url)``, ``[text][name]``, ``[text][]``,
        ``[name]: url`` and a bare ``[text]`` which refers to the name
        ``text``. Whitespace may separate ``]`` from what follows.

        Returns:
            LinkSyntax, or None when the construct is unterminated or empty
            and its ``[`` has to stay literal
        """
        close = self._findClosing(line, pos + 1, "]")
        if close == -1:
            return None

        text = line[pos + 1 : close]
        after = close + 1
        markerPos = after
        while markerPos < len(line) and line[markerPos].isspace():
            markerPos += 1
        marker = line[markerPos] if markerPos < len(line) else ""

        if marker == "(":
            end = self._findClosing(line, markerPos + 1, ")")
            if end == -1:
                return None
            url = self._firstToken(line[markerPos + 1 : end])
            return LinkSyntax(text, url, None, False, end + 1)

        if marker == "[":
            end = self._findClosing(line, markerPos + 1, "]")
            if end == -1:
                return None
            refName = self._firstToken(line[markerPos + 1 : end]) or text
            if not refName:
                return None
            return LinkSyntax(text, None, refName, False, end + 1)

        if marker == ":" and text:
            urlStart = markerPos + 1
            while urlStart < len(line) and line[urlStart].isspace():
                urlStart += 1
            urlEnd = urlStart
            while urlEnd < len(line) and not line[urlEnd].isspace():
                urlEnd += 1
            if urlEnd > urlStart:
                end = urlEnd
                # Trailing whitespace belongs to the definition
                if not line[urlEnd:].strip():
                    end = len(line)
                return LinkSyntax(text, line[urlStart:urlEnd], None, True, end)

        if not text:
            return None
        return LinkSyntax(text, None, text, False, after)

    def _findClosing(self, line: str, start: int, closer: str) -> int:
        """Find ``closer`` from ``start``, skipping double-quoted strings."""
        pos = start
        while pos < len(line):
            char = line[pos]
            if char == '"':
                quoteEnd = line.find('"', pos + 1)
                if quoteEnd == -1:
                    return -1
                pos = quoteEnd + 1
                continue
            if char == closer:
                return pos
            pos += 1
        return -1

    def _firstToken(self, content: str) -> str:
        tokens = content.split()
        return tokens[0] if tokens else ""
