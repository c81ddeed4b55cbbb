"""
Line source with one line of lookahead for the mdtree parser.

The block parser consumes lines one by one. Deciding whether a line with a
``|`` starts a table needs a peek at the following line, which must not be
consumed.
"""

import logging
import re
from typing import Iterable, Iterator, List, Optional, Union

logger = logging.getLogger(__name__)

# Only these characters may appear in a table separator row
SEPARATOR_CHARS = frozenset(" \t:-|")

LINE_END_PATTERN = re.compile(r"\r\n|\r|\n")


def stripLineEnd(line: str) -> str:
    """Remove a trailing line terminator, if any."""
    if line.endswith("\r\n"):
        return line[:-2]
    if line.endswith(("\n", "\r")):
        return line[:-1]
    return line


def splitLines(text: str) -> List[str]:
    """Split text into lines without terminators, like file iteration would."""
    if not text:
        return []
    lines = LINE_END_PATTERN.split(text)
    # A final terminator does not start another line
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def isTableSeparator(line: Optional[str]) -> bool:
    """
    Check whether a line can be the separator row under a table header.

    The line may start with a block quote marker and otherwise contain only
    ``:``, ``-``, ``|`` and whitespace, with at least one ``|`` and one ``-``.
    """
    if line is None:
        return False

    content = stripLineEnd(line)
    if content.startswith(">"):
        content = content[1:]

    if "|" not in content or "-" not in content:
        return False

    return all(char in SEPARATOR_CHARS for char in content)


class LineSource:
    """
    Sequential reader over lines with a single line of lookahead.

    Accepts a whole text or any iterable of lines (an open text file, a
    list, a generator). Lines are returned without their terminators.
    """

    def __init__(self, source: Union[str, Iterable[str]]):
        if isinstance(source, str):
            self._lines: Iterator[str] = iter(splitLines(source))
        else:
            self._lines = iter(source)
        self._peeked: Optional[str] = None
        self._hasPeeked = False
        self.lineNumber = 0

    def readLine(self) -> Optional[str]:
        """Consume and return the next line, or None at end of input."""
        if self._hasPeeked:
            line = self._peeked
            self._peeked = None
            self._hasPeeked = False
        else:
            line = self._fetch()

        if line is not None:
            self.lineNumber += 1
        return line

    def peekLine(self) -> Optional[str]:
        """Return the next line without consuming it."""
        if not self._hasPeeked:
            self._peeked = self._fetch()
            self._hasPeeked = True
        return self._peeked

    def isTableAhead(self) -> bool:
        """Check whether the next line is a table separator row."""
        isTable = isTableSeparator(self.peekLine())
        logger.debug(f"Table lookahead after line {self.lineNumber}: {isTable}")
        return isTable

    def _fetch(self) -> Optional[str]:
        try:
            line = next(self._lines)
        except StopIteration:
            return None
        if not isinstance(line, str):
            raise ValueError(f"Lines must be strings, got {type(line).__name__}")
        return stripLineEnd(line)

    def __iter__(self) -> Iterator[str]:
        while True:
            line = self.readLine()
            if line is None:
                return
            yield line
