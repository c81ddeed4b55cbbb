"""
Tests for the MarkdownParser entry point: input kinds, options, statistics,
warnings and document release.
"""

import logging

import pytest

from lib.mdtree import DEFAULT_OPTIONS, MarkdownParser, NodeType, collectAllText, parseMarkdown, releaseDocument


class TestParserInput:
    """Test accepted and rejected input."""

    def testParseString(self, parser):
        """Test parsing a whole text."""
        document = parser.parse("# Hello World\n\nThis is **bold** text.\n")

        assert document.type == NodeType.DOCUMENT
        assert [child.type for child in document.children] == [NodeType.HEADING_1, NodeType.PARAGRAPH]
        assert collectAllText(document.firstChild) == "Hello World"
        assert collectAllText(document.lastChild) == "This is bold text."

    def testParseLineList(self, parser):
        """Test parsing a list of lines with terminators."""
        document = parser.parse(["Hello\r\n", "world\n"])

        assert collectAllText(document) == "Hello world"

    def testParseOpenFile(self, parser, tmp_path):
        """Test parsing lines from an open text file."""
        path = tmp_path / "doc.md"
        path.write_text("- one\n- two\n", encoding="utf-8")

        with open(path, "rt", encoding="utf-8") as f:
            document = parser.parse(f)

        assert document.firstChild.type == NodeType.UNORDERED_LIST
        assert len(document.firstChild.children) == 2

    @pytest.mark.parametrize("source", [None, 42, b"bytes", bytearray(b"x")])
    def testInvalidInput(self, parser, source):
        """Test non-text input raises ValueError."""
        with pytest.raises(ValueError):
            parser.parse(source)

    def testInvalidLine(self, parser):
        """Test a non-text line inside an iterable raises ValueError."""
        with pytest.raises(ValueError):
            parser.parse(["ok\n", 5])


class TestParserOptions:
    """Test option handling."""

    def testDefaults(self, parser):
        """Test defaults are in place."""
        assert parser.getOption("maxLineLength") == 65536
        assert parser.getOption("maxTableColumns") == 256
        assert parser.getOption("tabSize") == 4
        assert parser.getOption("unknown", "fallback") == "fallback"
        assert DEFAULT_OPTIONS["tabSize"] == 4

    def testOptionsDoNotChangeDefaults(self):
        """Test parser options are a copy of the defaults."""
        parser = MarkdownParser({"tabSize": 2})

        assert parser.getOption("tabSize") == 2
        assert DEFAULT_OPTIONS["tabSize"] == 4

    @pytest.mark.parametrize(
        "key, value",
        [
            ("maxLineLength", 0),
            ("maxTableColumns", -1),
            ("tabSize", "4"),
            ("tabSize", True),
            ("tabSize", 2.5),
        ],
    )
    def testInvalidOptionValues(self, key, value):
        """Test numeric options must be positive integers."""
        with pytest.raises(ValueError):
            MarkdownParser({key: value})

        parser = MarkdownParser()
        with pytest.raises(ValueError):
            parser.setOption(key, value)

    def testUnknownOptionIsKept(self, parser, caplog):
        """Test unknown options are stored with a warning."""
        with caplog.at_level(logging.WARNING, logger="lib.mdtree.parser"):
            parser.setOption("customFlag", True)

        assert parser.getOption("customFlag") is True
        assert "customFlag" in caplog.text

    def testSetOptionAffectsNextParse(self, parser):
        """Test changed options are used by later parses."""
        parser.setOption("maxTableColumns", 1)

        document = parser.parse("| a | b |\n|---|---|")

        headerRow = document.firstChild.firstChild.firstChild
        assert len(headerRow.children) == 1


class TestParserStats:
    """Test parse statistics."""

    def testStatsBeforeParse(self, parser):
        """Test statistics start at zero."""
        assert parser.getStats() == {
            "linesProcessed": 0,
            "blocksParsed": 0,
            "inlineElementsParsed": 0,
            "referencesResolved": 0,
            "referencesFallback": 0,
            "warnings": [],
        }

    def testStatsAfterParse(self, parser):
        """Test statistics count lines, nodes and references."""
        parser.parse("# Title\n\nHello **world** [a][x] [b][y]\n\n[x]: http://x")

        stats = parser.getStats()
        assert stats["linesProcessed"] == 5
        # Heading and paragraph, the definition paragraph is dropped
        assert stats["blocksParsed"] == 2
        # Title, Hello, world, a, b
        assert stats["inlineElementsParsed"] == 5
        assert stats["referencesResolved"] == 1
        assert stats["referencesFallback"] == 1
        assert stats["warnings"] == []

    def testStatsResetBetweenParses(self, parser):
        """Test every parse starts with fresh statistics and references."""
        parser.parse("[a]: http://first\n[a]")
        first = parser.getStats()

        document = parser.parse("[a]")
        second = parser.getStats()

        assert first["referencesResolved"] == 1
        assert second["referencesResolved"] == 0
        assert second["referencesFallback"] == 1
        assert document.firstChild.firstChild.url == "a"

    def testStatsCopy(self, parser):
        """Test the returned statistics can not change parser state."""
        parser.parse("text")
        stats = parser.getStats()
        stats["warnings"].append("changed")
        stats["linesProcessed"] = 100

        assert parser.getStats()["warnings"] == []
        assert parser.getStats()["linesProcessed"] == 1


class TestKnownLimitations:
    """Test warnings for over-long lines and NUL characters."""

    def testLongLineWarning(self, caplog):
        """Test a line over the limit is parsed and reported."""
        parser = MarkdownParser({"maxLineLength": 10})

        with caplog.at_level(logging.WARNING):
            document = parser.parse("short\nthis line is too long")

        warnings = parser.getStats()["warnings"]
        assert len(warnings) == 1
        assert "Line 2" in warnings[0]
        assert "longer than 10" in caplog.text
        assert collectAllText(document) == "short this line is too long"

    def testNulCharacterWarning(self, parser):
        """Test NUL characters are reported."""
        parser.parse("a\0b")

        warnings = parser.getStats()["warnings"]
        assert len(warnings) == 1
        assert "NUL" in warnings[0]


class TestConvenienceFunctions:
    """Test module level helpers."""

    def testParseMarkdownWithOptions(self):
        """Test parseMarkdown passes options through."""
        document = parseMarkdown("\tcode", tabSize=2)

        # Two columns of indentation is not code
        assert document.firstChild.type == NodeType.PARAGRAPH

    def testReleaseDocument(self):
        """Test releasing a parsed document frees every node."""
        document = parseMarkdown("# A\n\n- b\n- c\n\n> d")
        nodeCount = len(list(document.walk()))

        assert releaseDocument(document) == nodeCount
        assert document.children == []
        assert releaseDocument(None) == 0

    def testIndependentParsers(self):
        """Test two parsers do not share references."""
        first = MarkdownParser()
        second = MarkdownParser()

        firstDocument = first.parse("[x]: http://one\n[link][x]")
        secondDocument = second.parse("[link][x]")

        assert firstDocument.firstChild.firstChild.url == "http://one"
        assert secondDocument.firstChild.firstChild.url == "x"
