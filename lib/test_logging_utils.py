"""
Tests for logging utilities.
"""

import logging
from logging.handlers import TimedRotatingFileHandler

import pytest

from lib.logging_utils import PARSER_LOGGER_NAME, configureLogger, getLogLevelByStr, initLogging


@pytest.fixture
def localLogger():
    """Provide a private logger and restore it afterwards."""
    testLogger = logging.getLogger("mdtree.test.logging_utils")
    yield testLogger
    for handler in testLogger.handlers[:]:
        testLogger.removeHandler(handler)
        handler.close()
    testLogger.setLevel(logging.NOTSET)
    testLogger.propagate = True


@pytest.fixture
def restoreRootLogger():
    """Keep root logger handlers and level intact across a test."""
    rootLogger = logging.getLogger()
    handlers = rootLogger.handlers[:]
    level = rootLogger.level
    yield rootLogger
    for handler in rootLogger.handlers[:]:
        rootLogger.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        rootLogger.addHandler(handler)
    rootLogger.setLevel(level)


class TestGetLogLevelByStr:
    """Test level name parsing."""

    @pytest.mark.parametrize(
        "levelStr, expected",
        [
            ("DEBUG", logging.DEBUG),
            ("info", logging.INFO),
            ("Warning", logging.WARNING),
            ("error", logging.ERROR),
        ],
    )
    def testKnownLevels(self, levelStr, expected):
        """Test level names are case-insensitive."""
        assert getLogLevelByStr(levelStr) == expected

    def testUnknownLevelReturnsDefault(self):
        """Test unknown names give the default."""
        assert getLogLevelByStr("LOUD") is None
        assert getLogLevelByStr("LOUD", logging.INFO) == logging.INFO

    def testNonLevelAttribute(self):
        """Test attributes of the logging module that are not levels are rejected."""
        assert getLogLevelByStr("getLogger", logging.ERROR) == logging.ERROR


class TestConfigureLogger:
    """Test configuring a single logger."""

    def testLevelAndPropagate(self, localLogger):
        """Test level and propagate settings are applied."""
        configureLogger(localLogger, {"level": "DEBUG", "propagate": False})

        assert localLogger.level == logging.DEBUG
        assert localLogger.propagate is False
        assert localLogger.handlers == []

    def testConsoleHandler(self, localLogger):
        """Test console handler with its own level."""
        configureLogger(localLogger, {"level": "DEBUG", "console": True, "console-level": "ERROR"})

        assert len(localLogger.handlers) == 1
        handler = localLogger.handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        assert handler.level == logging.ERROR

    def testReconfigureReplacesHandlers(self, localLogger):
        """Test configuring twice does not duplicate handlers."""
        configureLogger(localLogger, {"console": True})
        configureLogger(localLogger, {"console": True})

        assert len(localLogger.handlers) == 1

    def testFileHandler(self, localLogger, tmp_path):
        """Test file handler creates missing directories and writes records."""
        logFile = tmp_path / "logs" / "mdtree.log"

        configureLogger(localLogger, {"level": "INFO", "file": str(logFile), "format": "%(message)s"})
        localLogger.info("parsed document")
        for handler in localLogger.handlers:
            handler.flush()

        assert logFile.read_text(encoding="utf-8").strip() == "parsed document"

    def testRotatingFileHandler(self, localLogger, tmp_path):
        """Test rotate option selects the timed rotating handler."""
        logFile = tmp_path / "mdtree.log"

        configureLogger(localLogger, {"file": str(logFile), "rotate": True, "file-level": "WARNING"})

        assert len(localLogger.handlers) == 1
        handler = localLogger.handlers[0]
        assert isinstance(handler, TimedRotatingFileHandler)
        assert handler.level == logging.WARNING

    def testRotationInterval(self, localLogger, tmp_path):
        """Test rotate accepts an interval name and backup-count."""
        logFile = tmp_path / "mdtree.log"

        configureLogger(localLogger, {"file": str(logFile), "rotate": "H", "backup-count": 3})

        handler = localLogger.handlers[0]
        assert isinstance(handler, TimedRotatingFileHandler)
        assert handler.when == "H"
        assert handler.backupCount == 3

    def testInvalidRotationInterval(self, localLogger, tmp_path):
        """Test a bad interval is logged and no file handler is added."""
        configureLogger(localLogger, {"file": str(tmp_path / "mdtree.log"), "rotate": "fortnight"})

        assert localLogger.handlers == []


class TestInitLogging:
    """Test root logging setup."""

    def testRootLevelAndPerLoggerConfig(self, restoreRootLogger):
        """Test root level and [logging.logger.<name>] sections."""
        config = {
            "level": "WARNING",
            "logger": {"mdtree.test.init": {"level": "DEBUG"}},
        }

        initLogging(config)

        assert restoreRootLogger.level == logging.WARNING
        assert logging.getLogger("mdtree.test.init").level == logging.DEBUG
        logging.getLogger("mdtree.test.init").setLevel(logging.NOTSET)

    def testDebugRootQuietsParser(self, restoreRootLogger):
        """Test a debug root keeps the parser loggers at INFO."""
        parserLogger = logging.getLogger(PARSER_LOGGER_NAME)

        initLogging({"level": "DEBUG"})

        assert parserLogger.level == logging.INFO
        assert not logging.getLogger("lib.mdtree.block_parser").isEnabledFor(logging.DEBUG)
        parserLogger.setLevel(logging.NOTSET)

    def testTraceParser(self, restoreRootLogger):
        """Test trace-parser enables parser debug output under an INFO root."""
        parserLogger = logging.getLogger(PARSER_LOGGER_NAME)

        initLogging({"level": "INFO", "trace-parser": True})

        assert restoreRootLogger.level == logging.INFO
        assert logging.getLogger("lib.mdtree.inline_parser").isEnabledFor(logging.DEBUG)
        parserLogger.setLevel(logging.NOTSET)
