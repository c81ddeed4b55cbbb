"""
Logging utilities for mdtree.

Logging is configured from the ``[logging]`` table of the configuration:

    [logging]
    level = "INFO"
    console = true
    file = "logs/mdtree.log"
    rotate = "midnight"
    trace-parser = false

    [logging.logger."lib.mdtree.block_parser"]
    level = "DEBUG"
"""

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
PARSER_LOGGER_NAME = "lib.mdtree"
DEFAULT_BACKUP_COUNT = 7


def getLogLevelByStr(levelStr: str, default: Optional[int] = None) -> Optional[int]:
    """Get log level by string."""
    level = getattr(logging, levelStr.upper(), None)
    if not isinstance(level, int):
        logger.error(f"Invalid log level '{levelStr}'")
        return default
    return level


def _getHandlerLevel(config: Dict[str, Any], key: str, default: int) -> int:
    if key not in config:
        return default
    level = getLogLevelByStr(config[key], default)
    return default if level is None else level


def _createFileHandler(config: Dict[str, Any]) -> logging.Handler:
    """
    Create the file handler described by ``config``.

    ``rotate`` may be ``true`` (rotate at midnight) or a
    ``TimedRotatingFileHandler`` interval name such as ``"H"`` or ``"W0"``.
    """
    logPath = Path(config["file"])
    logPath.parent.mkdir(parents=True, exist_ok=True)

    rotate = config.get("rotate", False)
    if not rotate:
        return logging.FileHandler(logPath, encoding="utf-8")

    return TimedRotatingFileHandler(
        filename=logPath,
        when="midnight" if rotate is True else str(rotate),
        interval=1,
        backupCount=int(config.get("backup-count", DEFAULT_BACKUP_COUNT)),
        encoding="utf-8",
    )


def configureLogger(localLogger: logging.Logger, config: Dict[str, Any]) -> None:
    """Configure individual logger from config file settings."""

    if "propagate" in config:
        localLogger.propagate = bool(config["propagate"])

    if "level" in config:
        logLevel = getLogLevelByStr(config["level"])
        if logLevel is not None:
            localLogger.setLevel(logLevel)

    logLevel = localLogger.getEffectiveLevel()
    formatter = logging.Formatter(config.get("format", DEFAULT_LOG_FORMAT))

    # Clear existing handlers to avoid duplicates
    for handler in localLogger.handlers[:]:
        localLogger.removeHandler(handler)

    if config.get("console", False):
        consoleHandler = logging.StreamHandler()
        consoleHandler.setLevel(_getHandlerLevel(config, "console-level", logLevel))
        consoleHandler.setFormatter(formatter)
        localLogger.addHandler(consoleHandler)
        logger.info(f"Logging {localLogger.name} to console, logLevel: {consoleHandler.level}")

    if "file" in config:
        try:
            fileHandler = _createFileHandler(config)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to setup file logging for {localLogger.name}: {e}")
            return

        fileHandler.setLevel(_getHandlerLevel(config, "file-level", logLevel))
        fileHandler.setFormatter(formatter)
        localLogger.addHandler(fileHandler)
        logger.info(f"Logging {localLogger.name} to file: {config['file']}, logLevel: {fileHandler.level}")


def initLogging(config: Dict[str, Any]) -> None:
    """Configure logging from config file settings."""
    rootLogger = logging.getLogger()
    rootLogger.setLevel(logging.INFO)

    configureLogger(rootLogger, config)
    logLevel = rootLogger.getEffectiveLevel()

    # The parser logs every block decision at DEBUG, keep it out of a debug root unless asked for
    parserLogger = logging.getLogger(PARSER_LOGGER_NAME)
    if config.get("trace-parser", False):
        parserLogger.setLevel(logging.DEBUG)
    elif logLevel < logging.INFO:
        parserLogger.setLevel(logging.INFO)

    logConfigs = config.get("logger", {})
    for loggerName, loggerConfig in logConfigs.items():
        logger.debug(f"Configuring logger '{loggerName}' with config {loggerConfig}")
        configureLogger(logging.getLogger(loggerName), loggerConfig)

    logger.info(f"Logging configured: root level={logLevel}")
