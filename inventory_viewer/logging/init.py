from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Labeled console logging for the viewer.

Lines look like "WARN message" / "SUMMARY rows=..." so CLI output can be
grepped by label. Module loggers (logging.getLogger(__name__)) are children of
LOGGER_NAME and share its single stdout handler. The failure log file is
handled separately by error_log.ErrorLogBuffer.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "ConsoleHandler",
    "setup_logging",
    "get_logger",
    "set_debug",
    "log_summary",
    "reset_logging",
]

LOGGER_NAME = "inventory_viewer"

# INFO(20) と WARNING(30) の間
SUMMARY_LEVEL = 25

_LABELS = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    SUMMARY_LEVEL: "SUMMARY",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "FATAL",
}

_configured: logging.Logger | None = None


class ConsoleHandler(logging.StreamHandler):
    """StreamHandler writing to sys.stdout as it is at emit time.

    Without an explicit stream, sys.stdout is looked up per record so a
    stdout swapped after setup (pytest capture, redirect_stdout) is used.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        super().__init__(stream or sys.stdout)
        self._follow_stdout = stream is None

    def emit(self, record: logging.LogRecord) -> None:
        if self._follow_stdout:
            self.stream = sys.stdout
        super().emit(record)


class LabeledFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        label = _LABELS.get(record.levelno, record.levelname)
        line = f"{label} {record.getMessage()}"
        if record.exc_info and record.levelno <= logging.DEBUG:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(stream: TextIO | None = None) -> logging.Logger:
    """Attach the labeled handler to the package logger once.

    Args:
        stream: Fixed output stream; when omitted, the current sys.stdout

    Returns:
        The package logger. Repeated calls return the same instance until
        reset_logging() is called.
    """
    global _configured
    if _configured is not None:
        return _configured

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    logger = logging.getLogger(LOGGER_NAME)
    for old in list(logger.handlers):
        logger.removeHandler(old)

    handler = ConsoleHandler(stream)
    handler.setFormatter(LabeledFormatter())
    handler.setLevel(logging.INFO)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    # root へ流さない (二重出力防止)
    logger.propagate = False

    _configured = logger
    return logger


def get_logger() -> logging.Logger:
    return _configured or setup_logging()


def set_debug(logger: logging.Logger) -> None:
    """Lower logger and handlers to DEBUG (used by --debug)."""
    logger.setLevel(logging.DEBUG)
    for h in logger.handlers:
        h.setLevel(logging.DEBUG)
    logger.debug("debug output enabled")


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Forget the configured logger so the next setup_logging() rebuilds it (tests)."""
    global _configured
    if _configured is not None:
        for h in list(_configured.handlers):
            _configured.removeHandler(h)
    _configured = None
