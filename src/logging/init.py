from __future__ import annotations

import logging
import sys

"""Logging initialization with labeled prefixes.

Output format is ``LABEL message`` on stdout, with labels
INFO|WARN|ERROR|SUMMARY (plus DEBUG/CRITICAL). The CLI prints exactly one
SUMMARY line per command.

Modules under ``src`` log through ``logging.getLogger(__name__)``; those
loggers are attached to the same handler by ``setup_logging``.
"""

__all__ = [
    "setup_logging",
    "get_logger",
    "log_summary",
    "reset_logging",
    "set_debug",
    "LabeledFormatter",
    "SUMMARY_LEVEL",
    "LOGGER_NAME",
]

# Custom SUMMARY level (between INFO=20 and WARNING=30)
SUMMARY_LEVEL = 25

LOGGER_NAME = "candidate_intake"
# Package loggers (logging.getLogger(__name__) under src.*)
PACKAGE_LOGGER_NAME = "src"

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """Formatter that prefixes each message with a short level label."""

    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def format(self, record: logging.LogRecord) -> str:
        level_label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        return f"{level_label} {record.getMessage()}"


def _configure(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    logger.setLevel(level)
    for h in logger.handlers[:]:
        logger.removeHandler(h)
    logger.addHandler(handler)
    # Prevent propagation to root logger to avoid duplicate output
    logger.propagate = False


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Setup logging with labeled prefixes (idempotent).

    Returns:
        Configured application logger
    """
    global _logger

    if _logger is not None:
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(LabeledFormatter())

    logger = logging.getLogger(LOGGER_NAME)
    _configure(logger, handler, level)
    _configure(logging.getLogger(PACKAGE_LOGGER_NAME), handler, level)

    _logger = logger
    return logger


def set_debug(logger: logging.Logger) -> None:
    """Switch the application and package loggers to DEBUG."""
    for name in (logger.name, PACKAGE_LOGGER_NAME):
        lg = logging.getLogger(name)
        lg.setLevel(logging.DEBUG)
        for h in lg.handlers:
            h.setLevel(logging.DEBUG)


def get_logger() -> logging.Logger:
    if _logger is None:
        return setup_logging()
    return _logger


def log_summary(message: str) -> None:
    """Log a message at SUMMARY level."""
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Reset the global logger state. Mainly for testing purposes."""
    global _logger
    for name in (LOGGER_NAME, PACKAGE_LOGGER_NAME):
        lg = logging.getLogger(name)
        for h in lg.handlers[:]:
            lg.removeHandler(h)
    _logger = None
