from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Application logger with labeled line prefixes.

Lines look like ``INFO order uploaded id=...`` or ``SUMMARY files=3/3 ...``;
WARNING is shortened to WARN. SUMMARY (25) is a custom level between INFO
and WARNING used only for the closing line of ``order-intake validate``.

Modules log through ``logging.getLogger(__name__)``; every module lives under
the ``order_intake`` namespace, so their records reach the single handler
installed on that logger by setup_logging().
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "get_logger",
    "log_summary",
    "set_debug",
    "reset_logging",
]

LOGGER_NAME = "order_intake"
SUMMARY_LEVEL = 25

_configured: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """``<LABEL> <message>``, with the traceback appended when present."""

    LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        SUMMARY_LEVEL: "SUMMARY",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        label = self.LABELS.get(record.levelno, record.levelname)
        text = f"{label} {record.getMessage()}"
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text


def setup_logging(level: int = logging.INFO, stream: TextIO | None = None) -> logging.Logger:
    """Install the labeled stdout handler on the application logger.

    Calling it again returns the already configured logger untouched until
    reset_logging() is called. ``stream`` defaults to the current
    ``sys.stdout`` so CLI prints and log lines share one ordered output.
    """
    global _configured
    if _configured is not None:
        return _configured

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    app_logger = logging.getLogger(LOGGER_NAME)
    for old in list(app_logger.handlers):
        app_logger.removeHandler(old)

    out = logging.StreamHandler(stream or sys.stdout)
    out.setFormatter(LabeledFormatter())
    out.setLevel(level)
    app_logger.addHandler(out)
    app_logger.setLevel(level)
    # root に流すと uvicorn 等の handler で二重出力になる
    app_logger.propagate = False

    _configured = app_logger
    return app_logger


def get_logger() -> logging.Logger:
    return _configured if _configured is not None else setup_logging()


def set_debug(logger: logging.Logger) -> None:
    logger.setLevel(logging.DEBUG)
    for h in logger.handlers:
        h.setLevel(logging.DEBUG)


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Forget the configured logger (tests)."""
    global _configured
    _configured = None
