"""Logging set-up shared by the whole package.

The level comes from the ``WECHATY_LOG`` environment variable, which also
accepts the community names ``silent``, ``silly`` and ``verbose``.
"""

from __future__ import annotations

import logging
import os

TRACE = 5
PANIC = logging.CRITICAL + 10

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(PANIC, "PANIC")

PACKAGE_LOGGER_NAME = "wechaty_puppet"
MODULE_FIELD = "wechaty_module"

_ALIASES = {
    "silent": "panic",
    "silly": "trace",
    "verbose": "trace",
}

_LEVELS = {
    "panic": PANIC,
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": TRACE,
}


def resolve_level(name: str) -> int:
    """Turn a level name into a logging level; unknown names give INFO."""
    name = _ALIASES.get(name, name)
    return _LEVELS.get(name.lower(), logging.INFO)


class _TextFormatter(logging.Formatter):
    """Formats records as ``time level message module=<name>``."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        module = getattr(record, MODULE_FIELD, None)
        if module:
            text = f"{text} module={module}"
        return text


def _configure() -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    logger.setLevel(resolve_level(os.environ.get("WECHATY_LOG", "")))
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(_TextFormatter())
        logger.addHandler(handler)
    return logger


_PACKAGE_LOGGER = _configure()


def get_logger(module: str) -> logging.LoggerAdapter:
    """Return a logger whose records carry the given module name."""
    return logging.LoggerAdapter(_PACKAGE_LOGGER, {MODULE_FIELD: module})