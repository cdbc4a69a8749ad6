"""Logging configuration for the ``bill_convert`` package.

All diagnostics go through the ``"bill_convert"`` logger tree. Library modules
call :func:`get_logger` and never attach handlers; the CLI (or an embedding
host) calls :func:`configure_logging` to route them to a stream.

Unlike a one-shot setup, :func:`configure_logging` may be called again: the
previous handler is swapped out, so each CLI invocation in a long-lived
process (tests, notebooks) writes to the stream it was given.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

from .errors import ConfigError

_PKG_LOGGER_NAME = "bill_convert"
LEVEL_ENV = "BILL_CONVERT_LOG_LEVEL"
_DEFAULT_FMT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_handler: logging.Handler | None = None


def _lookup(name: str) -> int | None:
    name = name.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelName(name)
    return numeric if isinstance(numeric, int) else None


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``level`` into a numeric logging level.

    An explicit but unrecognized name raises ``ConfigError``. When ``level``
    is ``None`` the ``BILL_CONVERT_LOG_LEVEL`` variable is consulted; a bad
    value there is ignored in favour of ``INFO``.
    """

    if isinstance(level, int):
        return level
    if level is not None:
        numeric = _lookup(level)
        if numeric is None:
            raise ConfigError(f"unknown log level {level!r}")
        return numeric
    env_val = os.getenv(LEVEL_ENV)
    if env_val:
        numeric = _lookup(env_val)
        if numeric is not None:
            return numeric
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Route package logs to ``stream`` (``sys.stderr`` by default).

    Replaces the handler installed by a previous call and returns the new one.
    """

    global _handler
    resolved = resolve_level(level)
    logger = logging.getLogger(_PKG_LOGGER_NAME)

    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler) or h is _handler:
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FMT))
    logger.addHandler(handler)
    logger.setLevel(resolved)
    logger.propagate = False

    _handler = handler
    return handler


def reset_logging() -> None:
    """Detach every package handler and restore propagation."""

    global _handler
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    _handler = None


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["LEVEL_ENV", "configure_logging", "get_logger", "reset_logging", "resolve_level"]
