"""Logging helpers shared by the CLI, the service and the analysis pipeline."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

ROOT_LOGGER = "perflens"
ENV_LOG_LEVEL = "PERFLENS_LOG_LEVEL"

CONSOLE_FORMAT = "[perflens] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s]: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``perflens.<name>``, or the package root logger when no name is given."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


def _resolve_level(verbose: bool) -> int:
    if verbose:
        return logging.DEBUG
    configured = os.getenv(ENV_LOG_LEVEL, "").strip().upper()
    level = logging.getLevelName(configured) if configured else logging.INFO
    return level if isinstance(level, int) else logging.INFO


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route perflens records to stderr and, optionally, to ``log_file``.

    ``--verbose`` wins over ``PERFLENS_LOG_LEVEL``. The file sink always records
    debug output so a long run can be inspected after the fact.
    """
    level = _resolve_level(verbose)
    logger = logging.getLogger(ROOT_LOGGER)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(logging.DEBUG)
        sink.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(sink)
        level = logging.DEBUG

    logger.setLevel(level)
    return logger


__all__ = ["configure_logging", "get_logger"]
