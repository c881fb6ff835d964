"""Logging utilities for struct-mapper."""

from __future__ import annotations

import logging

_LOGGER_NAME = "struct_mapper"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the struct_mapper hierarchy."""
    if name and name.startswith(f"{_LOGGER_NAME}."):
        name = name[len(_LOGGER_NAME) + 1 :]
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(*, verbose: bool = False) -> logging.Logger:
    """Configure the struct_mapper logger with console output."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when the CLI is invoked multiple times.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[struct-mapper] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]
