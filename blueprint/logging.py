"""Logging utilities for blueprint commands."""

from __future__ import annotations

import logging
from pathlib import Path

from .errors import ConfigurationError

_LOGGER_NAME = "blueprint"

_CONSOLE_FORMAT = "[blueprint] %(levelname)s %(subsystem)s%(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class _SubsystemFilter(logging.Filter):
    """Adds ``subsystem`` ("reflection: ", "config: ", ...) for the console format."""

    def filter(self, record: logging.LogRecord) -> bool:
        prefix = f"{_LOGGER_NAME}."
        record.subsystem = f"{record.name[len(prefix):]}: " if record.name.startswith(prefix) else ""
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the blueprint hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | str | None = None
) -> logging.Logger:
    """Send warnings (or everything with ``verbose``) to stderr, and all records to ``log_file``.

    Raises ConfigurationError when the log file cannot be opened.
    """
    console_level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file is not None else console_level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when the CLI is invoked multiple times.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(console_level)
    stream_handler.addFilter(_SubsystemFilter())
    stream_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(stream_handler)

    if log_file is not None:
        logger.addHandler(_file_handler(Path(log_file)))

    return logger


def _file_handler(path: Path) -> logging.Handler:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot open log file {path}: {exc}") from exc
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT))
    return handler


__all__ = ["configure_logging", "get_logger"]
