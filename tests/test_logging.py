"""Tests for blueprint.logging."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from blueprint.errors import ConfigurationError
from blueprint.logging import configure_logging, get_logger


def test_get_logger_nests_under_blueprint() -> None:
    assert get_logger("reflection").name == "blueprint.reflection"
    assert get_logger().name == "blueprint"


def test_console_shows_warnings_with_subsystem(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging()

    get_logger("reflection").info("hidden")
    get_logger("reflection").warning("Skipping unreadable file")

    err = capsys.readouterr().err
    assert "hidden" not in err
    assert "[blueprint] WARNING reflection: Skipping unreadable file" in err


def test_verbose_shows_debug(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(verbose=True)

    get_logger("extractor").debug("Ignoring malformed docblock")

    assert "DEBUG extractor: Ignoring malformed docblock" in capsys.readouterr().err


def test_log_file_receives_debug_records(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    log_file = tmp_path / "logs" / "run.log"
    logger = configure_logging(log_file=log_file)

    get_logger("generator").debug("Filtered out 3 definitions")
    for handler in logger.handlers:
        handler.flush()

    assert "blueprint.generator: Filtered out 3 definitions" in log_file.read_text(encoding="utf-8")
    assert "Filtered out" not in capsys.readouterr().err


def test_unopenable_log_file_raises(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Cannot open log file"):
        configure_logging(log_file=blocker / "run.log")


def test_reconfiguring_replaces_handlers() -> None:
    configure_logging()
    logger = configure_logging(verbose=True)

    assert len(logger.handlers) == 1
    assert logger.handlers[0].level == logging.DEBUG
