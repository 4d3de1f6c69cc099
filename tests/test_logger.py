"""Tests for logging setup."""

import logging
from collections.abc import Generator
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from gpioline.config import CONFIG_ENV, LoggerConfig
from gpioline.logger import configure_logger, get_log_level, setup_logging


@pytest.fixture(autouse=True)
def restore_logging() -> Generator[None, None, None]:
    root = logging.getLogger()
    level = root.level
    yield
    setup_logging(0)
    root.setLevel(level)
    logging.getLogger("gpioline").setLevel(logging.NOTSET)
    logging.getLogger("gpioline.chip").setLevel(logging.NOTSET)


def _file_handlers() -> list[logging.Handler]:
    return [
        handler
        for handler in logging.getLogger().handlers
        if isinstance(handler, RotatingFileHandler)
    ]


def test_repeated_setup_keeps_one_file_handler(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv(CONFIG_ENV, str(tmp_path / "config.yaml"))
    setup_logging(2)
    setup_logging(2)
    handlers = _file_handlers()
    assert len(handlers) == 1
    assert Path(handlers[0].baseFilename) == tmp_path / "gpioline.log"
    setup_logging(1)
    assert _file_handlers() == []


def test_setup_level() -> None:
    setup_logging(0)
    assert logging.getLogger().level == logging.INFO
    setup_logging(1)
    assert logging.getLogger().level == logging.DEBUG


@pytest.mark.parametrize(
    "name, level",
    [("debug", logging.DEBUG), ("WARN", logging.WARNING), ("bogus", logging.INFO)],
)
def test_get_log_level(name: str, level: int) -> None:
    assert get_log_level(name) == level


def test_configure_logger() -> None:
    configure_logger(0, LoggerConfig(default="warning", logs={"gpioline.chip": "debug"}))
    assert logging.getLogger().level == logging.WARNING
    assert logging.getLogger("gpioline.chip").level == logging.DEBUG
    configure_logger(1)
    assert logging.getLogger("gpioline").level == logging.DEBUG
