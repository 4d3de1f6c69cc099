"""Shared logging configuration for gpioline."""

import logging
import os
import tempfile
from logging import Formatter
from logging.handlers import RotatingFileHandler
from pathlib import Path

from colorlog import ColoredFormatter

from gpioline.config import CONFIG_ENV, LoggerConfig
from gpioline.version import __version__

_LOGGER = logging.getLogger(__name__)
_nameToLevel = {
    "CRITICAL": logging.CRITICAL,
    "FATAL": logging.FATAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_console_handler: logging.Handler | None = None
_file_handler: logging.Handler | None = None


def get_log_level(level_name: str) -> int:
    """Convert string log level to logging constant."""
    return _nameToLevel.get(level_name.upper(), logging.INFO)


def is_running_under_systemd() -> bool:
    return os.getenv("JOURNAL_STREAM") is not None


def get_log_formatter(color: bool = True) -> Formatter:
    """Get log formatter with optional color support."""
    # journald adds its own timestamp
    if is_running_under_systemd():
        log_format = "%(levelname)s [%(name)s] %(message)s"
    else:
        log_format = LOG_FORMAT

    if color:
        return ColoredFormatter(
            fmt="%(log_color)s" + log_format + "%(reset)s",
            datefmt=DATE_FORMAT,
            reset=True,
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red",
            },
        )
    return Formatter(log_format, datefmt=DATE_FORMAT)


def setup_logging(debug_level: int = 0) -> None:
    """Console logging, plus a rotating file when ``debug_level > 1``."""
    global _console_handler, _file_handler
    level = logging.INFO if debug_level == 0 else logging.DEBUG
    root = logging.getLogger()
    root.setLevel(level)

    # Calling again replaces the handlers instead of stacking more.
    if _console_handler is not None:
        root.removeHandler(_console_handler)
    if _file_handler is not None:
        root.removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None
    _console_handler = logging.StreamHandler()
    _console_handler.setLevel(level)
    _console_handler.setFormatter(get_log_formatter(color=True))
    root.addHandler(_console_handler)

    if debug_level > 1:
        config_path = os.environ.get(CONFIG_ENV)
        if config_path:
            log_dir = Path(config_path).parent
        else:
            log_dir = Path(tempfile.gettempdir()) / "gpioline"
            log_dir.mkdir(exist_ok=True, mode=0o700)
        log_file = log_dir / "gpioline.log"

        _file_handler = RotatingFileHandler(
            str(log_file),
            maxBytes=10 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        _file_handler.setFormatter(get_log_formatter(color=False))
        _file_handler.setLevel(logging.DEBUG)
        root.addHandler(_file_handler)
        _LOGGER.info("File logging enabled at: %s", log_file)


def configure_logger(debug: int, log_config: LoggerConfig | None = None) -> None:
    """Apply per-logger levels from the config file on top of ``debug``."""
    if log_config is not None:
        if log_config.default is not None:
            logging.getLogger().setLevel(get_log_level(log_config.default))
        for log_key, log_level in log_config.logs.items():
            _LOGGER.info("Setting %s log level to %s", log_key, log_level)
            logging.getLogger(log_key).setLevel(get_log_level(log_level))

    if debug > 0:
        logging.getLogger("gpioline").setLevel(logging.DEBUG)
        _LOGGER.debug("gpioline version is %s", __version__)
