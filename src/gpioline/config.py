from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal, TypeAlias

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from gpioline.exceptions import ConfigurationError

_LOGGER = logging.getLogger(__name__)

CONFIG_ENV = "GPIOLINE_CONFIG"
DEFAULT_CONSUMER = "gpioline"

LoggerLevels: TypeAlias = Literal[
    "critical", "error", "warning", "warn", "info", "debug", "notset"
]


class LoggerConfig(BaseModel):
    default: LoggerLevels | None = None
    logs: dict[str, LoggerLevels] = Field(default_factory=dict)


class MockChipConfig(BaseModel):
    name: str
    label: str = "gpio-mock"
    num_lines: int = Field(default=32, ge=0)
    line_names: dict[int, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _names_within_chip(self) -> MockChipConfig:
        outside = [o for o in self.line_names if not 0 <= o < self.num_lines]
        if outside:
            raise ValueError(
                f"line_names offsets {outside} outside of {self.num_lines} lines"
            )
        return self


class MockConfig(BaseModel):
    chips: list[MockChipConfig] = Field(
        default_factory=lambda: [MockChipConfig(name="gpiochip0")]
    )

    @model_validator(mode="after")
    def _unique_names(self) -> MockConfig:
        names = [chip.name for chip in self.chips]
        if len(names) != len(set(names)):
            raise ValueError("mock chip names must be unique")
        return self


class Config(BaseModel):
    backend: Literal["gpiod", "mock"] = "gpiod"
    consumer: str = DEFAULT_CONSUMER
    logger: LoggerConfig | None = None
    mock: MockConfig = Field(default_factory=MockConfig)


def load_config(config_file_path: Path) -> Config:
    """Load and validate a YAML configuration file."""
    _LOGGER.debug("Loading config from %s", config_file_path)
    try:
        with config_file_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as err:
        raise ConfigurationError(f"Cannot read {config_file_path}: {err}") from err
    except yaml.YAMLError as err:
        raise ConfigurationError(f"Invalid YAML in {config_file_path}: {err}") from err
    try:
        return Config.model_validate(data or {})
    except ValidationError as err:
        raise ConfigurationError(f"Invalid config {config_file_path}: {err}") from err
