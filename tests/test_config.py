"""Tests for the YAML configuration."""

from pathlib import Path

import pytest

from gpioline import ConfigurationError
from gpioline.backend import create_backend
from gpioline.backend.mock import MockBackend
from gpioline.config import DEFAULT_CONSUMER, Config, load_config


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")
    return path


def test_empty_file_gives_defaults(tmp_path: Path) -> None:
    config = load_config(_write(tmp_path, ""))
    assert config == Config()
    assert config.backend == "gpiod"
    assert config.consumer == DEFAULT_CONSUMER
    assert [chip.name for chip in config.mock.chips] == ["gpiochip0"]


def test_full_config(tmp_path: Path) -> None:
    config = load_config(
        _write(
            tmp_path,
            """
backend: mock
consumer: doorbell
logger:
  default: warning
  logs:
    gpioline.chip: debug
mock:
  chips:
    - name: gpiochip0
      label: pinctrl
      num_lines: 4
      line_names:
        0: BELL
        3: LIGHT
    - name: gpiochip1
""",
        )
    )
    assert config.backend == "mock"
    assert config.consumer == "doorbell"
    assert config.logger is not None
    assert config.logger.default == "warning"
    assert config.logger.logs == {"gpioline.chip": "debug"}
    first, second = config.mock.chips
    assert first.line_names == {0: "BELL", 3: "LIGHT"}
    assert second.num_lines == 32


@pytest.mark.parametrize(
    "content",
    [
        "backend: sysfs\n",
        "logger:\n  default: loud\n",
        "mock:\n  chips:\n    - name: a\n    - name: a\n",
        "mock:\n  chips:\n    - name: a\n      num_lines: 2\n      line_names: {5: X}\n",
        "mock:\n  chips:\n    - name: a\n      num_lines: -1\n",
        "backend: [mock\n",
        "- just\n- a list\n",
    ],
)
def test_invalid_config(tmp_path: Path, content: str) -> None:
    with pytest.raises(ConfigurationError):
        load_config(_write(tmp_path, content))


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_config(tmp_path / "absent.yaml")


def test_create_mock_backend(tmp_path: Path) -> None:
    config = load_config(
        _write(
            tmp_path,
            "backend: mock\nmock:\n  chips:\n    - name: gpiochip3\n      num_lines: 2\n",
        )
    )
    backend = create_backend(config)
    assert isinstance(backend, MockBackend)
    assert list(backend.chips) == ["gpiochip3"]
    assert backend.chips["gpiochip3"].num_lines == 2
