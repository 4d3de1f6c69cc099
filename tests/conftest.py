"""Shared fixtures: two simulated chips, no hardware needed."""

from collections.abc import Generator

import pytest

from gpioline import Chip
from gpioline.backend.mock import MockBackend, MockChip


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def backend() -> MockBackend:
    """Simulated backend with gpiochip0 (8 lines) and gpiochip1 (4 lines)."""
    return MockBackend(
        [
            MockChip(
                name="gpiochip0",
                label="pinctrl-mock",
                num_lines=8,
                line_names={0: "LED", 1: "BUTTON", 5: "RESET"},
            ),
            MockChip(name="gpiochip1", label="expander", num_lines=4),
        ]
    )


@pytest.fixture
def chip(backend: MockBackend) -> Generator[Chip, None, None]:
    """gpiochip0, closed after the test."""
    chip = Chip.open("gpiochip0", backend)
    yield chip
    chip.close()
