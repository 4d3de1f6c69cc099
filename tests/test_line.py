"""Tests for single line requests, values and metadata."""

import pytest

from gpioline import (
    ACTIVE_LOW,
    BIAS_PULL_UP,
    OPEN_DRAIN,
    OPEN_SOURCE,
    ActiveState,
    Bias,
    Chip,
    ClosedResourceError,
    Direction,
    IOFailureError,
    ReleasedResourceError,
    RequestFailedError,
    RequestOptions,
    RequestType,
)
from gpioline.backend.mock import MockBackend


def test_output_round_trip(chip: Chip) -> None:
    """Drive line 4 high, read it back, then lose access on release."""
    line = chip.get_line(4)
    line.request_output("test", 0)
    assert line.get_value() == 0
    line.set_value(1)
    assert line.get_value() == 1
    line.release()
    with pytest.raises(ReleasedResourceError):
        line.get_value()


def test_release_is_idempotent(chip: Chip) -> None:
    """Releasing twice is fine, values are out of reach afterwards."""
    line = chip.get_line(2)
    line.request_output("test", 1)
    line.release()
    line.release()
    assert line.is_released
    with pytest.raises(ReleasedResourceError):
        line.set_value(0)
    with pytest.raises(ReleasedResourceError):
        line.get_value()


def test_values_need_request(chip: Chip) -> None:
    """An unrequested line cannot be read or written."""
    line = chip.get_line(3)
    with pytest.raises(ReleasedResourceError):
        line.get_value()
    with pytest.raises(ReleasedResourceError):
        line.set_value(1)


def test_request_twice(chip: Chip) -> None:
    """A requested line has to be released before another request."""
    line = chip.get_line(3)
    line.request_input("test")
    with pytest.raises(RequestFailedError):
        line.request_output("test", 1)


def test_request_after_release(chip: Chip) -> None:
    """Released is final."""
    line = chip.get_line(3)
    line.request_input("test")
    line.release()
    with pytest.raises(ReleasedResourceError):
        line.request_input("test")


def test_line_is_exclusive(chip: Chip) -> None:
    """A line held by one consumer cannot be requested by another."""
    first = chip.get_line(6)
    second = chip.get_line(6)
    first.request_input("first")
    with pytest.raises(RequestFailedError):
        second.request_input("second")
    first.release()
    second.request_input("second")
    assert second.consumer == "second"


def test_input_reads_bias_level(chip: Chip) -> None:
    """Unconnected inputs read low, or high with a pull-up."""
    plain = chip.get_line(0)
    plain.request_input("test")
    assert plain.get_value() == 0

    pulled = chip.get_line(1)
    pulled.request_input("test", BIAS_PULL_UP)
    assert pulled.get_value() == 1
    assert pulled.bias is Bias.PULL_UP

    inverted = chip.get_line(2)
    inverted.request_input("test", BIAS_PULL_UP | ACTIVE_LOW)
    assert inverted.get_value() == 0


def test_simulated_input_level(chip: Chip, backend: MockBackend) -> None:
    """Values driven from the outside are seen by the input."""
    line = chip.get_line(7)
    line.request_input("test")
    backend.simulate_edge("gpiochip0", 7, 1)
    assert line.get_value() == 1


def test_metadata_after_request(chip: Chip) -> None:
    """Accessors reflect the request."""
    line = chip.get_line(0)
    assert not line.is_used
    assert line.consumer is None
    line.request_output("blinker", 1, ACTIVE_LOW | OPEN_DRAIN)
    assert line.is_used
    assert line.consumer == "blinker"
    assert line.name == "LED"
    assert line.direction is Direction.OUTPUT
    assert line.active_state is ActiveState.LOW
    assert line.is_open_drain
    assert not line.is_open_source
    assert line.request_type is RequestType.OUTPUT


def test_named_options(chip: Chip) -> None:
    """Options can be given by name instead of flag bits."""
    line = chip.get_line(1)
    line.request_output("test", 0, RequestOptions(drive="OPEN_SOURCE"))
    assert line.is_open_source
    assert line.active_state is ActiveState.HIGH


def test_drive_needs_output(chip: Chip) -> None:
    """Open-drain and open-source only apply to outputs."""
    line = chip.get_line(1)
    with pytest.raises(RequestFailedError):
        line.request_input("test", OPEN_SOURCE)
    assert not line.is_requested


def test_invalid_flags(chip: Chip) -> None:
    """Unknown or contradictory flags never reach the driver."""
    line = chip.get_line(1)
    with pytest.raises(RequestFailedError):
        line.request_input("test", 1 << 10)
    with pytest.raises(RequestFailedError):
        line.request_output("test", 0, OPEN_DRAIN | OPEN_SOURCE)
    line.request_input("test")


def test_set_value_on_input(chip: Chip) -> None:
    """Inputs cannot be driven."""
    line = chip.get_line(4)
    line.request_input("test")
    with pytest.raises(IOFailureError):
        line.set_value(1)


def test_update_refreshes_metadata(chip: Chip) -> None:
    """Metadata is cached until update()."""
    observer = chip.get_line(3)
    owner = chip.get_line(3)
    owner.request_input("owner")
    assert not observer.is_used
    observer.update()
    assert observer.is_used
    assert observer.consumer == "owner"


def test_accessors_after_release(chip: Chip) -> None:
    """Metadata of a released line is unavailable."""
    line = chip.get_line(3)
    line.release()
    for attribute in ("offset", "name", "consumer", "direction", "bias", "is_used"):
        with pytest.raises(ReleasedResourceError):
            getattr(line, attribute)
    with pytest.raises(ReleasedResourceError):
        line.update()


def test_line_after_chip_close(backend: MockBackend) -> None:
    """A closed chip takes its lines with it, releasing them stays defined."""
    chip = Chip.open("gpiochip0", backend)
    line = chip.get_line(4)
    line.request_output("test", 1)
    chip.close()
    with pytest.raises(ClosedResourceError):
        line.get_value()
    with pytest.raises(ClosedResourceError):
        line.name
    line.release()
    line.release()


def test_line_context_manager(chip: Chip) -> None:
    """Leaving the with block releases the line."""
    with chip.get_line(4) as line:
        line.request_output("test", 1)
    assert line.is_released
    assert not chip.get_line(4).is_used
