"""Tests for chip enumeration."""

from collections.abc import Iterator

import pytest

from gpioline import ChipIter, ClosedResourceError, chip_iter
from gpioline.backend.mock import MockBackend, MockChip, MockChipHandle


class _DeniedBackend(MockBackend):
    def enumerate_controllers(self) -> Iterator[MockChipHandle]:
        raise PermissionError("/dev is not readable")


def test_chips_in_name_order(backend: MockBackend) -> None:
    iterator = ChipIter.open(backend)
    assert iterator is not None
    with iterator:
        names = []
        for chip in iterator:
            with chip:
                names.append(chip.name)
    assert names == ["gpiochip0", "gpiochip1"]


def test_next_hands_over_chip(backend: MockBackend) -> None:
    """Chips from next() outlive the iterator."""
    iterator = ChipIter.open(backend)
    assert iterator is not None
    chip = iterator.next()
    assert chip is not None
    iterator.close()
    assert not chip.closed
    assert chip.label == "pinctrl-mock"
    chip.close()


def test_next_noclose_keeps_chip(backend: MockBackend) -> None:
    """Chips from next_noclose() are closed with the iterator."""
    iterator = ChipIter.open(backend)
    assert iterator is not None
    first = iterator.next_noclose()
    second = iterator.next_noclose()
    assert first is not None and second is not None
    assert second.name == "gpiochip1"
    assert iterator.next_noclose() is None
    iterator.close()
    assert first.closed
    assert second.closed


def test_exhausted_and_closed(backend: MockBackend) -> None:
    iterator = chip_iter(backend)
    assert iterator is not None
    iterator.close()
    iterator.close()
    assert iterator.next() is None
    assert iterator.next_noclose() is None
    assert list(iterator) == []


def test_enumeration_failure() -> None:
    """A host whose chips cannot be listed gives no iterator."""
    assert ChipIter.open(_DeniedBackend([MockChip(name="gpiochip0")])) is None


def test_no_chips() -> None:
    iterator = ChipIter.open(MockBackend([]))
    assert iterator is not None
    assert iterator.next() is None
    iterator.close()


def test_iterated_chip_is_usable(backend: MockBackend) -> None:
    with ChipIter.open(backend) as iterator:
        chip = iterator.next_noclose()
        line = chip.get_line(0)
        line.request_output("test", 1)
        assert line.get_value() == 1
    with pytest.raises(ClosedResourceError):
        line.get_value()
