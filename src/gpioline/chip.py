from __future__ import annotations

import logging
from collections.abc import Iterable
from types import TracebackType

from gpioline.backend import get_default_backend
from gpioline.backend.base import ChipDescriptor, GpioBackend
from gpioline.bulk import LineBulk
from gpioline.exceptions import (
    ClosedResourceError,
    GpioError,
    LineNotFoundError,
    RequestFailedError,
)
from gpioline.line import Line
from gpioline.registry import REGISTRY, ChipEntry

_LOGGER = logging.getLogger(__name__)


class Chip:
    """An open GPIO chip, the source of all its lines.

    The chip exclusively owns its descriptor. Closing it releases every
    request still held through it; lines and groups obtained from it raise
    ``ClosedResourceError`` afterwards.
    """

    def __init__(self, backend: GpioBackend, descriptor: ChipDescriptor) -> None:
        try:
            self._info = backend.chip_info(descriptor)
        except GpioError:
            backend.close_controller(descriptor)
            raise
        self._key: int | None = REGISTRY.register(backend, descriptor, self._info.name)

    @classmethod
    def open(cls, identifier: str | int, backend: GpioBackend | None = None) -> Chip:
        """Open a chip by name (``gpiochip0``), falling back to its index (``0``)."""
        backend = backend if backend is not None else get_default_backend()
        chip = cls(backend, backend.open_controller(str(identifier)))
        _LOGGER.debug(
            "Opened chip %s [%s] with %s lines",
            chip._info.name,
            chip._info.label,
            chip._info.num_lines,
        )
        return chip

    def __enter__(self) -> Chip:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<Chip {self._info.name} [{self._info.label}] {state}>"

    def _entry(self) -> ChipEntry:
        if self._key is None:
            raise ClosedResourceError(f"Chip {self._info.name} is closed")
        return REGISTRY.lookup(self._key)

    @property
    def closed(self) -> bool:
        return self._key is None or self._key not in REGISTRY

    @property
    def name(self) -> str:
        self._entry()
        return self._info.name

    @property
    def label(self) -> str:
        self._entry()
        return self._info.label

    @property
    def num_lines(self) -> int:
        self._entry()
        return self._info.num_lines

    def _line(self, entry: ChipEntry, offset: int) -> Line:
        assert self._key is not None
        return Line(self._key, offset, entry.backend.line_info(entry.descriptor, offset))

    def get_line(self, offset: int) -> Line:
        entry = self._entry()
        if not 0 <= offset < self._info.num_lines:
            raise LineNotFoundError(
                f"Chip {self._info.name} has no line {offset}"
                f" ({self._info.num_lines} lines)"
            )
        return self._line(entry, offset)

    def get_lines(self, offsets: Iterable[int]) -> LineBulk:
        """Group of lines in the given order, duplicates kept."""
        entry = self._entry()
        offsets = list(offsets)
        invalid = [o for o in offsets if not 0 <= o < self._info.num_lines]
        if invalid:
            raise RequestFailedError(
                f"Chip {self._info.name} has no lines {invalid}"
                f" ({self._info.num_lines} lines)"
            )
        assert self._key is not None
        return LineBulk(
            self._key, offsets, [self._line(entry, offset) for offset in offsets]
        )

    def get_all_lines(self) -> LineBulk:
        return self.get_lines(range(self.num_lines))

    def find_line(self, name: str) -> Line | None:
        """First line called ``name``, ``None`` if there is none."""
        entry = self._entry()
        offset = entry.backend.find_line(entry.descriptor, name)
        if offset is None:
            return None
        return self._line(entry, offset)

    def close(self) -> None:
        if self._key is None:
            return
        key, self._key = self._key, None
        REGISTRY.close(key)


def chip_open(identifier: str | int, backend: GpioBackend | None = None) -> Chip:
    return Chip.open(identifier, backend=backend)
