from __future__ import annotations

import logging
from collections.abc import Iterator
from types import TracebackType

from gpioline.backend import get_default_backend
from gpioline.backend.base import ChipDescriptor, GpioBackend
from gpioline.chip import Chip
from gpioline.exceptions import GpioError

_LOGGER = logging.getLogger(__name__)


class ChipIter:
    """Cursor over the chips present on the host.

    ``next`` hands the chip over to the caller, who has to close it.
    ``next_noclose`` keeps it owned by the iterator, which closes it in
    ``close``.
    """

    def __init__(
        self, backend: GpioBackend, descriptors: Iterator[ChipDescriptor]
    ) -> None:
        self._backend = backend
        self._descriptors: Iterator[ChipDescriptor] | None = descriptors
        self._owned: list[Chip] = []

    @classmethod
    def open(cls, backend: GpioBackend | None = None) -> ChipIter | None:
        backend = backend if backend is not None else get_default_backend()
        try:
            descriptors = backend.enumerate_controllers()
        except (OSError, GpioError) as err:
            _LOGGER.debug("Unable to enumerate GPIO chips: %s", err)
            return None
        return cls(backend, descriptors)

    def __enter__(self) -> ChipIter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __iter__(self) -> Iterator[Chip]:
        while (chip := self.next()) is not None:
            yield chip

    def _advance(self) -> Chip | None:
        if self._descriptors is None:
            return None
        descriptor = next(self._descriptors, None)
        if descriptor is None:
            return None
        return Chip(self._backend, descriptor)

    def next(self) -> Chip | None:
        return self._advance()

    def next_noclose(self) -> Chip | None:
        chip = self._advance()
        if chip is not None:
            self._owned.append(chip)
        return chip

    def close(self) -> None:
        descriptors, self._descriptors = self._descriptors, None
        close = getattr(descriptors, "close", None)
        if callable(close):
            close()
        owned, self._owned = self._owned, []
        for chip in owned:
            chip.close()


def chip_iter(backend: GpioBackend | None = None) -> ChipIter | None:
    return ChipIter.open(backend=backend)
