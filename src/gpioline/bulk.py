from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from types import TracebackType

from gpioline.exceptions import (
    IndexOutOfRangeError,
    IOFailureError,
    ReleasedResourceError,
    RequestFailedError,
)
from gpioline.flags import Flags, to_options
from gpioline.line import Line
from gpioline.models import RequestType
from gpioline.registry import REGISTRY, ChipEntry, RequestHandle

_LOGGER = logging.getLogger(__name__)


class LineBulk:
    """Fixed, ordered group of lines requested and driven together.

    Value sequences passed in or returned correspond index by index to the
    offsets the group was created from, duplicates included. A sequence of
    the wrong length is rejected before the driver is touched.

    ``set_values`` is not transactional: if the driver fails half way, the
    state of the lines is undefined and nothing is rolled back.
    """

    def __init__(self, chip_key: int, offsets: Sequence[int], lines: Sequence[Line]) -> None:
        if len(offsets) != len(lines):
            raise ValueError("offsets and lines differ in length")
        self._chip_key = chip_key
        self._offsets = tuple(offsets)
        self._lines = tuple(lines)
        self._request: RequestHandle | None = None
        self._released = False

    def __enter__(self) -> LineBulk:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[Line]:
        return iter(self._lines)

    def __repr__(self) -> str:
        return f"<LineBulk offsets={list(self._offsets)}>"

    @property
    def num_lines(self) -> int:
        return len(self._lines)

    @property
    def offsets(self) -> tuple[int, ...]:
        return self._offsets

    @property
    def is_requested(self) -> bool:
        return not self._released and self._request is not None

    @property
    def is_released(self) -> bool:
        return self._released

    def get_line(self, index: int) -> Line:
        if not 0 <= index < len(self._lines):
            raise IndexOutOfRangeError(
                f"Index {index} out of range for {len(self._lines)} lines"
            )
        return self._lines[index]

    def _check_handle(self) -> ChipEntry:
        entry = REGISTRY.lookup(self._chip_key)
        if self._released:
            raise ReleasedResourceError("Line group is released")
        return entry

    def _active_request(self) -> tuple[ChipEntry, RequestHandle]:
        entry = self._check_handle()
        if self._request is None or self._request.released:
            raise ReleasedResourceError("Line group is not requested")
        return entry, self._request

    def _check_values(self, values: Iterable[int], what: str) -> list[int]:
        checked = [1 if value else 0 for value in values]
        if len(checked) != len(self._lines):
            raise RequestFailedError(
                f"Expected {len(self._lines)} {what}, got {len(checked)}"
            )
        return checked

    def _request_as(
        self,
        consumer: str,
        request_type: RequestType,
        flags: Flags,
        defaults: list[int] | None = None,
    ) -> None:
        entry = self._check_handle()
        if self._request is not None:
            raise RequestFailedError("Line group is already requested")
        taken = [line for line in self._lines if line.is_requested or line.is_released]
        if taken:
            raise RequestFailedError(
                f"Lines {[line._offset for line in taken]} are already requested or released"
            )
        options = to_options(flags)
        options.check_for(request_type)

        ref = None
        if self._lines:
            ref = entry.backend.request_line_group(
                entry.descriptor,
                self._offsets,
                request_type,
                consumer,
                options,
                defaults,
            )
        request = RequestHandle(
            chip_key=self._chip_key,
            ref=ref,
            offsets=self._offsets,
            request_type=request_type,
            group=True,
        )
        self._request = REGISTRY.track(request) if ref is not None else request
        for line in self._lines:
            line._attach(entry, request)
        _LOGGER.debug(
            "[%s] lines %s requested as %s by %s",
            entry.name,
            list(self._offsets),
            request_type.value,
            consumer,
        )

    def request_input(self, consumer: str, flags: Flags = None) -> None:
        self._request_as(consumer, RequestType.INPUT, flags)

    def request_output(
        self, consumer: str, default_values: Iterable[int], flags: Flags = None
    ) -> None:
        """Request every line as output, ``default_values`` index by index."""
        self._check_handle()
        defaults = self._check_values(default_values, "default values")
        self._request_as(consumer, RequestType.OUTPUT, flags, defaults)

    def get_values(self) -> list[int]:
        entry, request = self._active_request()
        if not self._lines:
            return []
        values = entry.backend.read_values(request.ref)
        if len(values) != len(self._lines):
            raise IOFailureError(
                f"Driver returned {len(values)} values for {len(self._lines)} lines"
            )
        return values

    def set_values(self, values: Iterable[int]) -> None:
        entry, request = self._active_request()
        checked = self._check_values(values, "values")
        if not self._lines:
            return
        entry.backend.write_values(request.ref, checked)

    def release(self) -> None:
        """Release every line of the group."""
        if self._released:
            return
        self._released = True
        request, self._request = self._request, None
        for line in self._lines:
            # Members requested on their own hold a request of their own.
            line.release()
        if request is None:
            return
        entry = REGISTRY.get(self._chip_key)
        if entry is None:
            if request.ref is not None:
                _LOGGER.debug(
                    "Lines %s released after their chip was closed",
                    list(self._offsets),
                )
            return
        entry.release(request)
