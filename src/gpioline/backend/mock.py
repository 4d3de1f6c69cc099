"""Simulated GPIO chips.

Lines loop back: what an output drives is what is read back, an unconnected
input reads its bias level. Input levels are changed from the outside with
``simulate_edge``, which queues edge events for lines watching them and
signals them through a pipe, so ``get_pollable_handle`` works with
``select`` and event loops.
"""

from __future__ import annotations

import logging
import os
import select
import time
from collections import deque
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from datetime import timedelta

from gpioline.backend.base import GpioBackend
from gpioline.config import MockConfig
from gpioline.event import LineEvent
from gpioline.exceptions import (
    ClosedResourceError,
    DeviceNotFoundError,
    IOFailureError,
    LineNotFoundError,
    ReleasedResourceError,
    RequestFailedError,
)
from gpioline.flags import RequestOptions
from gpioline.models import (
    Bias,
    ChipInfo,
    Direction,
    EventType,
    LineInfo,
    RequestType,
)
from gpioline.version import __version__

_LOGGER = logging.getLogger(__name__)


@dataclass
class _MockLine:
    offset: int
    name: str | None = None
    level: int | None = None
    direction: Direction = Direction.INPUT
    options: RequestOptions = field(default_factory=RequestOptions)
    request: MockRequest | None = None

    @property
    def physical(self) -> int:
        if self.level is not None:
            return self.level
        return 1 if self.options.bias is Bias.PULL_UP else 0

    @property
    def logical(self) -> int:
        return self.physical ^ int(self.options.active_low)


@dataclass
class MockChip:
    name: str
    label: str = "gpio-mock"
    num_lines: int = 32
    line_names: dict[int, str] = field(default_factory=dict)
    lines: list[_MockLine] = field(init=False)

    def __post_init__(self) -> None:
        self.lines = [
            _MockLine(offset=offset, name=self.line_names.get(offset))
            for offset in range(self.num_lines)
        ]


@dataclass(eq=False)
class MockChipHandle:
    chip: MockChip
    closed: bool = False
    requests: list[MockRequest] = field(default_factory=list)


@dataclass(eq=False)
class MockRequest:
    chip: MockChip
    offsets: tuple[int, ...]
    request_type: RequestType
    consumer: str
    events: deque[LineEvent] = field(default_factory=deque)
    read_fd: int | None = None
    write_fd: int | None = None
    released: bool = False


class MockBackend(GpioBackend):
    def __init__(self, chips: Iterable[MockChip]) -> None:
        self.chips: dict[str, MockChip] = {chip.name: chip for chip in chips}

    @classmethod
    def from_config(cls, config: MockConfig) -> MockBackend:
        return cls(
            MockChip(
                name=chip.name,
                label=chip.label,
                num_lines=chip.num_lines,
                line_names=dict(chip.line_names),
            )
            for chip in config.chips
        )

    def _chip(self, handle: MockChipHandle) -> MockChip:
        if handle.closed:
            raise ClosedResourceError(f"Chip {handle.chip.name} is closed")
        return handle.chip

    @staticmethod
    def _live(ref: MockRequest) -> MockRequest:
        if ref.released:
            raise ReleasedResourceError(f"Lines {list(ref.offsets)} are released")
        return ref

    def open_controller(self, name_or_index: str) -> MockChipHandle:
        chip = self.chips.get(name_or_index)
        if chip is None and name_or_index.isdigit():
            chip = self.chips.get(f"gpiochip{int(name_or_index)}")
        if chip is None:
            raise DeviceNotFoundError(f"Failed to open GPIO chip: {name_or_index}")
        return MockChipHandle(chip=chip)

    def enumerate_controllers(self) -> Iterator[MockChipHandle]:
        return (MockChipHandle(chip=self.chips[name]) for name in sorted(self.chips))

    def close_controller(self, descriptor: MockChipHandle) -> None:
        for request in list(descriptor.requests):
            self.release_group(request)
        descriptor.requests.clear()
        descriptor.closed = True

    def chip_info(self, descriptor: MockChipHandle) -> ChipInfo:
        chip = self._chip(descriptor)
        return ChipInfo(name=chip.name, label=chip.label, num_lines=chip.num_lines)

    def line_info(self, descriptor: MockChipHandle, offset: int) -> LineInfo:
        chip = self._chip(descriptor)
        if not 0 <= offset < chip.num_lines:
            raise LineNotFoundError(f"Chip {chip.name} has no line {offset}")
        line = chip.lines[offset]
        return LineInfo(
            offset=offset,
            name=line.name,
            consumer=line.request.consumer if line.request else None,
            used=line.request is not None,
            direction=line.direction,
            active_low=line.options.active_low,
            bias=line.options.bias,
            drive=line.options.drive,
        )

    def find_line(self, descriptor: MockChipHandle, name: str) -> int | None:
        chip = self._chip(descriptor)
        for line in chip.lines:
            if line.name == name:
                return line.offset
        return None

    def request_line_group(
        self,
        descriptor: MockChipHandle,
        offsets: Sequence[int],
        request_type: RequestType,
        consumer: str,
        options: RequestOptions,
        defaults: Sequence[int] | None = None,
    ) -> MockRequest:
        chip = self._chip(descriptor)
        if not offsets:
            raise RequestFailedError("No lines to request")
        if len(set(offsets)) != len(offsets):
            raise RequestFailedError(f"Duplicate offsets in request: {list(offsets)}")
        for offset in offsets:
            if not 0 <= offset < chip.num_lines:
                raise RequestFailedError(f"Chip {chip.name} has no line {offset}")
            holder = chip.lines[offset].request
            if holder is not None:
                raise RequestFailedError(
                    f"Line {offset} of {chip.name} is busy (used by {holder.consumer})"
                )
        if request_type is RequestType.OUTPUT:
            if defaults is None or len(defaults) != len(offsets):
                raise RequestFailedError("Output request needs one default per line")

        request = MockRequest(
            chip=chip,
            offsets=tuple(offsets),
            request_type=request_type,
            consumer=consumer,
        )
        for index, offset in enumerate(offsets):
            line = chip.lines[offset]
            line.request = request
            line.options = options
            if request_type is RequestType.OUTPUT:
                assert defaults is not None
                line.direction = Direction.OUTPUT
                line.level = (1 if defaults[index] else 0) ^ int(options.active_low)
            else:
                if line.direction is Direction.OUTPUT:
                    line.level = None
                line.direction = Direction.INPUT
        if request_type.is_event:
            request.read_fd, request.write_fd = os.pipe()
            os.set_blocking(request.read_fd, False)
        descriptor.requests = [r for r in descriptor.requests if not r.released]
        descriptor.requests.append(request)
        return request

    def read_value(self, ref: MockRequest, offset: int) -> int:
        return self._live(ref).chip.lines[offset].logical

    def write_value(self, ref: MockRequest, offset: int, value: int) -> None:
        self.write_values_for(ref, {offset: value})

    def read_values(self, ref: MockRequest) -> list[int]:
        chip = self._live(ref).chip
        return [chip.lines[offset].logical for offset in ref.offsets]

    def write_values(self, ref: MockRequest, values: Sequence[int]) -> None:
        if len(values) != len(ref.offsets):
            raise IOFailureError(
                f"Expected {len(ref.offsets)} values, got {len(values)}"
            )
        self.write_values_for(ref, dict(zip(ref.offsets, values)))

    def write_values_for(self, ref: MockRequest, values: dict[int, int]) -> None:
        self._live(ref)
        if ref.request_type is not RequestType.OUTPUT:
            raise IOFailureError(f"Lines {list(ref.offsets)} are not outputs")
        for offset, value in values.items():
            line = ref.chip.lines[offset]
            line.level = (1 if value else 0) ^ int(line.options.active_low)

    def wait_for_event(self, ref: MockRequest, timeout: timedelta | None) -> bool:
        fd = self.get_pollable_handle(ref)
        try:
            ready, _, _ = select.select(
                [fd], [], [], None if timeout is None else timeout.total_seconds()
            )
        except OSError as err:
            raise IOFailureError(f"Failed to wait for event: {err}") from err
        return bool(ready)

    def read_event(self, ref: MockRequest) -> LineEvent:
        fd = self.get_pollable_handle(ref)
        if not ref.events:
            raise IOFailureError(f"No edge event pending on lines {list(ref.offsets)}")
        os.read(fd, 1)
        return ref.events.popleft()

    def get_pollable_handle(self, ref: MockRequest) -> int:
        self._live(ref)
        if ref.read_fd is None:
            raise IOFailureError(f"Lines {list(ref.offsets)} do not watch edges")
        return ref.read_fd

    def release_group(self, ref: MockRequest) -> None:
        if ref.released:
            return
        ref.released = True
        for offset in ref.offsets:
            line = ref.chip.lines[offset]
            if line.request is ref:
                line.request = None
                line.options = RequestOptions()
        for fd in (ref.read_fd, ref.write_fd):
            if fd is not None:
                os.close(fd)
        ref.read_fd = ref.write_fd = None
        ref.events.clear()

    def driver_version(self) -> str:
        return f"mock-{__version__}"

    def simulate_edge(self, chip_name: str, offset: int, value: int) -> EventType | None:
        """Drive an input line from the outside to the physical level ``value``.

        Returns the edge seen by the line, ``None`` if the level did not change.
        """
        line = self.chips[chip_name].lines[offset]
        if line.direction is Direction.OUTPUT:
            raise ValueError(f"Line {offset} of {chip_name} is an output")
        before = line.logical
        line.level = 1 if value else 0
        after = line.logical
        if before == after:
            return None
        event_type = EventType.RISING_EDGE if after > before else EventType.FALLING_EDGE
        request = line.request
        if (
            request is not None
            and request.write_fd is not None
            and request.request_type.accepts(event_type)
        ):
            request.events.append(
                LineEvent(
                    event_type=event_type,
                    timestamp_ns=time.monotonic_ns(),
                    line_offset=offset,
                )
            )
            os.write(request.write_fd, b"\x00")
            _LOGGER.debug("[%s] %s on line %s", chip_name, event_type.value, offset)
        return event_type
