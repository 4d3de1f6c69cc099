from __future__ import annotations

import logging
import os
from collections.abc import Generator, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import timedelta
from typing import assert_never

import gpiod
from gpiod.line import Bias as GpiodBias
from gpiod.line import Direction as GpiodDirection
from gpiod.line import Drive as GpiodDrive
from gpiod.line import Edge as GpiodEdge
from gpiod.line import Value

from gpioline.backend.base import GpioBackend
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
    Drive,
    EventType,
    LineInfo,
    RequestType,
)

_LOGGER = logging.getLogger(__name__)

DEV_DIR = "/dev"

_BIAS_TO_GPIOD = {
    Bias.AS_IS: GpiodBias.AS_IS,
    Bias.DISABLED: GpiodBias.DISABLED,
    Bias.PULL_UP: GpiodBias.PULL_UP,
    Bias.PULL_DOWN: GpiodBias.PULL_DOWN,
}
_BIAS_FROM_GPIOD = {
    GpiodBias.AS_IS: Bias.AS_IS,
    GpiodBias.DISABLED: Bias.DISABLED,
    GpiodBias.PULL_UP: Bias.PULL_UP,
    GpiodBias.PULL_DOWN: Bias.PULL_DOWN,
}
_DRIVE_TO_GPIOD = {
    Drive.PUSH_PULL: GpiodDrive.PUSH_PULL,
    Drive.OPEN_DRAIN: GpiodDrive.OPEN_DRAIN,
    Drive.OPEN_SOURCE: GpiodDrive.OPEN_SOURCE,
}
_DRIVE_FROM_GPIOD = {value: key for key, value in _DRIVE_TO_GPIOD.items()}
_DIRECTION_FROM_GPIOD = {
    GpiodDirection.INPUT: Direction.INPUT,
    GpiodDirection.OUTPUT: Direction.OUTPUT,
}
_EVENT_FROM_GPIOD = {
    gpiod.EdgeEvent.Type.RISING_EDGE: EventType.RISING_EDGE,
    gpiod.EdgeEvent.Type.FALLING_EDGE: EventType.FALLING_EDGE,
}


@dataclass(eq=False)
class GpiodRequest:
    request: gpiod.LineRequest
    offsets: tuple[int, ...]


def _to_value(value: int) -> Value:
    return Value.ACTIVE if value else Value.INACTIVE


def _from_value(value: Value) -> int:
    return 1 if value == Value.ACTIVE else 0


@contextmanager
def _driver_errors(message: str) -> Generator[None, None, None]:
    try:
        yield
    except gpiod.ChipClosedError as err:
        raise ClosedResourceError(message) from err
    except gpiod.RequestReleasedError as err:
        raise ReleasedResourceError(message) from err
    except OSError as err:
        raise IOFailureError(f"{message}: {err}") from err


class GpiodBackend(GpioBackend):
    """Character-device chips through the libgpiod v2 bindings."""

    def __init__(self, dev_dir: str = DEV_DIR) -> None:
        self.dev_dir = dev_dir

    def _candidate_paths(self, identifier: str) -> Iterator[str]:
        if os.path.isabs(identifier):
            yield identifier
            return
        yield os.path.join(self.dev_dir, identifier)
        if identifier.isdigit():
            yield os.path.join(self.dev_dir, f"gpiochip{int(identifier)}")

    def open_controller(self, name_or_index: str) -> gpiod.Chip:
        for path in self._candidate_paths(name_or_index):
            if not gpiod.is_gpiochip_device(path):
                continue
            try:
                return gpiod.Chip(path)
            except OSError as err:
                raise DeviceNotFoundError(
                    f"Failed to open GPIO chip {name_or_index}: {err}"
                ) from err
        raise DeviceNotFoundError(f"Failed to open GPIO chip: {name_or_index}")

    def enumerate_controllers(self) -> Iterator[gpiod.Chip]:
        paths = sorted(
            entry.path
            for entry in os.scandir(self.dev_dir)
            if gpiod.is_gpiochip_device(entry.path)
        )
        return self._open_each(paths)

    @staticmethod
    def _open_each(paths: list[str]) -> Iterator[gpiod.Chip]:
        for path in paths:
            try:
                chip = gpiod.Chip(path)
            except OSError as err:
                _LOGGER.warning("Skipping GPIO chip %s: %s", path, err)
                continue
            yield chip

    def close_controller(self, descriptor: gpiod.Chip) -> None:
        descriptor.close()

    def chip_info(self, descriptor: gpiod.Chip) -> ChipInfo:
        with _driver_errors("Failed to read chip info"):
            info = descriptor.get_info()
        return ChipInfo(name=info.name, label=info.label, num_lines=info.num_lines)

    def line_info(self, descriptor: gpiod.Chip, offset: int) -> LineInfo:
        try:
            info = descriptor.get_line_info(offset)
        except gpiod.ChipClosedError as err:
            raise ClosedResourceError("Chip is closed") from err
        except (OSError, ValueError) as err:
            raise LineNotFoundError(f"Failed to get GPIO line {offset}: {err}") from err
        return LineInfo(
            offset=info.offset,
            name=info.name or None,
            consumer=info.consumer or None,
            used=info.used,
            direction=_DIRECTION_FROM_GPIOD.get(info.direction, Direction.UNKNOWN),
            active_low=info.active_low,
            bias=_BIAS_FROM_GPIOD.get(info.bias, Bias.UNKNOWN),
            drive=_DRIVE_FROM_GPIOD.get(info.drive, Drive.PUSH_PULL),
        )

    def find_line(self, descriptor: gpiod.Chip, name: str) -> int | None:
        try:
            return descriptor.line_offset_from_id(name)
        except gpiod.ChipClosedError as err:
            raise ClosedResourceError("Chip is closed") from err
        except OSError:
            return None

    @staticmethod
    def _settings(
        request_type: RequestType, options: RequestOptions
    ) -> gpiod.LineSettings:
        direction = GpiodDirection.INPUT
        edge = GpiodEdge.NONE
        if request_type == RequestType.INPUT:
            pass
        elif request_type == RequestType.OUTPUT:
            direction = GpiodDirection.OUTPUT
        elif request_type == RequestType.EVENT_RISING_EDGE:
            edge = GpiodEdge.RISING
        elif request_type == RequestType.EVENT_FALLING_EDGE:
            edge = GpiodEdge.FALLING
        elif request_type == RequestType.EVENT_BOTH_EDGES:
            edge = GpiodEdge.BOTH
        else:
            assert_never(request_type)
        return gpiod.LineSettings(
            direction=direction,
            edge_detection=edge,
            bias=_BIAS_TO_GPIOD[options.bias],
            drive=_DRIVE_TO_GPIOD[options.drive],
            active_low=options.active_low,
        )

    def request_line_group(
        self,
        descriptor: gpiod.Chip,
        offsets: Sequence[int],
        request_type: RequestType,
        consumer: str,
        options: RequestOptions,
        defaults: Sequence[int] | None = None,
    ) -> GpiodRequest:
        if len(set(offsets)) != len(offsets):
            raise RequestFailedError(f"Duplicate offsets in request: {list(offsets)}")
        output_values = None
        if defaults is not None:
            output_values = {
                offset: _to_value(value) for offset, value in zip(offsets, defaults)
            }
        try:
            request = descriptor.request_lines(
                config={tuple(offsets): self._settings(request_type, options)},
                consumer=consumer,
                output_values=output_values,
            )
        except gpiod.ChipClosedError as err:
            raise ClosedResourceError("Chip is closed") from err
        except (OSError, ValueError) as err:
            raise RequestFailedError(
                f"Failed to request lines {list(offsets)} as {request_type.value}: {err}"
            ) from err
        return GpiodRequest(request=request, offsets=tuple(offsets))

    def read_value(self, ref: GpiodRequest, offset: int) -> int:
        with _driver_errors(f"Failed to read GPIO line {offset}"):
            return _from_value(ref.request.get_value(offset))

    def write_value(self, ref: GpiodRequest, offset: int, value: int) -> None:
        with _driver_errors(f"Failed to set GPIO line {offset}"):
            ref.request.set_value(offset, _to_value(value))

    def read_values(self, ref: GpiodRequest) -> list[int]:
        with _driver_errors(f"Failed to read GPIO lines {list(ref.offsets)}"):
            values = ref.request.get_values(list(ref.offsets))
        return [_from_value(value) for value in values]

    def write_values(self, ref: GpiodRequest, values: Sequence[int]) -> None:
        with _driver_errors(f"Failed to set GPIO lines {list(ref.offsets)}"):
            ref.request.set_values(
                {offset: _to_value(value) for offset, value in zip(ref.offsets, values)}
            )

    def wait_for_event(self, ref: GpiodRequest, timeout: timedelta | None) -> bool:
        with _driver_errors("Failed to wait for event"):
            return ref.request.wait_edge_events(timeout)

    def read_event(self, ref: GpiodRequest) -> LineEvent:
        with _driver_errors("Failed to read event"):
            if not ref.request.wait_edge_events(timedelta()):
                raise IOFailureError(
                    f"No edge event pending on lines {list(ref.offsets)}"
                )
            event = ref.request.read_edge_events(max_events=1)[0]
        return LineEvent(
            event_type=_EVENT_FROM_GPIOD.get(event.event_type, EventType.UNKNOWN),
            timestamp_ns=event.timestamp_ns,
            line_offset=event.line_offset,
        )

    def get_pollable_handle(self, ref: GpiodRequest) -> int:
        with _driver_errors("Failed to get event file descriptor"):
            return ref.request.fd

    def release_group(self, ref: GpiodRequest) -> None:
        with _driver_errors(f"Failed to release GPIO lines {list(ref.offsets)}"):
            try:
                ref.request.release()
            except gpiod.RequestReleasedError:
                _LOGGER.debug("Lines %s were already released", list(ref.offsets))

    def driver_version(self) -> str:
        return gpiod.api_version()
