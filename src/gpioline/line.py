from __future__ import annotations

import logging
from types import TracebackType

from gpioline.event import LineEvent
from gpioline.exceptions import (
    IOFailureError,
    ReleasedResourceError,
    RequestFailedError,
)
from gpioline.flags import Flags, to_options
from gpioline.models import ActiveState, Bias, Direction, Drive, LineInfo, RequestType
from gpioline.registry import REGISTRY, ChipEntry, RequestHandle
from gpioline.timing import to_timedelta

_LOGGER = logging.getLogger(__name__)


class Line:
    """One line of a chip.

    Lifecycle is ``unrequested -> requested -> released``; a released line
    cannot be requested again, get a fresh one from the chip instead.
    Lines belonging to a ``LineBulk`` share the request of the group.
    """

    def __init__(self, chip_key: int, offset: int, info: LineInfo) -> None:
        self._chip_key = chip_key
        self._offset = offset
        self._info = info
        self._request: RequestHandle | None = None
        self._released = False

    def __enter__(self) -> Line:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    def __repr__(self) -> str:
        if self._released:
            state = "released"
        elif self._request is not None:
            state = self._request.request_type.value.lower()
        else:
            state = "unrequested"
        return f"<Line offset={self._offset} {state}>"

    def _check_handle(self) -> ChipEntry:
        entry = REGISTRY.lookup(self._chip_key)
        if self._released:
            raise ReleasedResourceError(f"Line {self._offset} is released")
        return entry

    def _active_request(self) -> tuple[ChipEntry, RequestHandle]:
        entry = self._check_handle()
        request = self._request
        if request is None or request.released:
            raise ReleasedResourceError(f"Line {self._offset} is not requested")
        return entry, request

    def _event_request(self) -> tuple[ChipEntry, RequestHandle]:
        entry, request = self._active_request()
        if not request.request_type.is_event:
            raise IOFailureError(
                f"Line {self._offset} is not requested for edge events"
            )
        return entry, request

    def _attach(self, entry: ChipEntry, request: RequestHandle) -> None:
        """Bind this line to a group request owned by a ``LineBulk``."""
        self._request = request
        self._info = entry.backend.line_info(entry.descriptor, self._offset)

    def _detach(self) -> None:
        self._request = None
        self._released = True

    def _request_as(
        self,
        consumer: str,
        request_type: RequestType,
        flags: Flags,
        default: int | None = None,
    ) -> None:
        entry = self._check_handle()
        if self._request is not None:
            raise RequestFailedError(f"Line {self._offset} is already requested")
        options = to_options(flags)
        options.check_for(request_type)

        if request_type.is_event:
            ref = entry.backend.arm_edge_watch(
                entry.descriptor, self._offset, request_type, consumer, options
            )
        else:
            ref = entry.backend.request_line(
                entry.descriptor,
                self._offset,
                request_type,
                consumer,
                options,
                default,
            )
        self._request = REGISTRY.track(
            RequestHandle(
                chip_key=self._chip_key,
                ref=ref,
                offsets=(self._offset,),
                request_type=request_type,
            )
        )
        self._info = entry.backend.line_info(entry.descriptor, self._offset)
        _LOGGER.debug(
            "[%s] line %s requested as %s by %s",
            entry.name,
            self._offset,
            request_type.value,
            consumer,
        )

    def request_input(self, consumer: str, flags: Flags = None) -> None:
        self._request_as(consumer, RequestType.INPUT, flags)

    def request_output(
        self, consumer: str, default_value: int = 0, flags: Flags = None
    ) -> None:
        self._request_as(
            consumer, RequestType.OUTPUT, flags, 1 if default_value else 0
        )

    def request_rising_edge_events(self, consumer: str, flags: Flags = None) -> None:
        self._request_as(consumer, RequestType.EVENT_RISING_EDGE, flags)

    def request_falling_edge_events(self, consumer: str, flags: Flags = None) -> None:
        self._request_as(consumer, RequestType.EVENT_FALLING_EDGE, flags)

    def request_both_edges_events(self, consumer: str, flags: Flags = None) -> None:
        self._request_as(consumer, RequestType.EVENT_BOTH_EDGES, flags)

    def get_value(self) -> int:
        entry, request = self._active_request()
        return entry.backend.read_value(request.ref, self._offset)

    def set_value(self, value: int) -> None:
        entry, request = self._active_request()
        entry.backend.write_value(request.ref, self._offset, 1 if value else 0)

    def event_wait(self, timeout: float | None = None) -> bool:
        """Wait up to ``timeout`` seconds for an edge event.

        ``None`` or a negative timeout waits forever. The event is left in
        the queue for ``event_read``.
        """
        entry, request = self._event_request()
        return entry.backend.wait_for_event(request.ref, to_timedelta(timeout))

    def event_read(self) -> LineEvent:
        entry, request = self._event_request()
        return entry.backend.read_event(request.ref)

    def event_get_fd(self) -> int:
        """Descriptor that polls readable while events are pending."""
        entry, request = self._event_request()
        return entry.backend.get_pollable_handle(request.ref)

    def update(self) -> None:
        """Re-read line metadata from the driver."""
        entry = self._check_handle()
        self._info = entry.backend.line_info(entry.descriptor, self._offset)

    def release(self) -> None:
        if self._released:
            return
        request = self._request
        self._detach()
        # Group requests are released by their LineBulk.
        if request is None or request.group:
            return
        entry = REGISTRY.get(self._chip_key)
        if entry is None:
            _LOGGER.debug("Line %s released after its chip was closed", self._offset)
            return
        entry.release(request)

    @property
    def is_requested(self) -> bool:
        return (
            not self._released
            and self._request is not None
            and not self._request.released
        )

    @property
    def is_released(self) -> bool:
        return self._released

    @property
    def request_type(self) -> RequestType | None:
        self._check_handle()
        return self._request.request_type if self._request is not None else None

    @property
    def offset(self) -> int:
        self._check_handle()
        return self._offset

    @property
    def name(self) -> str | None:
        self._check_handle()
        return self._info.name

    @property
    def consumer(self) -> str | None:
        self._check_handle()
        return self._info.consumer

    @property
    def direction(self) -> Direction:
        self._check_handle()
        return self._info.direction

    @property
    def active_state(self) -> ActiveState:
        self._check_handle()
        return self._info.active_state

    @property
    def bias(self) -> Bias:
        self._check_handle()
        return self._info.bias

    @property
    def is_used(self) -> bool:
        self._check_handle()
        return self._info.used

    @property
    def is_open_drain(self) -> bool:
        self._check_handle()
        return self._info.drive is Drive.OPEN_DRAIN

    @property
    def is_open_source(self) -> bool:
        self._check_handle()
        return self._info.drive is Drive.OPEN_SOURCE
