"""Waiting for edge events from an anyio event loop.

Only ``Line.event_get_fd`` is used to wait, the line itself is never
touched from another thread.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import anyio

from gpioline.event import LineEvent
from gpioline.line import Line

_LOGGER = logging.getLogger(__name__)


async def wait_edge_event(line: Line) -> LineEvent:
    """Wait until ``line`` has a pending edge event and read it."""
    fd = line.event_get_fd()
    while not line.event_wait(0):
        await anyio.wait_readable(fd)
    return line.event_read()


async def watch_edge_events(
    line: Line, callback: Callable[[LineEvent], None]
) -> None:
    """Call ``callback`` for every edge event on ``line`` until cancelled."""
    fd = line.event_get_fd()
    while True:
        await anyio.wait_readable(fd)
        while line.event_wait(0):
            event = line.event_read()
            _LOGGER.debug(
                "Edge %s on line %s", event.event_type.value, event.line_offset
            )
            callback(event)
