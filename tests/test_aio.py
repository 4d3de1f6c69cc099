"""Tests for waiting on edge events from an event loop."""

import anyio
import pytest

from gpioline import Chip, EventType, LineEvent
from gpioline.aio import wait_edge_event, watch_edge_events
from gpioline.backend.mock import MockBackend

pytestmark = pytest.mark.anyio


async def test_wait_edge_event(chip: Chip, backend: MockBackend) -> None:
    line = chip.get_line(3)
    line.request_both_edges_events("test")

    async def press() -> None:
        await anyio.sleep(0.01)
        backend.simulate_edge("gpiochip0", 3, 1)

    with anyio.fail_after(2):
        async with anyio.create_task_group() as tg:
            tg.start_soon(press)
            event = await wait_edge_event(line)
    assert event.event_type is EventType.RISING_EDGE
    assert event.line_offset == 3


async def test_wait_edge_event_already_pending(
    chip: Chip, backend: MockBackend
) -> None:
    line = chip.get_line(5)
    line.request_falling_edge_events("test", 0)
    backend.simulate_edge("gpiochip0", 5, 1)
    backend.simulate_edge("gpiochip0", 5, 0)
    with anyio.fail_after(2):
        event = await wait_edge_event(line)
    assert event.event_type is EventType.FALLING_EDGE


async def test_watch_edge_events(chip: Chip, backend: MockBackend) -> None:
    line = chip.get_line(3)
    line.request_both_edges_events("test")
    seen: list[LineEvent] = []

    with anyio.fail_after(2):
        async with anyio.create_task_group() as tg:

            def on_event(event: LineEvent) -> None:
                seen.append(event)
                if len(seen) == 2:
                    tg.cancel_scope.cancel()

            tg.start_soon(watch_edge_events, line, on_event)
            await anyio.sleep(0.01)
            backend.simulate_edge("gpiochip0", 3, 1)
            backend.simulate_edge("gpiochip0", 3, 0)

    assert [event.event_type for event in seen] == [
        EventType.RISING_EDGE,
        EventType.FALLING_EDGE,
    ]
