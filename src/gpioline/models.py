from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

__all__ = [
    "ActiveState",
    "Bias",
    "ChipInfo",
    "Direction",
    "Drive",
    "EventType",
    "LineInfo",
    "RequestType",
]


class Direction(Enum):
    INPUT = "INPUT"
    OUTPUT = "OUTPUT"
    UNKNOWN = "UNKNOWN"


class ActiveState(Enum):
    HIGH = "HIGH"
    LOW = "LOW"


class Bias(Enum):
    AS_IS = "AS_IS"
    DISABLED = "DISABLED"
    PULL_UP = "PULL_UP"
    PULL_DOWN = "PULL_DOWN"
    UNKNOWN = "UNKNOWN"


class Drive(Enum):
    PUSH_PULL = "PUSH_PULL"
    OPEN_DRAIN = "OPEN_DRAIN"
    OPEN_SOURCE = "OPEN_SOURCE"


class EventType(Enum):
    RISING_EDGE = "RISING_EDGE"
    FALLING_EDGE = "FALLING_EDGE"
    UNKNOWN = "UNKNOWN"


class RequestType(Enum):
    INPUT = "INPUT"
    OUTPUT = "OUTPUT"
    EVENT_RISING_EDGE = "EVENT_RISING_EDGE"
    EVENT_FALLING_EDGE = "EVENT_FALLING_EDGE"
    EVENT_BOTH_EDGES = "EVENT_BOTH_EDGES"

    @property
    def is_event(self) -> bool:
        """Whether the request arms edge detection."""
        return self in (
            RequestType.EVENT_RISING_EDGE,
            RequestType.EVENT_FALLING_EDGE,
            RequestType.EVENT_BOTH_EDGES,
        )

    def accepts(self, event_type: EventType) -> bool:
        """Whether an edge of ``event_type`` is reported for this request."""
        if self is RequestType.EVENT_BOTH_EDGES:
            return event_type is not EventType.UNKNOWN
        if self is RequestType.EVENT_RISING_EDGE:
            return event_type is EventType.RISING_EDGE
        if self is RequestType.EVENT_FALLING_EDGE:
            return event_type is EventType.FALLING_EDGE
        return False


@dataclass(frozen=True)
class ChipInfo:
    name: str
    label: str
    num_lines: int


@dataclass(frozen=True)
class LineInfo:
    """Line metadata as reported by the driver."""

    offset: int
    name: str | None = None
    consumer: str | None = None
    used: bool = False
    direction: Direction = Direction.INPUT
    active_low: bool = False
    bias: Bias = Bias.AS_IS
    drive: Drive = Drive.PUSH_PULL

    @property
    def active_state(self) -> ActiveState:
        return ActiveState.LOW if self.active_low else ActiveState.HIGH
