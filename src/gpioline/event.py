from __future__ import annotations

from dataclasses import dataclass

from gpioline.models import EventType

NSEC_PER_SEC = 1_000_000_000


@dataclass(frozen=True)
class LineEvent:
    """One edge transition read from a line's event queue."""

    event_type: EventType
    timestamp_ns: int
    line_offset: int

    @property
    def timestamp(self) -> float:
        """Timestamp in seconds, sub-second part as fraction."""
        sec, nsec = divmod(self.timestamp_ns, NSEC_PER_SEC)
        return sec + nsec / NSEC_PER_SEC
