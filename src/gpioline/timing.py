from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True)
class Deadline:
    """Absolute point on the monotonic clock. ``at=None`` never expires."""

    at: float | None

    @classmethod
    def after(cls, seconds: float | None) -> Deadline:
        """Deadline ``seconds`` from now; ``None`` or negative means never."""
        if seconds is None or seconds < 0:
            return cls(at=None)
        return cls(at=time.monotonic() + seconds)

    def remaining(self) -> float | None:
        if self.at is None:
            return None
        return max(0.0, self.at - time.monotonic())

    @property
    def expired(self) -> bool:
        return self.at is not None and time.monotonic() >= self.at


def to_timedelta(seconds: float | None) -> timedelta | None:
    """Relative timeout for drivers; ``None`` or negative waits forever."""
    if seconds is None or seconds < 0:
        return None
    return timedelta(seconds=seconds)


def sleep(seconds: float) -> None:
    """Block for ``seconds``, resuming after early wake-ups."""
    if seconds <= 0:
        return
    deadline = Deadline.after(seconds)
    while remaining := deadline.remaining():
        time.sleep(remaining)
