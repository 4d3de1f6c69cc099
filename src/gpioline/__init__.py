"""Host-side control of Linux GPIO character-device chips."""

from __future__ import annotations

from gpioline.backend import GpioBackend, get_default_backend
from gpioline.bulk import LineBulk
from gpioline.chip import Chip, chip_open
from gpioline.chip_iter import ChipIter, chip_iter
from gpioline.event import LineEvent
from gpioline.exceptions import (
    ClosedResourceError,
    ConfigurationError,
    DeviceNotFoundError,
    GpioError,
    IndexOutOfRangeError,
    IOFailureError,
    LineNotFoundError,
    ReleasedResourceError,
    RequestFailedError,
)
from gpioline.flags import RequestFlag, RequestOptions
from gpioline.line import Line
from gpioline.models import (
    ActiveState,
    Bias,
    Direction,
    Drive,
    EventType,
    RequestType,
)
from gpioline.timing import sleep
from gpioline.version import __version__

OPEN_DRAIN = RequestFlag.OPEN_DRAIN
OPEN_SOURCE = RequestFlag.OPEN_SOURCE
ACTIVE_LOW = RequestFlag.ACTIVE_LOW
BIAS_DISABLE = RequestFlag.BIAS_DISABLE
BIAS_PULL_DOWN = RequestFlag.BIAS_PULL_DOWN
BIAS_PULL_UP = RequestFlag.BIAS_PULL_UP


def version(backend: GpioBackend | None = None) -> str:
    """Version of the driver library behind ``backend``."""
    backend = backend if backend is not None else get_default_backend()
    return backend.driver_version()


__all__ = [
    "ACTIVE_LOW",
    "BIAS_DISABLE",
    "BIAS_PULL_DOWN",
    "BIAS_PULL_UP",
    "OPEN_DRAIN",
    "OPEN_SOURCE",
    "ActiveState",
    "Bias",
    "Chip",
    "ChipIter",
    "ClosedResourceError",
    "ConfigurationError",
    "DeviceNotFoundError",
    "Direction",
    "Drive",
    "EventType",
    "GpioError",
    "IOFailureError",
    "IndexOutOfRangeError",
    "Line",
    "LineBulk",
    "LineEvent",
    "LineNotFoundError",
    "ReleasedResourceError",
    "RequestFailedError",
    "RequestFlag",
    "RequestOptions",
    "RequestType",
    "__version__",
    "chip_iter",
    "chip_open",
    "sleep",
    "version",
]
