"""Translation between request flag bitmasks and named request options."""

from __future__ import annotations

import enum
from typing import TypeAlias

from pydantic import BaseModel, ConfigDict, field_validator

from gpioline.exceptions import RequestFailedError
from gpioline.models import Bias, Drive, RequestType

__all__ = [
    "Flags",
    "RequestFlag",
    "RequestOptions",
    "to_flags",
    "to_options",
]


class RequestFlag(enum.IntFlag):
    NONE = 0
    OPEN_DRAIN = 1 << 0
    OPEN_SOURCE = 1 << 1
    ACTIVE_LOW = 1 << 2
    BIAS_DISABLE = 1 << 3
    BIAS_PULL_DOWN = 1 << 4
    BIAS_PULL_UP = 1 << 5


_ALL_FLAGS = (
    RequestFlag.OPEN_DRAIN
    | RequestFlag.OPEN_SOURCE
    | RequestFlag.ACTIVE_LOW
    | RequestFlag.BIAS_DISABLE
    | RequestFlag.BIAS_PULL_DOWN
    | RequestFlag.BIAS_PULL_UP
)

_BIAS_BY_FLAG: dict[RequestFlag, Bias] = {
    RequestFlag.BIAS_DISABLE: Bias.DISABLED,
    RequestFlag.BIAS_PULL_DOWN: Bias.PULL_DOWN,
    RequestFlag.BIAS_PULL_UP: Bias.PULL_UP,
}
_FLAG_BY_BIAS = {bias: flag for flag, bias in _BIAS_BY_FLAG.items()}

_DRIVE_BY_FLAG: dict[RequestFlag, Drive] = {
    RequestFlag.OPEN_DRAIN: Drive.OPEN_DRAIN,
    RequestFlag.OPEN_SOURCE: Drive.OPEN_SOURCE,
}
_FLAG_BY_DRIVE = {drive: flag for flag, drive in _DRIVE_BY_FLAG.items()}


class RequestOptions(BaseModel):
    """Electrical configuration applied when a line is requested."""

    model_config = ConfigDict(frozen=True)

    active_low: bool = False
    drive: Drive = Drive.PUSH_PULL
    bias: Bias = Bias.AS_IS

    @field_validator("bias")
    @classmethod
    def _known_bias(cls, value: Bias) -> Bias:
        if value is Bias.UNKNOWN:
            raise ValueError("bias UNKNOWN can only be reported, not requested")
        return value

    def check_for(self, request_type: RequestType) -> None:
        """Reject drive modes that only make sense for outputs."""
        if self.drive is not Drive.PUSH_PULL and request_type is not RequestType.OUTPUT:
            raise RequestFailedError(
                f"Drive {self.drive.value} is only valid for output requests"
            )


Flags: TypeAlias = RequestOptions | RequestFlag | int | None


def to_options(flags: Flags) -> RequestOptions:
    """Validate ``flags`` and turn them into request options.

    Unknown bits and contradictory combinations (open-drain together with
    open-source, more than one bias) raise ``RequestFailedError``.
    """
    if flags is None:
        return RequestOptions()
    if isinstance(flags, RequestOptions):
        return flags
    if isinstance(flags, bool) or not isinstance(flags, int):
        raise RequestFailedError(f"Unsupported request flags: {flags!r}")

    unknown = int(flags) & ~int(_ALL_FLAGS)
    if int(flags) < 0 or unknown:
        raise RequestFailedError(f"Unknown request flag bits: {unknown:#x}")
    flags = RequestFlag(flags)

    drives = [drive for flag, drive in _DRIVE_BY_FLAG.items() if flag in flags]
    if len(drives) > 1:
        raise RequestFailedError("OPEN_DRAIN and OPEN_SOURCE are mutually exclusive")
    biases = [bias for flag, bias in _BIAS_BY_FLAG.items() if flag in flags]
    if len(biases) > 1:
        raise RequestFailedError("Only one BIAS_* flag may be set")

    return RequestOptions(
        active_low=RequestFlag.ACTIVE_LOW in flags,
        drive=drives[0] if drives else Drive.PUSH_PULL,
        bias=biases[0] if biases else Bias.AS_IS,
    )


def to_flags(options: RequestOptions) -> RequestFlag:
    """Inverse of ``to_options``."""
    flags = RequestFlag.NONE
    if options.active_low:
        flags |= RequestFlag.ACTIVE_LOW
    flags |= _FLAG_BY_DRIVE.get(options.drive, RequestFlag.NONE)
    flags |= _FLAG_BY_BIAS.get(options.bias, RequestFlag.NONE)
    return flags
