"""gpioline errors."""


class GpioError(Exception):
    """Base class for every error raised by gpioline."""


class DeviceNotFoundError(GpioError):
    """GPIO chip could not be opened by name, index or path."""


class LineNotFoundError(GpioError):
    """Offset does not address a line of the chip."""


class ClosedResourceError(GpioError):
    """Operation on a chip (or one of its lines) after the chip was closed."""


class ReleasedResourceError(GpioError):
    """Operation on a line or line group that is released or not requested."""


class RequestFailedError(GpioError):
    """Line request rejected, either by validation or by the driver."""


class IndexOutOfRangeError(GpioError, IndexError):
    """Index outside of a line group."""


class IOFailureError(GpioError):
    """Driver-level read, write or wait failure."""


class ConfigurationError(GpioError):
    """Invalid gpioline configuration."""
