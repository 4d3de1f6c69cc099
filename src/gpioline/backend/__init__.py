from __future__ import annotations

import logging

from gpioline.backend.base import ChipDescriptor, GpioBackend, RequestRef
from gpioline.config import Config

__all__ = [
    "ChipDescriptor",
    "GpioBackend",
    "RequestRef",
    "create_backend",
    "get_default_backend",
    "set_default_backend",
]

_LOGGER = logging.getLogger(__name__)

_default_backend: GpioBackend | None = None


def create_backend(config: Config | None = None) -> GpioBackend:
    """Build the backend selected by ``config``."""
    config = config if config is not None else Config()
    _LOGGER.debug("Using %s backend", config.backend)
    if config.backend == "mock":
        from gpioline.backend.mock import MockBackend

        return MockBackend.from_config(config.mock)

    from gpioline.backend.gpiod_backend import GpiodBackend

    return GpiodBackend()


def get_default_backend() -> GpioBackend:
    """Backend used when none is passed explicitly, created on first use."""
    global _default_backend
    if _default_backend is None:
        _default_backend = create_backend()
    return _default_backend


def set_default_backend(backend: GpioBackend | None) -> None:
    global _default_backend
    _default_backend = backend
