"""Open chips by key.

Lines and line groups keep only the key of the chip they came from. Looking
the key up before every operation turns use-after-close into a
``ClosedResourceError`` instead of a dangling descriptor.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gpioline.exceptions import ClosedResourceError, GpioError
from gpioline.models import RequestType

if TYPE_CHECKING:
    from gpioline.backend.base import ChipDescriptor, GpioBackend, RequestRef

_LOGGER = logging.getLogger(__name__)


@dataclass(eq=False)
class RequestHandle:
    """Bookkeeping for one driver request, single line or group."""

    chip_key: int
    ref: RequestRef
    offsets: tuple[int, ...]
    request_type: RequestType
    group: bool = False
    released: bool = False


@dataclass(eq=False)
class ChipEntry:
    backend: GpioBackend
    descriptor: ChipDescriptor
    name: str
    requests: set[RequestHandle] = field(default_factory=set)

    def release(self, request: RequestHandle) -> None:
        """Release ``request`` through the backend, once."""
        if request.released:
            return
        request.released = True
        self.requests.discard(request)
        if request.ref is None:
            return
        if request.group:
            self.backend.release_group(request.ref)
        else:
            self.backend.release_line(request.ref)
        _LOGGER.debug("[%s] released lines %s", self.name, list(request.offsets))


class ChipRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._keys = itertools.count(1)
        self._entries: dict[int, ChipEntry] = {}

    def register(
        self, backend: GpioBackend, descriptor: ChipDescriptor, name: str
    ) -> int:
        with self._lock:
            key = next(self._keys)
            self._entries[key] = ChipEntry(
                backend=backend, descriptor=descriptor, name=name
            )
            return key

    def get(self, key: int) -> ChipEntry | None:
        with self._lock:
            return self._entries.get(key)

    def lookup(self, key: int) -> ChipEntry:
        entry = self.get(key)
        if entry is None:
            raise ClosedResourceError("Chip is closed")
        return entry

    def track(self, request: RequestHandle) -> RequestHandle:
        self.lookup(request.chip_key).requests.add(request)
        return request

    def close(self, key: int) -> None:
        """Release every request of the chip, then close its descriptor."""
        with self._lock:
            entry = self._entries.pop(key, None)
        if entry is None:
            return
        for request in list(entry.requests):
            try:
                entry.release(request)
            except GpioError as err:
                _LOGGER.warning(
                    "[%s] failed to release lines %s on close: %s",
                    entry.name,
                    list(request.offsets),
                    err,
                )
        entry.backend.close_controller(entry.descriptor)
        _LOGGER.debug("[%s] chip closed", entry.name)

    def __contains__(self, key: int) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


REGISTRY = ChipRegistry()
