from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from datetime import timedelta
from typing import Any, TypeAlias

from gpioline.event import LineEvent
from gpioline.flags import RequestOptions
from gpioline.models import ChipInfo, LineInfo, RequestType

# Opaque to the handle layer, each backend picks its own types.
ChipDescriptor: TypeAlias = Any
RequestRef: TypeAlias = Any


class GpioBackend(ABC):
    """Capability interface to a GPIO character-device driver."""

    @abstractmethod
    def open_controller(self, name_or_index: str) -> ChipDescriptor:
        """Open a chip by name, falling back to its index.

        Raises ``DeviceNotFoundError`` if neither resolves.
        """

    @abstractmethod
    def enumerate_controllers(self) -> Iterator[ChipDescriptor]:
        """Iterate over every chip present, opening each on demand."""

    @abstractmethod
    def close_controller(self, descriptor: ChipDescriptor) -> None:
        """Close a chip descriptor."""

    @abstractmethod
    def chip_info(self, descriptor: ChipDescriptor) -> ChipInfo:
        """Name, label and line count of a chip."""

    @abstractmethod
    def line_info(self, descriptor: ChipDescriptor, offset: int) -> LineInfo:
        """Current metadata of one line."""

    @abstractmethod
    def find_line(self, descriptor: ChipDescriptor, name: str) -> int | None:
        """Offset of the first line called ``name``."""

    @abstractmethod
    def request_line_group(
        self,
        descriptor: ChipDescriptor,
        offsets: Sequence[int],
        request_type: RequestType,
        consumer: str,
        options: RequestOptions,
        defaults: Sequence[int] | None = None,
    ) -> RequestRef:
        """Request all ``offsets`` at once; all or nothing."""

    def request_line(
        self,
        descriptor: ChipDescriptor,
        offset: int,
        request_type: RequestType,
        consumer: str,
        options: RequestOptions,
        default: int | None = None,
    ) -> RequestRef:
        return self.request_line_group(
            descriptor,
            [offset],
            request_type,
            consumer,
            options,
            None if default is None else [default],
        )

    def arm_edge_watch(
        self,
        descriptor: ChipDescriptor,
        offset: int,
        edge: RequestType,
        consumer: str,
        options: RequestOptions,
    ) -> RequestRef:
        if not edge.is_event:
            raise ValueError(f"{edge} does not watch edges")
        return self.request_line(descriptor, offset, edge, consumer, options)

    @abstractmethod
    def read_value(self, ref: RequestRef, offset: int) -> int:
        """Logical value of one requested line."""

    @abstractmethod
    def write_value(self, ref: RequestRef, offset: int, value: int) -> None:
        """Drive one requested output line."""

    @abstractmethod
    def read_values(self, ref: RequestRef) -> list[int]:
        """Values of every line of the request, in request order."""

    @abstractmethod
    def write_values(self, ref: RequestRef, values: Sequence[int]) -> None:
        """Drive every line of the request, in request order."""

    @abstractmethod
    def wait_for_event(self, ref: RequestRef, timeout: timedelta | None) -> bool:
        """Wait for a pending edge event; ``None`` waits forever."""

    @abstractmethod
    def read_event(self, ref: RequestRef) -> LineEvent:
        """Consume one pending edge event, failing if none is pending."""

    @abstractmethod
    def get_pollable_handle(self, ref: RequestRef) -> int:
        """File descriptor that becomes readable when events are pending."""

    @abstractmethod
    def release_group(self, ref: RequestRef) -> None:
        """Give the lines of a request back to the driver."""

    def release_line(self, ref: RequestRef) -> None:
        self.release_group(ref)

    @abstractmethod
    def driver_version(self) -> str:
        """Version string of the underlying driver library."""
