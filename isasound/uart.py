"""Interrupt-driven UART output through a ring buffer."""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")

DEFAULT_TX_BUFFER = 1024


class RingBuffer(Generic[T]):
    """Fixed-size ring buffer; writes never move the tail, so overflow loses data."""

    def __init__(self, size: int, fill: T | int = 0) -> None:
        if size <= 0:
            raise ValueError(f"ring buffer size must be positive: {size}")
        self.buf: list = [fill] * size
        self.head = 0
        self.tail = 0

    def __len__(self) -> int:
        return (self.head - self.tail) % len(self.buf)

    def add(self, value: T) -> None:
        """Store one value at the head."""
        self.buf[self.head] = value
        self.head += 1
        if self.head == len(self.buf):
            self.head = 0

    def add_bytes(self, data) -> None:
        """Store a sequence, wrapping once around the end of the buffer."""
        size = len(self.buf)
        length = len(data)
        bytes_to_end = size - self.head
        first = min(length, bytes_to_end)
        self.buf[self.head:self.head + first] = list(data[:first])
        self.head += first
        rest = min(length - first, size)
        if rest > 0:
            self.buf[:rest] = list(data[bytes_to_end:bytes_to_end + rest])
            self.head = rest
        if self.head == size:
            self.head = 0

    def pop(self) -> T:
        """Remove and return the value at the tail."""
        if self.head == self.tail:
            raise IndexError("pop from empty ring buffer")
        value = self.buf[self.tail]
        self.tail = (self.tail + 1) % len(self.buf)
        return value


class AsyncUartWriter:
    """Queues output bytes and hands them to a transmitter one at a time."""

    def __init__(
        self,
        transmit: Callable[[int], None],
        is_writable: Callable[[], bool] = lambda: True,
        buffer_size: int = DEFAULT_TX_BUFFER,
    ) -> None:
        self.transmit = transmit
        self.is_writable = is_writable
        self.ring: RingBuffer[int] = RingBuffer(buffer_size)

    def out_chars(self, data: bytes | str) -> None:
        """Queue ``data`` and start sending if the transmitter is free."""
        if isinstance(data, str):
            data = data.encode("latin-1")
        self.ring.add_bytes(data)
        if self.is_writable() and len(self.ring):
            self.transmit(self.ring.pop())

    def on_tx(self) -> bool:
        """Transmit-done handler: send the next byte; False when none is left."""
        if len(self.ring):
            self.transmit(self.ring.pop())
            return True
        return False


def format_hex_u32(word: int) -> bytes:
    """Eight upper-case hex digits followed by CR LF."""
    return f"{word & 0xFFFFFFFF:08X}\r\n".encode("ascii")