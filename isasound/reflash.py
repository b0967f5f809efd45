"""Firmware reflashing from a byte stream of UF2 blocks."""

from __future__ import annotations

import logging
import struct
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum, auto

_log = logging.getLogger(__name__)

UF2_MAGIC_START0 = 0x0A324655
UF2_MAGIC_START1 = 0x9E5D5157
UF2_MAGIC_END = 0x0AB16F30
UF2_BLOCK_SIZE = 512
UF2_DATA_SIZE = 476

SECTOR_SIZE = 4096
DEFAULT_FLASH_SIZE = 2 * 1024 * 1024

_UF2_LAYOUT = struct.Struct(f"<8I{UF2_DATA_SIZE}sI")


class FirmwareStatus(Enum):
    """State of a firmware write."""

    IDLE = auto()
    WRITING = auto()
    BUSY = auto()
    DONE = auto()
    ERROR = auto()


@dataclass(frozen=True)
class UF2Block:
    """One 512-byte UF2 block."""

    magic_start0: int
    magic_start1: int
    flags: int
    target_addr: int
    payload_size: int
    block_no: int
    num_blocks: int
    file_size: int
    data: bytes
    magic_end: int

    @classmethod
    def from_bytes(cls, data: bytes) -> UF2Block:
        """Decode a block; the input must be exactly 512 bytes."""
        if len(data) != UF2_BLOCK_SIZE:
            raise ValueError(
                f"UF2 block must be {UF2_BLOCK_SIZE} bytes, got {len(data)}"
            )
        fields = _UF2_LAYOUT.unpack(bytes(data))
        return cls(*fields)

    @property
    def is_valid(self) -> bool:
        """True when all three magic numbers are correct."""
        return (
            self.magic_start0 == UF2_MAGIC_START0
            and self.magic_start1 == UF2_MAGIC_START1
            and self.magic_end == UF2_MAGIC_END
        )


class FlashMemory:
    """NOR flash: erasing sets bytes to 0xFF, programming can only clear bits."""

    def __init__(self, size: int = DEFAULT_FLASH_SIZE) -> None:
        if size <= 0 or size % SECTOR_SIZE:
            raise ValueError(f"flash size must be a positive multiple of {SECTOR_SIZE}")
        self.contents = bytearray(b"\xff" * size)

    def _check_range(self, offset: int, size: int) -> None:
        if offset < 0 or size < 0 or offset + size > len(self.contents):
            raise ValueError(
                f"range {offset:#x}+{size:#x} outside flash of {len(self.contents):#x} bytes"
            )

    def erase(self, offset: int, size: int) -> None:
        """Erase whole sectors starting at ``offset``."""
        if offset % SECTOR_SIZE or size % SECTOR_SIZE:
            raise ValueError(f"erase must be aligned to {SECTOR_SIZE}-byte sectors")
        self._check_range(offset, size)
        self.contents[offset:offset + size] = b"\xff" * size

    def program(self, offset: int, data: bytes) -> None:
        """Program ``data`` at ``offset``."""
        self._check_range(offset, len(data))
        for index, value in enumerate(data, start=offset):
            self.contents[index] &= value


class FirmwareWriter:
    """Collects streamed bytes into UF2 blocks and writes them to flash."""

    def __init__(
        self,
        flash: FlashMemory | None = None,
        on_reboot: Callable[[], None] | None = None,
    ) -> None:
        self.flash = flash if flash is not None else FlashMemory()
        self.on_reboot = on_reboot
        self.rebooted = False
        self.status = FirmwareStatus.IDLE
        self._buffer = bytearray()
        self._cur_block = 0
        self._num_blocks = 0
        self._payload_size = 0

    @property
    def current_block(self) -> int:
        """Number of blocks written so far."""
        return self._cur_block

    def _reset(self, status: FirmwareStatus) -> None:
        self._buffer.clear()
        self._cur_block = 0
        self._num_blocks = 0
        self._payload_size = 0
        self.status = status

    def start(self) -> None:
        """Begin a new write, or reboot if the previous one completed."""
        if self.status is FirmwareStatus.DONE:
            _log.info("Rebooting!")
            self.rebooted = True
            if self.on_reboot is not None:
                self.on_reboot()
            return
        self._reset(FirmwareStatus.IDLE)

    def write(self, data: int | Iterable[int]) -> None:
        """Feed one byte, or an iterable of bytes, into the writer."""
        values = (data,) if isinstance(data, int) else data
        for value in values:
            self._write_byte(value & 0xFF)

    def _write_byte(self, value: int) -> None:
        if not self._buffer and self._cur_block == 0:
            self.status = FirmwareStatus.WRITING
        self._buffer.append(value)
        if len(self._buffer) == UF2_BLOCK_SIZE:
            block = UF2Block.from_bytes(self._buffer)
            self._buffer.clear()
            self._process_block(block)

    def _process_block(self, block: UF2Block) -> None:
        if not block.is_valid:
            _log.error("Invalid UF2 data!")
            self._reset(FirmwareStatus.ERROR)
            return
        self.status = FirmwareStatus.BUSY
        if self._cur_block == 0:
            _log.info("Starting firmware write, %u blocks", block.num_blocks)
            self._num_blocks = block.num_blocks
            self._payload_size = block.payload_size
            total = self._num_blocks * self._payload_size
            self.flash.erase(0, (total // SECTOR_SIZE) * SECTOR_SIZE + SECTOR_SIZE)
        address = self._cur_block * self._payload_size
        self.flash.program(address, block.data[:self._payload_size])
        self._cur_block += 1
        if self._cur_block == self._num_blocks:
            _log.info("Final block written.")
            self.status = FirmwareStatus.DONE
        else:
            self.status = FirmwareStatus.WRITING