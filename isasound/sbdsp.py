"""Sound Blaster 2.01 DSP emulation: command parser, mailbox ports and DMA pacing."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import IntEnum

_log = logging.getLogger(__name__)

_U16 = 0xFFFF
_U32 = 0xFFFFFFFF

DSP_VERSION_MAJOR = 2
DSP_VERSION_MINOR = 1

DEFAULT_BLOCK_SIZE = 0x7FF
RESET_ACK = 0xAA


class DspPort(IntEnum):
    """DSP I/O port offsets from the card's base port."""

    RESET = 0x6
    READ = 0xA
    WRITE = 0xC
    WRITE_STATUS = 0xC
    READ_STATUS = 0xE


class DspCommand(IntEnum):
    """DSP commands understood by this emulation."""

    DMA_HS_SINGLE = 0x91
    DMA_HS_AUTO = 0x90
    DMA_SINGLE = 0x14
    DMA_AUTO = 0x1C
    DMA_BLOCK_SIZE = 0x48
    DIRECT_DAC = 0x10
    SET_TIME_CONSTANT = 0x40
    DMA_PAUSE = 0xD0
    DMA_PAUSE_DURATION = 0x80
    ENABLE_SPEAKER = 0xD1
    DISABLE_SPEAKER = 0xD3
    DMA_RESUME = 0xD4
    SPEAKER_STATUS = 0xD8
    IDENT = 0xE0
    VERSION = 0xE1
    WRITETEST = 0xE4
    READTEST = 0xE8
    IRQ = 0xF2


EventHandler = Callable[[], int]


class DspBus:
    """The DSP's view of the interrupt controller, timer and DMA channel.

    Scheduled events, the IRQ line and DMA read requests are recorded so a
    host loop (or a test) can drive the DSP.
    """

    def __init__(self) -> None:
        self.events: list[tuple[EventHandler, int]] = []
        self.irq_active = False
        self.irq_count = 0
        self.dma_reads = 0

    def add_event(self, handler: EventHandler, delay: int) -> None:
        """Schedule ``handler`` to run after ``delay`` microseconds."""
        self.events.append((handler, delay))

    def remove_events(self, handler: EventHandler) -> None:
        """Cancel every pending event for ``handler``."""
        self.events = [(h, d) for h, d in self.events if h != handler]

    def activate_irq(self) -> None:
        """Raise the card's interrupt line."""
        self.irq_active = True
        self.irq_count += 1

    def deactivate_irq(self) -> None:
        """Lower the card's interrupt line."""
        self.irq_active = False

    def start_dma_read(self) -> None:
        """Request one byte from the host over DMA."""
        self.dma_reads += 1


class SoundBlasterDsp:
    """Sound Blaster DSP with mailbox registers and 8-bit DMA playback."""

    def __init__(self, bus: DspBus | None = None) -> None:
        self.bus = bus if bus is not None else DspBus()
        self.inbox = 0
        self.outbox = 0
        self.test_register = 0
        self.current_command = 0
        self.current_command_index = 0
        self.dma_interval = 0
        self.dma_pause_duration = 0
        self.dma_pause_duration_low = 0
        self.dma_block_size = 0
        self.dma_sample_count = 0
        self.dma_sample_count_rx = 0
        self.time_constant = 0
        self.autoinit = False
        self.dma_enabled = False
        self.speaker_on = False
        self.dav_pc = False
        self.dav_dsp = False
        self.dsp_busy = False
        self.reset_state = 0
        self.cur_sample = 0

    # DMA control

    def _dma_disable(self) -> None:
        self.dma_enabled = False
        self.bus.remove_events(self.dma_event)
        self.cur_sample = 0

    def _dma_enable(self) -> None:
        if self.dma_enabled:
            return
        self.dma_enabled = True
        if self.dma_pause_duration:
            self.bus.add_event(
                self.dma_event, (self.dma_interval * self.dma_pause_duration) & _U32
            )
            self.dma_pause_duration = 0
        else:
            self.bus.add_event(self.dma_event, self.dma_interval)

    def dma_event(self) -> int:
        """Fetch the next DMA byte; return the delay to the next event, 0 to stop."""
        self.bus.start_dma_read()
        self.dma_sample_count_rx = (self.dma_sample_count_rx + 1) & _U32

        if self.dma_pause_duration:
            interval = (self.dma_interval * self.dma_pause_duration) & _U32
            self.dma_pause_duration = 0
        else:
            interval = self.dma_interval

        if self.dma_sample_count_rx <= self.dma_sample_count:
            return interval
        self.bus.activate_irq()
        if self.autoinit:
            self.dma_sample_count_rx = 0
            return interval
        self._dma_disable()
        return 0

    def dma_complete(self, data: int) -> None:
        """Accept an unsigned 8-bit sample delivered over DMA."""
        self.cur_sample = ((data & 0xFF) - 0x80) << 5

    def sample(self) -> int:
        """Current signed output sample, silent while the speaker is off."""
        return self.cur_sample if self.speaker_on else 0

    # Command processing

    def _output(self, value: int) -> None:
        self.outbox = value & 0xFF
        self.dav_pc = True

    def _finish(self) -> None:
        self.dav_dsp = False
        self.current_command = 0

    def _start_dma(self, autoinit: bool) -> None:
        self.autoinit = autoinit
        self.dma_sample_count = self.dma_block_size
        self.dma_sample_count_rx = 0
        self._dma_enable()

    def process(self) -> None:
        """Advance the command state machine by one step."""
        if self.reset_state:
            return
        self.dsp_busy = True

        if self.dav_dsp and not self.current_command:
            self.current_command = self.inbox
            self.current_command_index = 0
            self.dav_dsp = False

        cmd = self.current_command
        if cmd == DspCommand.DMA_PAUSE:
            self.current_command = 0
            self._dma_disable()
        elif cmd == DspCommand.DMA_RESUME:
            self.current_command = 0
            self._dma_enable()
        elif cmd == DspCommand.DMA_AUTO:
            self._start_dma(True)
            self.current_command = 0
        elif cmd == DspCommand.DMA_HS_AUTO:
            self._finish()
            self._start_dma(True)
        elif cmd == DspCommand.DMA_HS_SINGLE:
            self._finish()
            self._start_dma(False)
        elif cmd == DspCommand.SET_TIME_CONSTANT:
            if self.dav_dsp:
                if self.current_command_index == 1:
                    self.time_constant = self.inbox
                    self.dma_interval = 256 - self.time_constant
                    self._finish()
                self.current_command_index += 1
        elif cmd == DspCommand.DMA_BLOCK_SIZE:
            if self.dav_dsp:
                if self.current_command_index == 1:
                    self.dma_block_size = self.inbox
                    self.dav_dsp = False
                elif self.current_command_index == 2:
                    self.dma_block_size = (self.dma_block_size + (self.inbox << 8)) & _U16
                    self._finish()
                self.current_command_index += 1
        elif cmd == DspCommand.DMA_SINGLE:
            if self.dav_dsp:
                if self.current_command_index == 1:
                    self.dma_sample_count = self.inbox
                    self.dav_dsp = False
                elif self.current_command_index == 2:
                    self.dma_sample_count = (self.dma_sample_count + (self.inbox << 8)) & _U32
                    self.dma_sample_count_rx = 0
                    self._finish()
                    self.autoinit = False
                    self._dma_enable()
                self.current_command_index += 1
        elif cmd == DspCommand.IRQ:
            self.current_command = 0
            self.bus.activate_irq()
        elif cmd == DspCommand.VERSION:
            if self.current_command_index == 0:
                self.current_command_index = 1
                self._output(DSP_VERSION_MAJOR)
            elif not self.dav_pc:
                self.current_command = 0
                self._output(DSP_VERSION_MINOR)
        elif cmd == DspCommand.IDENT:
            if self.dav_dsp:
                if self.current_command_index == 1:
                    self._finish()
                    self._output(~self.inbox)
                self.current_command_index += 1
        elif cmd == DspCommand.ENABLE_SPEAKER:
            self.speaker_on = True
            self.current_command = 0
        elif cmd == DspCommand.DISABLE_SPEAKER:
            self.speaker_on = False
            self.current_command = 0
        elif cmd == DspCommand.SPEAKER_STATUS:
            if self.current_command_index == 0:
                self.current_command = 0
                self._output(0xFF if self.speaker_on else 0x00)
        elif cmd == DspCommand.DIRECT_DAC:
            if self.dav_dsp:
                if self.current_command_index == 1:
                    self.cur_sample = (self.inbox - 0x80) << 5
                    self._finish()
                self.current_command_index += 1
        elif cmd == DspCommand.WRITETEST:
            if self.dav_dsp:
                if self.current_command_index == 1:
                    self.test_register = self.inbox
                    self._finish()
                self.current_command_index += 1
        elif cmd == DspCommand.READTEST:
            if self.current_command_index == 0:
                self.current_command = 0
                self._output(self.test_register)
        elif cmd == DspCommand.DMA_PAUSE_DURATION:
            if self.dav_dsp:
                if self.current_command_index == 1:
                    self.dma_pause_duration_low = self.inbox
                    self.dav_dsp = False
                elif self.current_command_index == 2:
                    self.dma_pause_duration = (
                        self.dma_pause_duration_low + (self.inbox << 8)
                    ) & _U16
                    self._finish()
                self.current_command_index += 1
        elif cmd != 0:
            _log.warning("unknown DSP command: %x", cmd)
            self.current_command = 0

        self.dsp_busy = False

    def _reset(self, value: int) -> None:
        # Only the low bit matters; some games write junk in the others.
        if value & 1:
            self.autoinit = False
            self._dma_disable()
            self.reset_state = 1
        elif self.reset_state == 1:
            self.reset_state = 0
            self.outbox = RESET_ACK
            self.dav_pc = True
            self.current_command = 0
            self.current_command_index = 0
            self.dma_block_size = DEFAULT_BLOCK_SIZE
            self.dma_sample_count = 0
            self.dma_sample_count_rx = 0
            self.speaker_on = False

    # Port access

    def read(self, address: int) -> int:
        """Read the DSP port at ``address`` (offset from the base port)."""
        if address == DspPort.READ:
            self.dav_pc = False
            return self.outbox
        if address == DspPort.READ_STATUS:
            self.bus.deactivate_irq()
            return int(self.dav_pc) << 7
        if address == DspPort.WRITE_STATUS:
            return int(self.dav_dsp or self.dsp_busy) << 7
        return 0xFF

    def write(self, address: int, value: int) -> None:
        """Write ``value`` to the DSP port at ``address``."""
        value &= 0xFF
        if address == DspPort.WRITE:
            if self.dav_dsp:
                _log.warning("DSP inbox overwritten before it was read")
            self.inbox = value
            self.dav_dsp = True
        elif address == DspPort.RESET:
            self._reset(value)