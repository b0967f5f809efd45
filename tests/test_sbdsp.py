import pytest

from isasound.sbdsp import (
    DSP_VERSION_MAJOR,
    DSP_VERSION_MINOR,
    DEFAULT_BLOCK_SIZE,
    RESET_ACK,
    DspBus,
    DspCommand,
    DspPort,
    SoundBlasterDsp,
)


def send(dsp, byte):
    dsp.process()
    dsp.write(DspPort.WRITE, byte)
    dsp.process()
    dsp.process()


@pytest.fixture
def dsp():
    d = SoundBlasterDsp()
    d.write(DspPort.RESET, 1)
    d.write(DspPort.RESET, 0)
    d.read(DspPort.READ)
    return d


def test_reset_handshake():
    d = SoundBlasterDsp()
    d.write(DspPort.RESET, 1)
    d.write(DspPort.RESET, 0)
    assert d.read(DspPort.READ_STATUS) == 0x80
    assert d.read(DspPort.READ) == RESET_ACK
    assert d.read(DspPort.READ_STATUS) == 0
    assert d.dma_block_size == DEFAULT_BLOCK_SIZE


def test_reset_uses_only_low_bit():
    d = SoundBlasterDsp()
    d.write(DspPort.RESET, 0xFE)
    assert d.reset_state == 0
    d.write(DspPort.RESET, 0x03)
    assert d.reset_state == 1


def test_process_ignored_while_in_reset():
    d = SoundBlasterDsp()
    d.write(DspPort.RESET, 1)
    d.write(DspPort.WRITE, DspCommand.ENABLE_SPEAKER)
    d.process()
    assert d.speaker_on is False
    assert d.current_command == 0


def test_version(dsp):
    send(dsp, DspCommand.VERSION)
    assert dsp.read(DspPort.READ) == DSP_VERSION_MAJOR
    dsp.process()
    assert dsp.read(DspPort.READ_STATUS) == 0x80
    assert dsp.read(DspPort.READ) == DSP_VERSION_MINOR
    assert dsp.current_command == 0


def test_ident_inverts(dsp):
    send(dsp, DspCommand.IDENT)
    send(dsp, 0x55)
    assert dsp.read(DspPort.READ) == 0xAA


def test_write_read_test_round_trip(dsp):
    send(dsp, DspCommand.WRITETEST)
    send(dsp, 0x3C)
    send(dsp, DspCommand.READTEST)
    assert dsp.read(DspPort.READ) == 0x3C


def test_speaker_status_and_sample(dsp):
    send(dsp, DspCommand.SPEAKER_STATUS)
    assert dsp.read(DspPort.READ) == 0x00
    send(dsp, DspCommand.ENABLE_SPEAKER)
    send(dsp, DspCommand.SPEAKER_STATUS)
    assert dsp.read(DspPort.READ) == 0xFF
    send(dsp, DspCommand.DIRECT_DAC)
    send(dsp, 0xC0)
    assert dsp.sample() > 0
    send(dsp, DspCommand.DISABLE_SPEAKER)
    assert dsp.sample() == 0


def test_direct_dac_midpoint_is_silence(dsp):
    send(dsp, DspCommand.ENABLE_SPEAKER)
    send(dsp, DspCommand.DIRECT_DAC)
    send(dsp, 0x80)
    assert dsp.sample() == 0


def test_dma_complete_is_signed(dsp):
    dsp.speaker_on = True
    dsp.dma_complete(0x00)
    low = dsp.sample()
    dsp.dma_complete(0xFF)
    high = dsp.sample()
    assert low < 0 < high


def test_time_constant(dsp):
    send(dsp, DspCommand.SET_TIME_CONSTANT)
    send(dsp, 0xA6)
    assert dsp.time_constant == 0xA6
    assert dsp.dma_interval + dsp.time_constant == 256
    assert dsp.current_command == 0


def test_single_dma_transfer(dsp):
    bus = dsp.bus
    send(dsp, DspCommand.SET_TIME_CONSTANT)
    send(dsp, 0xA6)
    send(dsp, DspCommand.DMA_SINGLE)
    send(dsp, 2)
    send(dsp, 0)
    assert dsp.dma_enabled
    assert dsp.dma_sample_count == 2
    assert bus.events == [(dsp.dma_event, dsp.dma_interval)]
    results = [dsp.dma_event() for _ in range(3)]
    assert results == [dsp.dma_interval, dsp.dma_interval, 0]
    assert bus.dma_reads == 3
    assert bus.irq_active
    assert not dsp.dma_enabled
    assert bus.events == []


def test_auto_dma_keeps_running(dsp):
    bus = dsp.bus
    send(dsp, DspCommand.SET_TIME_CONSTANT)
    send(dsp, 0x83)
    send(dsp, DspCommand.DMA_BLOCK_SIZE)
    send(dsp, 1)
    send(dsp, 0)
    assert dsp.dma_block_size == 1
    send(dsp, DspCommand.DMA_AUTO)
    assert dsp.autoinit
    results = [dsp.dma_event() for _ in range(4)]
    assert results == [dsp.dma_interval] * 4
    assert bus.irq_count == 2
    assert dsp.dma_enabled


def test_high_speed_single_uses_block_size(dsp):
    send(dsp, DspCommand.DMA_BLOCK_SIZE)
    send(dsp, 0x34)
    send(dsp, 0x12)
    send(dsp, DspCommand.DMA_HS_SINGLE)
    assert dsp.dma_sample_count == 0x1234
    assert dsp.autoinit is False
    assert dsp.dma_enabled


def test_pause_and_resume(dsp):
    bus = dsp.bus
    send(dsp, DspCommand.SET_TIME_CONSTANT)
    send(dsp, 0xA6)
    send(dsp, DspCommand.DMA_HS_AUTO)
    assert dsp.dma_enabled
    send(dsp, DspCommand.DMA_PAUSE)
    assert not dsp.dma_enabled
    assert bus.events == []
    send(dsp, DspCommand.DMA_RESUME)
    assert dsp.dma_enabled
    assert bus.events == [(dsp.dma_event, dsp.dma_interval)]


def test_pause_duration_scales_first_delay(dsp):
    bus = dsp.bus
    send(dsp, DspCommand.SET_TIME_CONSTANT)
    send(dsp, 0xA6)
    send(dsp, DspCommand.DMA_PAUSE_DURATION)
    send(dsp, 3)
    send(dsp, 0)
    assert dsp.dma_pause_duration == 3
    send(dsp, DspCommand.DMA_RESUME)
    assert bus.events == [(dsp.dma_event, dsp.dma_interval * 3)]
    assert dsp.dma_pause_duration == 0


def test_irq_command_and_status_read(dsp):
    send(dsp, DspCommand.IRQ)
    assert dsp.bus.irq_active
    dsp.read(DspPort.READ_STATUS)
    assert dsp.bus.irq_active is False


def test_write_status_reflects_pending_byte(dsp):
    assert dsp.read(DspPort.WRITE_STATUS) == 0
    dsp.write(DspPort.WRITE, DspCommand.ENABLE_SPEAKER)
    assert dsp.read(DspPort.WRITE_STATUS) == 0x80
    dsp.process()
    assert dsp.read(DspPort.WRITE_STATUS) == 0


def test_unknown_command_is_dropped(dsp):
    send(dsp, 0xF0)
    assert dsp.current_command == 0
    send(dsp, DspCommand.ENABLE_SPEAKER)
    assert dsp.speaker_on


def test_unmapped_port_reads_ff(dsp):
    assert dsp.read(0x0) == 0xFF


def test_reset_cancels_dma(dsp):
    send(dsp, DspCommand.DMA_HS_AUTO)
    assert dsp.dma_enabled
    dsp.write(DspPort.RESET, 1)
    assert not dsp.dma_enabled
    assert dsp.autoinit is False
    assert dsp.bus.events == []


def test_bus_remove_events_keeps_others():
    bus = DspBus()

    def other():
        return 0

    d = SoundBlasterDsp(bus)
    bus.add_event(other, 5)
    bus.add_event(d.dma_event, 7)
    bus.remove_events(d.dma_event)
    assert bus.events == [(other, 5)]