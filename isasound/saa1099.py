"""Counter-driven emulation of the Philips SAA1099 sound chip."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

_log = logging.getLogger(__name__)

_U32 = 0xFFFFFFFF

CLOCK_DIVIDER = 256
LEFT = 0
RIGHT = 1

AMPLITUDE_LOOKUP = tuple(i * 32767 // 16 for i in range(16))

_UP = tuple(range(16))
_DOWN = tuple(range(15, -1, -1))
_ZERO16 = (0,) * 16

# Envelope shapes, 64 steps each: zero, maximum, single decay, repetitive
# decay, single triangle, repetitive triangle, single attack, repetitive attack.
ENVELOPE = (
    (0,) * 64,
    (15,) * 64,
    _DOWN + _ZERO16 * 3,
    _DOWN * 4,
    _UP + _DOWN + _ZERO16 * 2,
    (_UP + _DOWN) * 2,
    _UP + _ZERO16 * 3,
    _UP * 4,
)


@dataclass
class _Channel:
    frequency: int = 0
    freq_enable: bool = False
    noise_enable: bool = False
    octave: int = 0
    amplitude: list[int] = field(default_factory=lambda: [0, 0])
    envelope: list[int] = field(default_factory=lambda: [0, 0])
    counter: int = 0
    level: int = 0

    def freq(self) -> int:
        """Half-period of the square wave in chip clocks."""
        return (511 - self.frequency) << (8 - self.octave)


@dataclass
class _Noise:
    counter: int = 0
    freq: int = 0
    level: int = 0xFFFFFFFF


def _bit(value: int, n: int) -> bool:
    return bool((value >> n) & 1)


class Saa1099Device:
    """SAA1099 with six tone channels, two noise and two envelope generators."""

    def __init__(self, clock: int = 0) -> None:
        self.clock = clock
        self.noise_params = [0, 0]
        self.env_enable = [False, False]
        self.env_reverse_right = [False, False]
        self.env_mode = [0, 0]
        self.env_bits = [False, False]
        self.env_clock = [False, False]
        self.env_step = [0, 0]
        self.all_ch_enable = False
        self.sync_state = False
        self.selected_reg = 0
        self.channels = [_Channel() for _ in range(6)]
        self.noises = [_Noise() for _ in range(2)]

    def _envelope_w(self, ch: int) -> None:
        group = self.channels[ch * 3:ch * 3 + 3]
        if not self.env_enable[ch]:
            for channel in group:
                channel.envelope[LEFT] = channel.envelope[RIGHT] = 16
            return
        mode = self.env_mode[ch]
        # Step 0..63, then loop over steps 32..63.
        step = ((self.env_step[ch] + 1) & 0x3F) | (self.env_step[ch] & 0x20)
        self.env_step[ch] = step
        mask = 14 if self.env_bits[ch] else 15
        value = ENVELOPE[mode][step]
        left = value & mask
        right = ((15 - value) & mask) if self.env_reverse_right[ch] else left
        for channel in group:
            channel.envelope[LEFT] = left
            channel.envelope[RIGHT] = right

    def control_w(self, data: int) -> None:
        """Select the register that the next data write goes to."""
        data &= 0xFF
        if data > 0x1C:
            _log.debug("unknown register selected: %02x", data)
        self.selected_reg = data & 0x1F
        if self.selected_reg in (0x18, 0x19):
            for ch in (0, 1):
                if self.env_clock[ch]:
                    self._envelope_w(ch)

    def data_w(self, data: int) -> None:
        """Write ``data`` to the selected register."""
        data &= 0xFF
        reg = self.selected_reg
        if 0x00 <= reg <= 0x05:
            channel = self.channels[reg & 7]
            channel.amplitude[LEFT] = AMPLITUDE_LOOKUP[data & 0x0F]
            channel.amplitude[RIGHT] = AMPLITUDE_LOOKUP[(data >> 4) & 0x0F]
        elif 0x08 <= reg <= 0x0D:
            self.channels[reg & 7].frequency = data
        elif 0x10 <= reg <= 0x12:
            ch = (reg - 0x10) << 1
            self.channels[ch].octave = data & 0x07
            self.channels[ch + 1].octave = (data >> 4) & 0x07
        elif reg == 0x14:
            for ch, channel in enumerate(self.channels):
                channel.freq_enable = _bit(data, ch)
        elif reg == 0x15:
            for ch, channel in enumerate(self.channels):
                channel.noise_enable = _bit(data, ch)
        elif reg == 0x16:
            self.noise_params[0] = data & 0x03
            self.noise_params[1] = (data >> 4) & 0x03
        elif reg in (0x18, 0x19):
            ch = reg - 0x18
            self.env_reverse_right[ch] = _bit(data, 0)
            self.env_mode[ch] = (data >> 1) & 0x07
            self.env_bits[ch] = _bit(data, 4)
            self.env_clock[ch] = _bit(data, 5)
            self.env_enable[ch] = _bit(data, 7)
            self.env_step[ch] = 0
        elif reg == 0x1C:
            self.all_ch_enable = _bit(data, 0)
            self.sync_state = _bit(data, 1)
            if self.sync_state:
                for channel in self.channels:
                    channel.level = 0
                    channel.counter = channel.freq()
        elif data != 0:
            _log.debug("unknown operation reg=%02x data=%02x", reg, data)

    def _channel_level(self, ch: int) -> int:
        channel = self.channels[ch]
        noise_out = self.noises[ch // 3].level & 1
        tone_out = channel.level & 1
        if channel.noise_enable:
            if channel.freq_enable:
                # Half amplitude while the noise output is high.
                return tone_out << 1 if noise_out else tone_out
            return noise_out
        if channel.freq_enable:
            return tone_out
        return 0

    def sound_stream_update(self, samples: int) -> list[tuple[int, int]]:
        """Generate ``samples`` stereo frames."""
        if samples < 0:
            raise ValueError(f"sample count must not be negative: {samples}")
        if not self.all_ch_enable:
            return [(0, 0)] * samples

        for ch, noise in enumerate(self.noises):
            param = self.noise_params[ch]
            if param == 3:
                noise.freq = self.channels[ch * 3].freq()
            else:
                noise.freq = 256 << param

        out: list[tuple[int, int]] = []
        for _ in range(samples):
            output_l = output_r = 0
            for ch, channel in enumerate(self.channels):
                while channel.counter <= 0:
                    channel.counter += channel.freq()
                    channel.level ^= 1
                    if ch == 1 and not self.env_clock[0]:
                        self._envelope_w(0)
                    if ch == 4 and not self.env_clock[1]:
                        self._envelope_w(1)
                channel.counter -= CLOCK_DIVIDER

                level = self._channel_level(ch)
                if level > 0:
                    output_l += channel.amplitude[LEFT] * channel.envelope[LEFT] // 16 // level
                    output_r += channel.amplitude[RIGHT] * channel.envelope[RIGHT] // 16 // level

            for noise in self.noises:
                # Polynomial x^18 + x^11 + x, plain XOR feedback.
                while noise.counter <= 0:
                    noise.counter += noise.freq
                    if ((noise.level & 0x20000) == 0) != ((noise.level & 0x0400) == 0):
                        noise.level = ((noise.level << 1) | 1) & _U32
                    else:
                        noise.level = (noise.level << 1) & _U32
                noise.counter -= CLOCK_DIVIDER

            out.append((output_l // 6, output_r // 6))
        return out