"""Philips SAA1099 square-wave generator and the Creative Music System card."""

from __future__ import annotations

import operator
from dataclasses import dataclass, field

from isasound.tandy import OUTPUT_FREQUENCY, IntFrame

_U32 = 0xFFFFFFFF

# Value seen on the data bus when a port drives nothing.
_OPEN_BUS = 0xFF

_SAA_VOLUMES = (
    0, 0x100, 0x200, 0x300, 0x400, 0x500, 0x600, 0x700,
    0x800, 0x900, 0xA00, 0xB00, 0xC00, 0xD00, 0xE00, 0xF00,
)

# Envelope shapes indexed by type (bits 1-3 of the envelope register):
# hold 0, hold 15, single decay, repeated decay, single triangle,
# repeated triangle, single attack, repeated attack.
_RAMP_UP = tuple(range(16))
_RAMP_DOWN = tuple(range(15, -1, -1))
_ENV_SHAPES = (
    (0,) * 32,
    (15,) * 32,
    _RAMP_DOWN + (0,) * 16,
    _RAMP_DOWN + _RAMP_DOWN,
    _RAMP_UP + _RAMP_DOWN,
    _RAMP_UP + _RAMP_DOWN,
    _RAMP_UP + (0,) * 16,
    _RAMP_UP + _RAMP_UP,
)


@dataclass
class _Voice:
    lvolume: int = 0
    rvolume: int = 0
    octave: int = 0
    frequency: int = 0
    enable: int = 0
    noise: int = 0
    step: int = 0
    pos: int = 0


@dataclass
class _Noise:
    frequency: int = 0
    step: int = 0
    pos: int = 0
    prng: int = 0xFFFFF


@dataclass
class _Envelope:
    type: int = 0
    hold: int = -1
    pos: int = 0


@dataclass
class Saa1099Generator:
    """Six tone voices, two noise generators and two envelopes of one SAA1099."""

    FRAC_BITS = 24
    FRAC_ONE = 1 << FRAC_BITS
    FRAC_HALF = FRAC_ONE >> 1
    INTERNAL_CLOCK = 14318181 // 2
    PRNG_INITIAL = 0xFFFFF

    enabled: bool = False
    voices: list[_Voice] = field(default_factory=lambda: [_Voice() for _ in range(6)])
    noises: list[_Noise] = field(default_factory=lambda: [_Noise() for _ in range(2)])
    envelopes: list[_Envelope] = field(
        default_factory=lambda: [_Envelope() for _ in range(2)]
    )

    def _step_from_divisor(self, voice: _Voice) -> int:
        shift = 8 - voice.octave
        base = 511 - voice.frequency
        divisor = base << shift if shift >= 0 else base >> -shift
        return (
            ((self.INTERNAL_CLOCK // 2) << self.FRAC_BITS)
            // (OUTPUT_FREQUENCY * divisor)
        ) & _U32

    def _noise_step(self, gen: int) -> int:
        noise = self.noises[gen]
        if noise.frequency != 3:
            # Noise is clocked twice as fast as the tone generators.
            return (
                ((self.INTERNAL_CLOCK // 2) << self.FRAC_BITS)
                // (OUTPUT_FREQUENCY * (128 << noise.frequency))
            ) & _U32
        return (self.voices[gen * 3].step * 2) & _U32

    def _refresh_noise_from(self, chan: int) -> None:
        if chan == 0 and self.noises[0].frequency == 3:
            self.noises[0].step = self._noise_step(0)
        if chan == 3 and self.noises[1].frequency == 3:
            self.noises[1].step = self._noise_step(1)

    def process_event(self, reg: int, data: int) -> None:
        """Apply a write of ``data`` to chip register ``reg``."""
        reg &= 0xFF
        data &= 0xFF
        if 0x00 <= reg <= 0x05:
            voice = self.voices[reg & 7]
            voice.lvolume = _SAA_VOLUMES[data & 0x0F]
            voice.rvolume = _SAA_VOLUMES[(data >> 4) & 0x0F]
        elif 0x08 <= reg <= 0x0D:
            chan = reg & 7
            voice = self.voices[chan]
            voice.frequency = data
            voice.step = self._step_from_divisor(voice)
            self._refresh_noise_from(chan)
        elif 0x10 <= reg <= 0x12:
            chan = 2 * (reg & 3)
            for offset, octave in enumerate((data & 0x0F, (data >> 4) & 0x0F)):
                voice = self.voices[chan + offset]
                voice.octave = octave
                voice.step = self._step_from_divisor(voice)
                self._refresh_noise_from(chan + offset)
        elif reg == 0x14:
            for bit, voice in enumerate(self.voices):
                voice.enable = (data >> bit) & 1
        elif reg == 0x15:
            for bit, voice in enumerate(self.voices):
                voice.noise = (data >> bit) & 1
        elif reg == 0x16:
            self.noises[0].frequency = data & 3
            self.noises[0].step = self._noise_step(0)
            self.noises[1].frequency = (data >> 4) & 3
            self.noises[1].step = self._noise_step(1)
        elif reg in (0x18, 0x19):
            env = self.envelopes[reg & 1]
            env.type = data
            shape = (data >> 1) & 7
            env.hold = 0 if shape == 0 else 15 if shape == 1 else -1
            env.pos = 0
        elif reg == 0x1C:
            self.enabled = bool(data & 1)
            if data & 2:
                for voice in self.voices:
                    voice.pos = 0
                for noise in self.noises:
                    noise.pos = 0

    def _voice_output(self, index: int) -> tuple[int, int]:
        voice = self.voices[index]
        noise = self.noises[index // 3]
        tone_bit = (voice.pos >> (self.FRAC_BITS - 1)) & 1
        if not voice.noise:
            outlevel = voice.enable & tone_bit
        elif not voice.enable:
            outlevel = noise.prng & 1
        else:
            outlevel = tone_bit << (noise.prng & 1)
        if outlevel == 0:
            return 0, 0

        env = self.envelopes[index // 3]
        if index % 3 != 2 or not env.type & 0x80:
            return voice.lvolume, voice.rvolume

        factor = env.hold
        if factor < 0:
            # Bit 4 selects 3-bit envelope resolution.
            pos = ((env.pos >> self.FRAC_BITS) - ((env.type >> 4) & 1)) & _U32
            shape = (env.type >> 1) & 7
            if pos >= 32 and not shape & 1:
                env.hold = factor = 0
            else:
                factor = _ENV_SHAPES[shape][pos & 31]
        left = voice.lvolume * factor // 16
        if env.type & 0x01:
            factor ^= 15
        right = voice.rvolume * factor // 16
        return left, right

    def _clock_noise(self, noise: _Noise) -> None:
        noise.pos = (noise.pos + noise.step) & _U32
        while noise.pos >= self.FRAC_ONE:
            noise.pos -= self.FRAC_ONE
            prng = noise.prng
            noise.prng = ((prng << 1) | (((prng >> 17) ^ (prng >> 10)) & 1)) & _U32

    def generate_frames(self, frames: int) -> list[IntFrame]:
        """Return ``frames`` stereo frames; silence when the chip is disabled."""
        if frames < 0:
            raise ValueError(f"frame count must not be negative: {frames}")
        if not self.enabled:
            return [(0, 0)] * frames

        env_clocks = [(env.type & 0xA0) == 0x80 for env in self.envelopes]
        out: list[IntFrame] = []
        for _ in range(frames):
            lresult = rresult = 0
            for index, voice in enumerate(self.voices):
                voice.pos = (voice.pos + voice.step) & _U32
                left, right = self._voice_output(index)
                lresult += left
                rresult += right
                # Envelopes are clocked by voices 1 and 4 after they are mixed.
                if index in (1, 4) and env_clocks[index // 3]:
                    env = self.envelopes[index // 3]
                    env.pos = (env.pos + voice.step) & _U32
            out.append((lresult, rresult))
            for noise in self.noises:
                self._clock_noise(noise)
        return out


class Cms:
    """Creative Music System card: two SAA1099 chips behind 16 I/O ports."""

    def __init__(self) -> None:
        self.registers = [0] * 16
        self.generators = [Saa1099Generator(), Saa1099Generator()]

    def generator(self, index: int) -> Saa1099Generator:
        """Return chip 0 or chip 1."""
        return self.generators[index]

    def read_unimp(self, address: int) -> int:
        """Read from a port with no function: the open bus, 0xFF.

        Raises TypeError when ``address`` is not an integer.
        """
        operator.index(address)
        return _OPEN_BUS

    def write_unimp(self, address: int, data: int) -> None:
        """Latch a write to a port with no function."""
        self.registers[address & 15] = data & 0xFF

    def write_data(self, address: int, data: int) -> None:
        """Write data to the register selected on the matching address port."""
        which = (address >> 1) & 1
        self.generators[which].process_event(self.registers[(address & 15) ^ 1], data)

    def write_addr(self, address: int, data: int) -> None:
        """Select a chip register through an address port."""
        self.registers[address & 15] = data & 0xFF

    def read_detect(self, address: int) -> int:
        """Return the value last written to the detection port (base + 7)."""
        return self.registers[7]