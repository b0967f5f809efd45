"""PC speaker and Tandy (SN76496/NCR8496) square-wave sound generators."""

from __future__ import annotations

from dataclasses import dataclass, field

OUTPUT_FREQUENCY = 44100

_U32 = 0xFFFFFFFF

Frame = tuple[float, float]
IntFrame = tuple[int, int]


def _check_frames(frames: int) -> None:
    if frames < 0:
        raise ValueError(f"frame count must not be negative: {frames}")


class SpeakerGenerator:
    """Square-wave PC speaker driven by a PIT divisor."""

    PIT_FREQUENCY = 14318180 // 12
    FRAC_BITS = 31
    FRAC_ONE = 1 << FRAC_BITS
    FRAC_HALF = FRAC_ONE >> 1
    MAX_VOLUME = 0.25

    def __init__(self) -> None:
        self.step = 0
        self.pos = 0
        self.enabled = False

    def process_event(self, divisor: int, enable: bool) -> None:
        """Update the gate and recompute the step from a PIT divisor."""
        self.enabled = bool(enable)
        if divisor == 0:
            self.step = 0
            self.pos = self.FRAC_HALF
        else:
            self.step = (
                (self.PIT_FREQUENCY << self.FRAC_BITS)
                // (OUTPUT_FREQUENCY * divisor)
            ) & _U32

    def generate_frames(self, frames: int, gain: float = 1.0) -> list[Frame]:
        """Return ``frames`` stereo frames; silence when disabled."""
        _check_frames(frames)
        if not self.enabled:
            return [(0.0, 0.0)] * frames
        value = self.MAX_VOLUME * gain
        out: list[Frame] = []
        for _ in range(frames):
            self.pos = (self.pos + self.step) & _U32
            level = value if self.pos & self.FRAC_HALF else 0.0
            out.append((level, level))
        return out


class Speaker:
    """PC speaker controller: PIT rate plus port 0x61 control bits."""

    def __init__(self) -> None:
        self.generator = SpeakerGenerator()
        self.rate = 0
        self.control = 0

    def _update(self) -> None:
        divisor = self.rate if self.control & 1 else 0
        self.generator.process_event(divisor, bool(self.control & 2))

    def set_rate(self, rate: int) -> None:
        """Set the external square-wave rate (PIT divisor)."""
        if self.rate != rate:
            self.rate = rate
            self._update()

    def set_control(self, data: int) -> None:
        """Set the gate (bit 0) and speaker enable (bit 1) bits."""
        if (data ^ self.control) & 3:
            self.control = data & 0xFF
            self._update()


@dataclass
class _TandyVoice:
    volume: int = 0
    rawfreq: int = 0
    step: int = 0
    pos: int = 0


_TANDY_VOLUMES = (
    8191, 6506, 5168, 4105, 3261, 2590, 2057, 1634,
    1298, 1031, 819, 651, 517, 411, 326, 0,
)


@dataclass
class TandyGenerator:
    """Three tone voices and one noise voice of the Tandy sound chip."""

    FRAC_BITS = 28
    FRAC_ONE = 1 << FRAC_BITS
    FRAC_HALF = FRAC_ONE >> 1
    INTERNAL_CLOCK = 3579545 // 32
    PRNG_INITIAL = 0x4000

    last_freq_chan: int = 0
    noise_control: int = 0
    prng: int = PRNG_INITIAL
    voices: list[_TandyVoice] = field(
        default_factory=lambda: [_TandyVoice() for _ in range(4)]
    )

    def _step_from_divisor(self, divisor: int) -> int:
        return (
            (self.INTERNAL_CLOCK << self.FRAC_BITS)
            // (OUTPUT_FREQUENCY * (divisor if divisor else 0x400))
        ) & _U32

    def process_event(self, data: int) -> None:
        """Apply one byte written to the chip's register port."""
        data &= 0xFF
        reg = (data >> 4) & 7
        if not data & 0x80:
            if self.last_freq_chan > 2:
                return
            reg = self.last_freq_chan * 2

        chan = (reg >> 1) & 3
        voice = self.voices[chan]

        if reg in (0, 2, 4):
            self.last_freq_chan = chan
            if data & 0x80:
                voice.rawfreq = (voice.rawfreq & 0x3F0) | (data & 0x00F)
            else:
                voice.rawfreq = (voice.rawfreq & 0x00F) | ((data << 4) & 0x3F0)
            voice.step = self._step_from_divisor(voice.rawfreq)
            if chan == 2 and (self.noise_control & 3) == 3:
                self.voices[3].step = voice.step
        elif reg in (1, 3, 5, 7):
            voice.volume = _TANDY_VOLUMES[data & 0x0F]
        elif reg == 6:
            self.last_freq_chan = 3
            # The PRNG only resets when the feedback-mode bit changes.
            if (data ^ self.noise_control) & 0x04:
                self.prng = self.PRNG_INITIAL
            self.noise_control = data & 0x07
            if (self.noise_control & 3) == 3:
                voice.step = self.voices[2].step
            else:
                voice.step = self._step_from_divisor(16 << (self.noise_control & 3))

    def _clock_prng(self) -> None:
        if not self.noise_control & 4:
            self.prng = (self.prng >> 1) | ((self.prng & 1) << 14)
        else:
            self.prng = (self.prng >> 1) | (((self.prng ^ (~self.prng >> 4)) & 1) << 14)

    def generate_frames(self, frames: int) -> list[IntFrame]:
        """Return ``frames`` stereo frames of inverted mixed output."""
        _check_frames(frames)
        tones = self.voices[:3]
        noise = self.voices[3]
        out: list[IntFrame] = []
        for _ in range(frames):
            result = 0
            for voice in tones:
                voice.pos = (voice.pos + voice.step) & _U32
                if voice.pos & self.FRAC_HALF:
                    result += voice.volume
            noise.pos = (noise.pos + noise.step) & _U32
            while noise.pos >= self.FRAC_ONE:
                noise.pos -= self.FRAC_ONE
                self._clock_prng()
            if self.prng & 1:
                result += noise.volume
            out.append((-result, -result))
        return out


class TandySound:
    """Tandy sound device on I/O port 0xC0, rendering 16-bit stereo."""

    def __init__(self) -> None:
        self.generator = TandyGenerator()

    def write_register(self, address: int, data: int) -> None:
        """Handle a write to the data register; the address is ignored."""
        self.generator.process_event(data)

    def render(self, frames: int) -> list[IntFrame]:
        """Render ``frames`` 16-bit stereo frames at half amplitude."""
        return [(left >> 1, right >> 1) for left, right in self.generator.generate_frames(frames)]