"""Keyboard-controlled sine-wave test tone generator."""

from __future__ import annotations

import math

DEFAULT_TABLE_LEN = 2048
_STEP_UNIT = 0x10000


def build_sine_table(length: int) -> list[int]:
    """One period of a full-scale 16-bit cosine."""
    if length <= 0:
        raise ValueError(f"table length must be positive: {length}")
    return [int(32767 * math.cos(i * 2 * math.pi / length)) for i in range(length)]


class SineSynth:
    """Table-lookup oscillator with 16.16 fixed-point phase."""

    def __init__(self, table_len: int = DEFAULT_TABLE_LEN) -> None:
        self.table = build_sine_table(table_len)
        self.volume = 128
        self.step = 0x200000
        self.pos = 0
        self.pos_max = _STEP_UNIT * table_len
        self.max_step = (table_len // 16) * 0x20000

    def handle_key(self, key: str) -> bool:
        """Apply a control key; returns False when the key asks to quit."""
        if key == "-" and self.volume:
            self.volume -= 4
        if key in ("=", "+") and self.volume < 255:
            self.volume += 4
        if key == "[" and self.step > _STEP_UNIT:
            self.step -= _STEP_UNIT
        if key == "]" and self.step < self.max_step:
            self.step += _STEP_UNIT
        return key != "q"

    def fill(self, count: int) -> list[int]:
        """Produce ``count`` mono 16-bit samples."""
        if count < 0:
            raise ValueError(f"sample count must not be negative: {count}")
        samples = []
        for _ in range(count):
            samples.append((self.volume * self.table[self.pos >> 16]) >> 8)
            self.pos += self.step
            if self.pos >= self.pos_max:
                self.pos -= self.pos_max
        return samples