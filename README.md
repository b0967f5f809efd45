# isasound

Software models of sound and support hardware found on classic ISA PC sound
cards. Everything is plain Python with no dependencies beyond the standard
library. The chip models produce lists of integer (or, for the PC speaker,
float) samples; what you do with them is up to you.

## Modules

- `isasound.tandy`
  - `SpeakerGenerator`: square-wave PC speaker driven by a PIT divisor
    (`process_event(divisor, enable)`, `generate_frames(frames, gain)`).
  - `Speaker`: PC speaker controller with `set_rate(rate)` and
    `set_control(data)` (bit 0 gate, bit 1 enable).
  - `TandyGenerator`: three tone voices and one noise voice
    (`process_event(data)`, `generate_frames(frames)`).
  - `TandySound`: `write_register(address, data)` and `render(frames)`,
    which returns `(left, right)` pairs at half amplitude.
- `isasound.cms`
  - `Saa1099Generator`: one SAA1099 chip, six voices, two noise generators
    and two envelopes (`process_event(reg, data)`, `generate_frames(frames)`).
  - `Cms`: the Creative Music System card, two chips behind 16 I/O ports
    (`generator(index)`, `write_addr`, `write_data`, `write_unimp`,
    `read_unimp`, `read_detect`).
- `isasound.saa1099`
  - `Saa1099Device`: a second, counter-driven SAA1099 model with
    `control_w(data)`, `data_w(data)` and `sound_stream_update(samples)`.
- `isasound.sbdsp`
  - `SoundBlasterDsp`: a DSP that reports version 2.01, with mailbox ports
    (`read`, `write`), a command state machine (`process`), DMA pacing
    (`dma_event`, `dma_complete`) and the current output `sample()`.
  - `DspBus`: records scheduled events, the IRQ line and DMA read requests,
    so a host loop or a test can drive the DSP.
  - `DspPort` and `DspCommand`: the port offsets and commands understood.
- `isasound.reflash`
  - `FirmwareWriter`: collects streamed bytes into 512-byte UF2 blocks and
    writes their payloads into a `FlashMemory`; `start()` begins a write,
    or calls the reboot callback once a write has finished.
  - `UF2Block.from_bytes(data)`, `FlashMemory.erase` / `program`, and the
    `FirmwareStatus` enum (`IDLE`, `WRITING`, `BUSY`, `DONE`, `ERROR`).
- `isasound.uart`
  - `RingBuffer`: fixed-size ring buffer (`add`, `add_bytes`, `pop`);
    overflow overwrites queued data.
  - `AsyncUartWriter`: queues output with `out_chars(data)` and hands one
    byte at a time to a transmit callback from `on_tx()`.
  - `format_hex_u32(word)`: eight upper-case hex digits followed by CR LF.
- `isasound.sine`
  - `build_sine_table(length)` and `SineSynth`, a 16.16 fixed-point table
    oscillator with `handle_key(key)` (`-`, `=`/`+`, `[`, `]`, `q`) and
    `fill(count)`.
- `isasound.joystick`
  - `JoyState`: two joysticks and four active-low buttons, updated with
    `update_from_buttons(...)` or `update_from_xinput(...)`.
  - `Ds4Report.from_bytes(data)`, `process_sony_ds4(state, report)`,
    `is_sony_ds4(vid, pid)` and `is_ps_classic(vid, pid)`.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example: a Tandy tone

```python
from isasound.tandy import TandySound

chip = TandySound()
chip.write_register(0, 0x8E)   # voice 0, low four bits of the divisor
chip.write_register(0, 0x0F)   # voice 0, high six bits of the divisor
chip.write_register(0, 0x90)   # voice 0, full volume
frames = chip.render(8)        # list of (left, right) pairs
```

## Example: talking to the Sound Blaster DSP

```python
from isasound.sbdsp import DspBus, SoundBlasterDsp

dsp = SoundBlasterDsp(DspBus())
dsp.write(0x6, 1)              # assert reset
dsp.write(0x6, 0)              # release reset
dsp.read(0xA)                  # 0xAA: reset acknowledged
dsp.write(0xC, 0xE1)           # ask for the DSP version
dsp.process()
dsp.read(0xA)                  # 2, the major version
dsp.process()
dsp.read(0xA)                  # 1, the minor version
```

## What the package does not do

- It does not play sound. Samples come back as Python lists; sending them
  to an audio device is left to the caller.
- It has no command-line program and no bus or card emulation tying the
  chips to I/O ports; each model is driven directly through its methods.
- It does not talk to USB devices or real flash memory. Joystick reports and
  firmware bytes must be passed in, and `FlashMemory` lives in memory.