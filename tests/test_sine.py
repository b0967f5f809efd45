import pytest

from isasound.sine import SineSynth, build_sine_table


def test_table_extremes():
    table = build_sine_table(2048)
    assert len(table) == 2048
    assert table[0] == 32767
    assert table[1024] == -32767
    assert max(table) == 32767


def test_table_is_symmetric():
    table = build_sine_table(64)
    assert all(table[i] == table[64 - i] for i in range(1, 64))


def test_table_rejects_zero_length():
    with pytest.raises(ValueError):
        build_sine_table(0)


def test_fill_is_periodic():
    synth = SineSynth()
    samples = synth.fill(128)
    assert samples[:64] == samples[64:]
    assert samples[0] > 0


def test_fill_within_volume_bound():
    synth = SineSynth()
    limit = (synth.volume * 32767) >> 8
    assert all(-limit - 1 <= s <= limit for s in synth.fill(500))


def test_fill_negative_count():
    with pytest.raises(ValueError):
        SineSynth().fill(-1)


def test_quit_key():
    synth = SineSynth()
    assert synth.handle_key("q") is False
    assert synth.handle_key("x") is True


def test_volume_down_to_silence():
    synth = SineSynth()
    start = synth.volume
    synth.handle_key("-")
    assert synth.volume == start - 4
    for _ in range(100):
        synth.handle_key("-")
    assert synth.volume == 0
    assert synth.fill(32) == [0] * 32


def test_volume_up_caps():
    synth = SineSynth()
    for _ in range(100):
        synth.handle_key("+")
    capped = synth.volume
    synth.handle_key("=")
    assert synth.volume == capped
    assert capped >= 255


def test_step_bounds():
    synth = SineSynth()
    for _ in range(1000):
        synth.handle_key("[")
    assert synth.step == 0x10000
    for _ in range(1000):
        synth.handle_key("]")
    assert synth.step == synth.max_step


def test_position_stays_in_range():
    synth = SineSynth()
    synth.fill(10000)
    assert 0 <= synth.pos < synth.pos_max