import pytest

from isasound.uart import AsyncUartWriter, RingBuffer, format_hex_u32


def test_add_wraps_head():
    ring = RingBuffer(4)
    for value in range(4):
        ring.add(value)
    assert ring.head == 0
    assert ring.buf == [0, 1, 2, 3]


def test_add_bytes_wraps_around_end():
    ring = RingBuffer(8)
    ring.add_bytes(b"abcdef")
    assert ring.head == 6
    ring.add_bytes(b"WXYZ")
    assert ring.head == 2
    assert bytes(ring.buf) == b"YZcdefWX"


def test_add_bytes_exact_end_resets_head():
    ring = RingBuffer(4)
    ring.add_bytes(b"abcd")
    assert ring.head == 0


def test_pop_returns_in_order():
    ring = RingBuffer(8)
    ring.add_bytes(b"xyz")
    assert len(ring) == 3
    assert [ring.pop() for _ in range(3)] == list(b"xyz")
    assert len(ring) == 0


def test_pop_empty_raises():
    with pytest.raises(IndexError):
        RingBuffer(4).pop()


def test_zero_size_rejected():
    with pytest.raises(ValueError):
        RingBuffer(0)


def test_writer_sends_first_byte_then_rest_on_tx():
    sent = []
    writer = AsyncUartWriter(sent.append)
    writer.out_chars(b"hello")
    assert sent == [ord("h")]
    while writer.on_tx():
        pass
    assert bytes(sent) == b"hello"
    assert writer.on_tx() is False


def test_writer_waits_when_not_writable():
    sent = []
    writer = AsyncUartWriter(sent.append, is_writable=lambda: False)
    writer.out_chars("ab")
    assert sent == []
    assert writer.on_tx()
    assert writer.on_tx()
    assert bytes(sent) == b"ab"


def test_writer_empty_write_sends_nothing():
    sent = []
    writer = AsyncUartWriter(sent.append)
    writer.out_chars(b"")
    assert sent == []


def test_format_hex_u32():
    assert format_hex_u32(0xDEADBEEF) == b"DEADBEEF\r\n"
    assert format_hex_u32(0) == b"00000000\r\n"