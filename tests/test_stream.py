import time

import pytest
import serial

from mockio import MockIO, ExpectBytes, ExpectFunc, MockEOFError, MockTimeoutError


def two_byte_test(b):
    if len(b) != 2:
        return 0, False
    if b[0] != 0 and b[1] != 1:
        return 0, False
    return 2, True


def test_expect_bytes_roundtrip():
    m = MockIO()
    m.expect(ExpectBytes(b"\x01\x02", b"\x03\x04", 0))
    assert m.write(b"\x01\x02") == 2
    assert m.read(2) == b"\x03\x04"

    # Second pattern copy stays held for a later match
    m.write(b"\x01\x02\x01\x02")
    assert m.read(2) == b"\x03\x04"
    assert m.holding == b"\x01\x02"


def test_prefix_match_leaves_remainder_held():
    m = MockIO()
    m.expect(ExpectBytes(b"AT", b"OK"))
    m.write(b"AT+RST")
    assert m.read(10) == b"OK"
    assert m.holding == b"+RST"


def test_expect_func_roundtrip():
    m = MockIO()
    m.expect(ExpectFunc(two_byte_test, b"\x03\x04", 0))
    m.write(b"\x00\x01")
    assert m.read(2) == b"\x03\x04"


def test_unmatched_write_reads_eof():
    m = MockIO()
    m.expect(ExpectBytes(b"\x01\x02", b"\x03\x04", 0))
    m.write(b"\x00\x02")
    with pytest.raises(MockEOFError):
        m.read(2)
    assert m.in_waiting == 0

    # Held bytes accumulate; the prefix is still wrong
    m.write(b"\x01\x04")
    with pytest.raises(MockEOFError):
        m.read(2)
    assert m.holding == b"\x00\x02\x01\x04"


def test_eof_error_is_an_eoferror_and_serial_exception():
    m = MockIO()
    m.write(b"x")
    with pytest.raises(EOFError):
        m.read(1)
    m.write(b"x")
    with pytest.raises(serial.SerialException):
        m.read(1)


def test_clear_expectations():
    m = MockIO()
    m.expect(ExpectBytes(b"\x01\x02", b"\x03\x04", 0))
    assert len(m.expects) == 1
    m.clear_expectations()
    assert len(m.expects) == 0

    m.expect(ExpectBytes(b"\x01\x02", b"\x03\x04", 0))
    m.write(b"\x03\x04")
    assert len(m.holding) == 2
    m.close()
    assert len(m.holding) == 0


def test_clear_then_write_does_not_deadlock():
    m = MockIO()
    m.expect(ExpectBytes(b"a", b"b"))
    m.clear_expectations()
    m.write(b"a")
    assert m.pending_delays == 1
    with pytest.raises(MockEOFError):
        m.read(1, timeout=1.0)
    assert m.holding == b"a"


def test_expect_keeps_duplicates():
    m = MockIO()
    e = ExpectBytes(b"a", b"b")
    m.expect(e)
    m.expect(e)
    assert m.expects == [e, e]


@pytest.mark.parametrize("wait", [0.0, 0.02, 0.05, 0.12])
def test_read_waits_for_match_delay(wait):
    m = MockIO()
    e = ExpectFunc(two_byte_test, b"\x03\x04", wait)
    m.expect(e)
    start = time.monotonic()
    m.write(b"\x00\x01")
    assert m.read(2) == b"\x03\x04"
    assert time.monotonic() - start >= e.duration()


def test_send():
    m = MockIO()
    m.send(b"Hi", 0)
    start = time.monotonic()
    assert m.read(2) == b"Hi"
    assert time.monotonic() - start < 0.5

    start = time.monotonic()
    m.send("Hullo", 0.1)
    assert m.read(10) == b"Hullo"
    assert time.monotonic() - start >= 0.1


def test_read_size_limits_copy():
    m = MockIO()
    m.send(b"abcdef")
    assert m.read(4) == b"abcd"
    assert m.in_waiting == 2


def test_readinto():
    m = MockIO()
    m.expect(ExpectBytes(b"\x01\x02", b"\x03\x04"))
    m.write(b"\x01\x02")
    buf = bytearray(8)
    n = m.readinto(buf)
    assert n == 2
    assert buf[:n] == b"\x03\x04"


def test_empty_response_match_reads_eof():
    m = MockIO()
    m.expect(ExpectBytes(b"ping", b""))
    m.write(b"ping")
    assert m.holding == b""
    with pytest.raises(MockEOFError):
        m.read(4)


def test_read_timeout_extension():
    m = MockIO()
    with pytest.raises(MockTimeoutError):
        m.read(1, timeout=0.05)

    m.set_timeout(0.05)
    with pytest.raises(serial.SerialTimeoutException):
        m.read(1)


def test_negative_default_delay_rejected():
    with pytest.raises(ValueError):
        MockIO(default_delay=-0.1)
    with pytest.raises(ValueError):
        MockIO(default_delay=0)


def test_write_log():
    m = MockIO()
    m.write(b"one")
    m.write(bytearray(b"two"))
    assert m.writes == [b"one", b"two"]


def test_readinto_readonly_buffer_keeps_response():
    m = MockIO()
    m.send(b"\x03\x04")
    with pytest.raises(TypeError):
        m.readinto(bytes(2))
    assert m.pending_delays == 1
    buf = bytearray(2)
    assert m.readinto(buf) == 2
    assert buf == b"\x03\x04"
