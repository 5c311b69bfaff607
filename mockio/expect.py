"""Expectations: stimulus -> response rules for the mock stream.

An expectation inspects the bytes written so far and reports whether it
recognises them, how many leading bytes it consumed, and what the device
answers. It never touches the stream's buffers itself.
"""

from __future__ import annotations
from typing import Callable, Tuple

MatchResult = Tuple[bytes, int, bool]
ExpectFuncTest = Callable[[bytes], Tuple[int, bool]]


def to_bytes(data) -> bytes:
    """Coerce bytes-like or str (UTF-8) input to immutable bytes."""
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise TypeError(f"expected bytes-like or str, got {type(data).__name__}")


def check_wait(wait: float) -> float:
    wait = float(wait)
    if wait < 0:
        raise ValueError(f"wait must be >= 0 seconds, got {wait}")
    return wait


class Expect:
    def match(self, sample: bytes) -> MatchResult:  # (response, count, ok)
        raise NotImplementedError

    def duration(self) -> float:  # seconds before the response is readable
        raise NotImplementedError


class ExpectBytes(Expect):
    """Match a literal byte sequence at the start of the held buffer.

    Only ``min(len(sample), len(expect))`` bytes are compared. A sample
    shorter than the pattern whose bytes all agree still counts as a full
    match consuming ``len(expect)`` bytes.

    Usage:
        e = ExpectBytes(b"\\x01\\x02", b"\\x03\\x04", wait=0.05)
    """

    def __init__(self, expect, respond, wait: float = 0.0):
        self._expect = to_bytes(expect)
        self._respond = to_bytes(respond)
        self._wait = check_wait(wait)

    @property
    def expect(self) -> bytes:
        return self._expect

    @property
    def respond(self) -> bytes:
        return self._respond

    def match(self, sample: bytes) -> MatchResult:
        n = min(len(sample), len(self._expect))
        if sample[:n] != self._expect[:n]:
            return b"", 0, False
        return self._respond, len(self._expect), True

    def duration(self) -> float:
        return self._wait

    def __repr__(self):
        return f"ExpectBytes({self._expect!r} -> {self._respond!r}, wait={self._wait})"


class ExpectFunc(Expect):
    """Match with a user test ``test(sample) -> (count, ok)``.

    The test always sees the whole held buffer starting at index 0 and
    reports how many leading bytes it consumed. It runs while the stream
    holds its lock; reading stream state from it is fine, but a ``send``
    from inside a test queues ahead of the write being matched.
    """

    def __init__(self, test: ExpectFuncTest, respond, wait: float = 0.0):
        if not callable(test):
            raise TypeError("test must be callable")
        self._test = test
        self._respond = to_bytes(respond)
        self._wait = check_wait(wait)

    @property
    def test(self) -> ExpectFuncTest:
        return self._test

    @property
    def respond(self) -> bytes:
        return self._respond

    def match(self, sample: bytes) -> MatchResult:
        count, ok = self._test(sample)
        if not ok:
            return b"", count, False
        return self._respond, count, True

    def duration(self) -> float:
        return self._wait

    def __repr__(self):
        name = getattr(self._test, "__name__", repr(self._test))
        return f"ExpectFunc({name} -> {self._respond!r}, wait={self._wait})"


def contains(needle) -> ExpectFuncTest:
    """Test matching when ``needle`` appears anywhere; consumes the whole sample."""
    needle = to_bytes(needle)

    def test(sample: bytes) -> Tuple[int, bool]:
        if needle in sample:
            return len(sample), True
        return 0, False

    test.__name__ = f"contains({needle!r})"
    return test


def startswith(prefix) -> ExpectFuncTest:
    """Strict prefix test: matches only once the complete prefix has arrived."""
    prefix = to_bytes(prefix)

    def test(sample: bytes) -> Tuple[int, bool]:
        if sample.startswith(prefix):
            return len(prefix), True
        return 0, False

    test.__name__ = f"startswith({prefix!r})"
    return test
