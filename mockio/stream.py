"""MockIO: a scripted stand-in for a serial-like byte stream.

Writes are matched against registered expectations in registration order;
the first match queues its response and its delay. Every write or send puts
exactly one delay on a FIFO queue and every read takes exactly one off, so
reads surface responses in the order the writes and sends happened.

Usage:
    m = MockIO()
    m.expect(ExpectBytes(b"\\x01\\x02", b"\\x03\\x04", wait=0.01))
    m.write(b"\\x01\\x02")
    m.read(2)  # b"\\x03\\x04" after ~10 ms
"""

from __future__ import annotations
import logging
import queue
import threading
import time
from typing import List, Optional

from . import constants
from .byte_logger import ByteDumpLogger
from .constants import MockIOConstants
from .errors import MockEOFError, MockTimeoutError
from .expect import Expect, check_wait, to_bytes

logger = logging.getLogger(__name__)

# Sentinel: "use the stream's default timeout" (None already means block forever)
_DEFAULT = object()


class MockIO:
    """Mock I/O stream driven by expectations.

    Args:
        timeout: Default read timeout in seconds; None blocks until a
                 response is scheduled.
        default_delay: Delay queued for writes that match nothing. Defaults
                       to MOCKIO_DEFAULT_DELAY_MS or DEFAULT_DELAY_S.
        dump: Base path for a ByteDumpLogger, or a ByteDumpLogger instance.
              Defaults to MOCKIO_DUMP when set.
    """

    def __init__(
        self,
        timeout: Optional[float] = MockIOConstants.DEFAULT_READ_TIMEOUT_S,
        default_delay: Optional[float] = None,
        dump=None,
    ):
        # Re-entrant: ExpectFunc tests run under it and may inspect the stream
        self._lock = threading.RLock()
        self._held = bytearray()
        self._outbound = bytearray()
        self._expects: List[Expect] = []
        self._delays: queue.Queue = queue.Queue()
        self._write_log: List[bytes] = []
        self._timeout = timeout

        if default_delay is None:
            default_delay = constants.default_delay()
        self._default_delay = check_wait(default_delay)
        if self._default_delay == 0:
            raise ValueError("default_delay must be non-zero")

        if dump is None:
            dump = constants.dump_path()
        if dump is None or isinstance(dump, ByteDumpLogger):
            self._dump = dump
        else:
            self._dump = ByteDumpLogger(str(dump))

        self.is_open = True

    # --- expectations ---
    def expect(self, exp: Expect):
        """Register an expectation. Earlier registrations take priority."""
        with self._lock:
            self._expects.append(exp)
        logger.debug(f"Registered {exp!r}")

    def clear_expectations(self):
        """Remove all expectations. Buffers and queued delays are untouched."""
        with self._lock:
            self._expects = []
        logger.info("Cleared expectations")

    @property
    def expects(self) -> List[Expect]:
        with self._lock:
            return list(self._expects)

    # --- device side ---
    @staticmethod
    def _try_match(exp: Expect, sample: bytes):
        """Return (response, count, wait) for a usable match, else None.

        Everything the expectation reports is validated here, before any
        buffer is touched; a misbehaving expectation counts as no match.
        """
        try:
            response, count, ok = exp.match(sample)
            if not ok:
                return None
            response = to_bytes(response)
            count = max(0, min(int(count), len(sample)))
            wait = check_wait(exp.duration())
        except Exception:
            logger.warning(f"{exp!r} raised while matching; skipping", exc_info=True)
            return None
        return response, count, wait

    def write(self, data) -> int:
        """Hand bytes to the device. Always accepts everything and never blocks."""
        data = to_bytes(data)
        matched = None

        with self._lock:
            self._write_log.append(data)
            self._held.extend(data)
            wait = self._default_delay

            sample = bytes(self._held)
            for exp in list(self._expects):
                result = self._try_match(exp, sample)
                if result is None:
                    continue
                response, count, wait = result
                del self._held[:count]
                self._outbound.extend(response)
                matched = (exp, response)
                break

            # Queued under the lock so delay order follows outbound order
            self._delays.put(wait)
            held = len(self._held)

        if self._dump:
            self._dump.log_send(data)
        if matched:
            exp, response = matched
            logger.debug(f"write {data!r} matched {exp!r}; {held} bytes still held")
            if self._dump:
                self._dump.log_match(response, repr(exp))
        else:
            logger.debug(f"write {data!r} matched nothing; {held} bytes held")
        return len(data)

    def send(self, data, wait: float = 0.0):
        """Inject unsolicited device output, bypassing expectations."""
        data = to_bytes(data)
        wait = check_wait(wait)
        with self._lock:
            self._outbound.extend(data)
            self._delays.put(wait)
        logger.debug(f"send {data!r} (wait={wait}s)")
        if self._dump:
            self._dump.log_inject(data, wait)

    # --- client side ---
    def _next_delay(self, timeout) -> float:
        if timeout is _DEFAULT:
            timeout = self._timeout
        if timeout is None:
            return self._delays.get()
        if timeout < 0:
            raise ValueError(f"timeout must be >= 0 seconds, got {timeout}")
        try:
            return self._delays.get(timeout=timeout)
        except queue.Empty:
            raise MockTimeoutError(f"No response scheduled within {timeout}s")

    def _take(self, limit: int, timeout) -> bytes:
        wait = self._next_delay(timeout)
        if wait > 0:
            time.sleep(wait)

        with self._lock:
            if not self._outbound:
                out = None
            else:
                out = bytes(self._outbound[: max(0, limit)])
                del self._outbound[: len(out)]

        if out is None:
            logger.debug("read found no data after its delay")
            if self._dump:
                self._dump.log_error("read found no data after its delay")
            raise MockEOFError("No data available to read")

        logger.debug(f"read {out!r}")
        if self._dump:
            self._dump.log_recv(out)
        return out

    def read(self, size: int = 1, timeout=_DEFAULT) -> bytes:
        """Wait for the next scheduled response, then return up to ``size`` bytes.

        Raises MockEOFError if nothing is left to deliver once the delay has
        elapsed, and MockTimeoutError if ``timeout`` (or the stream default)
        expires before any response is scheduled.
        """
        return self._take(size, timeout)

    def readinto(self, buffer, timeout=_DEFAULT) -> int:
        """Like read() but copies into ``buffer`` and returns the byte count."""
        view = memoryview(buffer).cast("B")
        if view.readonly:
            raise TypeError(f"readinto() needs a writable buffer, got {type(buffer).__name__}")
        out = self._take(len(view), timeout)
        view[: len(out)] = out
        return len(out)

    # --- lifecycle / pyserial-style helpers ---
    def close(self):
        """Drop held and outbound bytes. Expectations and queued delays survive.

        An attached ByteDumpLogger is closed too; the stream keeps working but
        later traffic is no longer dumped (each dropped entry is logged at DEBUG).
        """
        with self._lock:
            self._outbound = bytearray()
            self._held = bytearray()
        self.is_open = False
        logger.info("MockIO closed")
        if self._dump:
            self._dump.close()

    def set_timeout(self, timeout: Optional[float]):
        self._timeout = timeout

    @property
    def timeout(self) -> Optional[float]:
        return self._timeout

    def reset_input_buffer(self):
        """Discard responses the client has not read yet."""
        with self._lock:
            self._outbound = bytearray()

    def reset_output_buffer(self):
        """Discard written bytes that no expectation has consumed."""
        with self._lock:
            self._held = bytearray()

    @property
    def in_waiting(self) -> int:
        with self._lock:
            return len(self._outbound)

    @property
    def holding(self) -> bytes:
        with self._lock:
            return bytes(self._held)

    @property
    def pending_delays(self) -> int:
        return self._delays.qsize()

    @property
    def writes(self) -> List[bytes]:
        with self._lock:
            return list(self._write_log)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
