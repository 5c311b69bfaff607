"""mockio - scripted mock byte stream for testing serial-style clients.

Register expectations on a MockIO, hand it to the code under test in place
of a serial port, and read back the responses it schedules.
"""

from .stream import MockIO
from .expect import Expect, ExpectBytes, ExpectFunc, contains, startswith
from .errors import MockIOError, MockEOFError, MockTimeoutError
from .byte_logger import ByteDumpLogger
from .constants import MockIOConstants

__all__ = [
    "MockIO",
    "Expect",
    "ExpectBytes",
    "ExpectFunc",
    "contains",
    "startswith",
    "MockIOError",
    "MockEOFError",
    "MockTimeoutError",
    "ByteDumpLogger",
    "MockIOConstants",
]
__version__ = "0.1.0"
