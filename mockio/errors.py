"""Exceptions raised by the mock stream.

Rooted in pyserial's exception tree so client code written against a real
``serial.Serial`` port catches the same things when handed a ``MockIO``.
"""

from serial import SerialException, SerialTimeoutException


class MockIOError(SerialException):
    """Base class for mock stream errors."""


class MockEOFError(MockIOError, EOFError):
    """Raised when a read's delay elapsed but there was nothing to deliver."""


class MockTimeoutError(MockIOError, SerialTimeoutException):
    """Raised when a read with a timeout finds no scheduled response in time."""
