"""Shared mock device defaults and their environment overrides."""

import os


class MockIOConstants:
    """Single source of truth for mock stream timing and dump formatting."""

    # Delay queued for a write that matched nothing (seconds). Non-zero so a
    # reader always gets an entry to wake on.
    DEFAULT_DELAY_S = 0.001

    # None blocks forever, like a port opened without a timeout
    DEFAULT_READ_TIMEOUT_S = None

    # Traffic dump rendering
    DUMP_BYTES_PER_LINE = 16

    # Environment variable names
    ENV_DEFAULT_DELAY_MS = "MOCKIO_DEFAULT_DELAY_MS"
    ENV_DUMP = "MOCKIO_DUMP"


def default_delay() -> float:
    """Unmatched-write delay in seconds, honouring MOCKIO_DEFAULT_DELAY_MS."""
    raw = os.getenv(MockIOConstants.ENV_DEFAULT_DELAY_MS)
    if not raw:
        return MockIOConstants.DEFAULT_DELAY_S
    try:
        value = float(raw) / 1000.0
    except ValueError:
        raise ValueError(
            f"{MockIOConstants.ENV_DEFAULT_DELAY_MS} must be a number of milliseconds, got {raw!r}"
        )
    if value <= 0:
        raise ValueError(f"{MockIOConstants.ENV_DEFAULT_DELAY_MS} must be positive, got {raw!r}")
    return value


def dump_path():
    """Base path for automatic traffic dumps, or None when MOCKIO_DUMP is unset."""
    return os.getenv(MockIOConstants.ENV_DUMP) or None
