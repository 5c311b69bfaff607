"""Raw byte logger for mock stream traffic

Captures everything the client writes to and reads from a MockIO, plus the
device-side events (expectation matches, out-of-band injections) that
explain why a given response appeared.

Used for:
- Checking what a client actually put on the wire
- Comparing a test's expectations against observed traffic
- Troubleshooting reads that come back empty
"""

import logging
import threading
from datetime import datetime, timezone
from pathlib import Path

from .constants import MockIOConstants

logger = logging.getLogger(__name__)


class ByteDumpLogger:
    """Log raw mock stream I/O.

    Creates two files:
    - .dump: Binary dump of client I/O
    - .dump.txt: Human-readable hex/decimal format with device events

    Safe to share between a writer thread and a reader thread.
    """

    @staticmethod
    def _iso_timestamp() -> str:
        """UTC ISO-8601 timestamp with millisecond precision."""
        return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def __init__(self, base_path: str):
        """Initialize byte logger.

        Args:
            base_path: Base path for log files (without extension)
                      Creates: {base_path}.dump and {base_path}.dump.txt
        """
        self.base_path = Path(base_path)
        self.base_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self.binary_file = open(f"{base_path}.dump", "wb")
        self.text_file = open(f"{base_path}.dump.txt", "w")

        self.text_file.write(f"MockIO Stream Dump - {self._iso_timestamp()}\n")
        self.text_file.write("=" * 70 + "\n\n")
        self.text_file.flush()

    @property
    def closed(self) -> bool:
        return self.text_file.closed

    def _write_rows(self, label: str, data: bytes, fmt: str):
        per_line = MockIOConstants.DUMP_BYTES_PER_LINE
        self.text_file.write(f"  {label}: ")
        for i, byte in enumerate(data):
            self.text_file.write(format(byte, fmt) + " ")
            if (i + 1) % per_line == 0 and i < len(data) - 1:
                self.text_file.write("\n       ")
        self.text_file.write("\n")

    def _log(self, tag: str, data: bytes, description: str = "", binary: bool = True):
        with self._lock:
            if self.closed:
                logger.debug(f"Dump {self.base_path} closed; dropping {tag} ({len(data)} bytes)")
                return
            timestamp = self._iso_timestamp()

            if binary:
                arrow = ">>>" if tag == "SEND" else "<<<"
                self.binary_file.write(f"{arrow} {tag} ".encode("ascii") + data + b"\n")
                self.binary_file.flush()

            self.text_file.write(f"[{timestamp}] {tag} ({len(data)} bytes)")
            if description:
                self.text_file.write(f": {description}")
            self.text_file.write("\n")
            self._write_rows("HEX", data, "02x")
            self._write_rows("DEC", data, "3d")
            self.text_file.write("\n")
            self.text_file.flush()

    def log_send(self, data: bytes, description: str = ""):
        """Log bytes the client wrote to the mock device."""
        self._log("SEND", data, description)

    def log_recv(self, data: bytes):
        """Log bytes the client read back. Empty reads are skipped."""
        if not data:
            return
        self._log("RECV", data)

    def log_match(self, response: bytes, description: str):
        """Log a response queued by a matching expectation."""
        self._log("MATCH", response, description, binary=False)

    def log_inject(self, data: bytes, wait: float):
        """Log an out-of-band send."""
        self._log("OOB", data, f"wait={wait:.3f}s", binary=False)

    def log_error(self, message: str):
        """Log error message."""
        with self._lock:
            if self.closed:
                return
            self.text_file.write(f"[{self._iso_timestamp()}] ERROR: {message}\n\n")
            self.text_file.flush()

    def close(self):
        """Close log files."""
        with self._lock:
            if not self.binary_file.closed:
                self.binary_file.close()
            if not self.text_file.closed:
                self.text_file.write(f"\nLog closed: {self._iso_timestamp()}\n")
                self.text_file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
