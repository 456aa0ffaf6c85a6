"""
In-memory capture of emitted entries for test assertions.
"""

from __future__ import annotations

import threading

from .types import LogEntry


class CaptureBuffer:
    """Append-only, order-preserving list of entries.

    Unbounded: callers clear it between test cases.
    """

    def __init__(self) -> None:
        self._entries: list[LogEntry] = []
        self._lock = threading.Lock()

    def append(self, entry: LogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def snapshot(self) -> list[LogEntry]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
