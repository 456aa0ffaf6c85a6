"""
Log sink abstractions and concrete implementations.
"""

from __future__ import annotations

import os
import sys
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Literal

from .formatters import ConsoleFormatter, FileFormatter, JSONFormatter
from .types import LogEntry, LogLevel

LogFormat = Literal["console", "json"]

CLEARED_MARKER = "=== LOGS CLEARED ==="


# =============================================================================
# Sink Abstraction (Strategy Pattern)
# =============================================================================


class BaseSink(ABC):
    """Abstract base class for log sinks."""

    @abstractmethod
    def emit(self, entry: LogEntry) -> None:
        """Emit a log entry to the sink."""
        ...

    def close(self) -> None:
        """Close the sink and release resources."""


class ConsoleSink(BaseSink):
    """Standard output sink with configurable format.

    Args:
        stream: Output stream (default: stdout)
        fmt: Output format - "console" (human-readable) or "json"
    """

    def __init__(self, stream: Any = None, fmt: LogFormat = "console"):
        self._stream = stream
        self._fmt = fmt

    @property
    def stream(self) -> Any:
        # Resolved per call so pytest's capsys and redirected stdout are honoured.
        return self._stream or sys.stdout

    def emit(self, entry: LogEntry) -> None:
        stream = self.stream
        try:
            if self._fmt == "json":
                output = JSONFormatter.format(entry)
            else:
                use_color = bool(getattr(stream, "isatty", lambda: False)())
                output = ConsoleFormatter.format(entry, use_color=use_color)
            stream.write(output + "\n")
            stream.flush()
        except (OSError, ValueError):
            pass


class RotatingFileSink(BaseSink):
    """Append-only text log with a single backup generation.

    When the current file grows past ``max_bytes`` the previous backup is
    discarded, the current file becomes the backup and a fresh file is started.
    """

    def __init__(self, path: str | Path, max_bytes: int = 10 * 1024 * 1024):
        self._path = Path(path)
        self.max_bytes = max_bytes
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.touch(exist_ok=True)
        except OSError:
            pass
        self._rotate_if_needed()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def backup_path(self) -> Path:
        return self._path.with_name(f"{self._path.stem}.old{self._path.suffix}")

    def emit(self, entry: LogEntry) -> None:
        self.write(FileFormatter.format(entry))

    def write(self, line: str) -> None:
        try:
            with open(self._path, "a", encoding="utf-8") as fh:
                fh.write(line + "\n")
        except OSError:
            pass
        self._rotate_if_needed()

    def clear(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.touch()
        except OSError:
            pass
        self.write(CLEARED_MARKER)

    def _rotate_if_needed(self) -> None:
        try:
            if self._path.stat().st_size <= self.max_bytes:
                return
            backup = self.backup_path
            backup.unlink(missing_ok=True)
            os.replace(self._path, backup)
            self._path.touch()
        except OSError:
            pass


# syslog priorities by level name; resolved against the backend at emit time.
_SYSLOG_PRIORITIES = {
    LogLevel.DEBUG: "LOG_DEBUG",
    LogLevel.INFO: "LOG_INFO",
    LogLevel.WARNING: "LOG_WARNING",
    LogLevel.ERROR: "LOG_ERR",
    LogLevel.FATAL: "LOG_CRIT",
}

# openlog/closelog act on the whole process, so each backend is opened once
# and stays open for every sink that shares it. Values keep the backend alive
# so its id is never reused.
_opened_backends: dict[int, Any] = {}
_open_lock = threading.Lock()


def _open_syslog(backend: Any) -> None:
    with _open_lock:
        if id(backend) in _opened_backends:
            return
        backend.openlog(logoption=backend.LOG_PID, facility=backend.LOG_USER)
        _opened_backends[id(backend)] = backend


class OSLogSink(BaseSink):
    """Platform structured log sink backed by syslog.

    Every message carries its own ``<subsystem>:`` tag followed by the
    ``[category]`` channel, so several loggers with different subsystems can
    share the process-wide syslog connection. On platforms without syslog the
    sink is a no-op.
    """

    def __init__(self, subsystem: str, backend: Any = None):
        self._subsystem = subsystem
        if backend is None:
            try:
                import syslog as backend
            except ImportError:
                backend = None
        self._backend = backend
        self._available = backend is not None
        if self._available:
            try:
                _open_syslog(backend)
            except (OSError, AttributeError):
                self._available = False

    @property
    def subsystem(self) -> str:
        return self._subsystem

    @property
    def available(self) -> bool:
        return self._available

    def emit(self, entry: LogEntry) -> None:
        if not self._available:
            return
        priority = getattr(self._backend, _SYSLOG_PRIORITIES[entry.level])
        try:
            self._backend.syslog(priority, f"{self._subsystem}: [{entry.category}] {entry.message}")
        except (OSError, ValueError):
            pass
