"""
Logger core: level filtering, capture and fan-out to the sinks.

Every call runs through a structlog filtering bound logger. Calls below the
configured level are dropped by structlog before any work is done; accepted
calls pass through a processor chain that builds the ``LogEntry``, records
it in the capture buffer and hands it to the serial dispatcher, which writes
to console, file and OS log in that order on its worker thread.
"""

from __future__ import annotations

import atexit
import inspect
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, TypeVar
from uuid import uuid4

import structlog
from structlog.typing import EventDict, FilteringBoundLogger, WrappedLogger

from .capture import CaptureBuffer
from .config import LoggerConfiguration, LoggingSettings, default_configuration
from .dispatch import SerialDispatcher
from .paths import default_log_dir, log_file_path
from .scoped import ScopedLogger
from .sinks import BaseSink, ConsoleSink, OSLogSink, RotatingFileSink
from .types import (
    UNKNOWN_SOURCE,
    Category,
    LogCategory,
    LogEntry,
    LogLevel,
    SourceLocation,
    category_tag,
)

T = TypeVar("T")

_INTERNAL_MODULES = frozenset({"fanlog", "structlog", "logging"})


# =============================================================================
# Structlog Processors
# =============================================================================


def find_caller() -> SourceLocation:
    """First stack frame outside the logging machinery."""
    frame = inspect.currentframe()
    while frame is not None:
        module = frame.f_globals.get("__name__") or ""
        if module.split(".", 1)[0] not in _INTERNAL_MODULES:
            code = frame.f_code
            return SourceLocation(file=code.co_filename, function=code.co_name, line=frame.f_lineno)
        frame = frame.f_back
    return UNKNOWN_SOURCE


def add_identity(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp a fresh entry id and the current UTC time."""
    event_dict["id"] = uuid4()
    event_dict["timestamp"] = datetime.now(timezone.utc)
    return event_dict


def add_call_site(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Resolve the call site unless one was passed explicitly."""
    if event_dict.get("source") is None:
        event_dict["source"] = find_caller()
    return event_dict


def build_entry(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Collapse the event dict into an immutable ``LogEntry``."""
    source: SourceLocation = event_dict["source"]
    context = event_dict.get("context")
    entry = LogEntry(
        id=event_dict["id"],
        timestamp=event_dict["timestamp"],
        level=event_dict["log_level"],
        category=category_tag(event_dict["category"]),
        message=str(event_dict["event"]),
        file=source.file,
        function=source.function,
        line=source.line,
        context=None if context is None else {str(k): str(v) for k, v in context.items()},
    )
    return {"entry": entry}


# =============================================================================
# Logger
# =============================================================================


class Logger:
    """Process-wide structured logger with console, file and OS log sinks.

    Safe to call from any thread. Sink I/O never happens on the caller's
    thread and sink failures never reach the caller.
    """

    def __init__(
        self,
        configuration: LoggerConfiguration | None = None,
        *,
        log_dir: str | Path | None = None,
        subsystem: str | None = None,
        console_stream: Any = None,
        console_format: str | None = None,
        os_backend: Any = None,
        settings: LoggingSettings | None = None,
    ):
        # The environment is only consulted for what the caller left out.
        if settings is None and any(arg is None for arg in (configuration, log_dir, subsystem, console_format)):
            settings = LoggingSettings()
        if configuration is None:
            configuration = default_configuration(settings=settings)
        if log_dir is None:
            log_dir = settings.log_dir or default_log_dir(settings.app_name)
        if subsystem is None:
            subsystem = settings.app_name
        if console_format is None:
            console_format = settings.console_format.value

        self._lock = threading.Lock()
        self._configuration = configuration
        self._log_dir = Path(log_dir)

        self._console_sink = ConsoleSink(console_stream, fmt=console_format)
        self._os_sink = OSLogSink(subsystem, backend=os_backend)
        self._file_sink: RotatingFileSink | None = None

        self._captured = CaptureBuffer()
        self._capturing = False

        self._dispatcher = SerialDispatcher()
        self._closed = False

        self._bound = self._build_pipeline(self._configuration)
        self._ensure_file_sink(self._configuration)

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    @property
    def configuration(self) -> LoggerConfiguration:
        return self._configuration

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    @property
    def log_file_path(self) -> Path:
        return log_file_path(self._log_dir)

    def configure(self, configuration: LoggerConfiguration) -> None:
        """Replace the active configuration for all subsequent calls."""
        with self._lock:
            self._configuration = configuration
            self._bound = self._build_pipeline(configuration)
            self._ensure_file_sink(configuration)

    def _build_pipeline(self, configuration: LoggerConfiguration) -> FilteringBoundLogger:
        return structlog.wrap_logger(
            structlog.ReturnLogger(),
            processors=[
                add_identity,
                add_call_site,
                build_entry,
                self._capture_entry,
                self._dispatch_entry,
            ],
            wrapper_class=structlog.make_filtering_bound_logger(int(configuration.log_level)),
            context_class=dict,
        ).bind()

    def _ensure_file_sink(self, configuration: LoggerConfiguration) -> None:
        if self._file_sink is not None:
            self._file_sink.max_bytes = configuration.max_file_size
        elif configuration.enable_file_logging:
            self._file_sink = RotatingFileSink(self.log_file_path, max_bytes=configuration.max_file_size)

    # -------------------------------------------------------------------------
    # Logging Methods
    # -------------------------------------------------------------------------

    def log(
        self,
        level: LogLevel,
        message: str,
        category: Category = LogCategory.GENERAL,
        context: Mapping[str, object] | None = None,
        *,
        source: SourceLocation | None = None,
    ) -> None:
        self._bound.log(
            int(level),
            message,
            log_level=LogLevel(level),
            category=category,
            context=context,
            source=source,
        )

    def debug(
        self,
        message: str,
        category: Category = LogCategory.GENERAL,
        context: Mapping[str, object] | None = None,
        *,
        source: SourceLocation | None = None,
    ) -> None:
        self.log(LogLevel.DEBUG, message, category, context, source=source)

    def info(
        self,
        message: str,
        category: Category = LogCategory.GENERAL,
        context: Mapping[str, object] | None = None,
        *,
        source: SourceLocation | None = None,
    ) -> None:
        self.log(LogLevel.INFO, message, category, context, source=source)

    def warning(
        self,
        message: str,
        category: Category = LogCategory.GENERAL,
        context: Mapping[str, object] | None = None,
        *,
        source: SourceLocation | None = None,
    ) -> None:
        self.log(LogLevel.WARNING, message, category, context, source=source)

    def error(
        self,
        message: str,
        category: Category = LogCategory.GENERAL,
        context: Mapping[str, object] | None = None,
        *,
        source: SourceLocation | None = None,
    ) -> None:
        self.log(LogLevel.ERROR, message, category, context, source=source)

    def fatal(
        self,
        message: str,
        category: Category = LogCategory.GENERAL,
        context: Mapping[str, object] | None = None,
        *,
        source: SourceLocation | None = None,
    ) -> None:
        self.log(LogLevel.FATAL, message, category, context, source=source)

    # -------------------------------------------------------------------------
    # Performance Tracking
    # -------------------------------------------------------------------------

    def measure(
        self,
        operation_name: str,
        operation: Callable[[], T],
        *,
        category: Category = LogCategory.PERFORMANCE,
        level: LogLevel = LogLevel.DEBUG,
    ) -> T:
        """Run ``operation`` and log how long it took.

        Exceptions from ``operation`` propagate and no timing entry is written.
        """
        start = time.perf_counter()
        result = operation()
        self._log_duration(operation_name, start, category, level)
        return result

    async def ameasure(
        self,
        operation_name: str,
        operation: Callable[[], Awaitable[T]],
        *,
        category: Category = LogCategory.PERFORMANCE,
        level: LogLevel = LogLevel.DEBUG,
    ) -> T:
        """Async variant of :meth:`measure` for coroutine functions."""
        start = time.perf_counter()
        result = await operation()
        self._log_duration(operation_name, start, category, level)
        return result

    def _log_duration(self, operation_name: str, start: float, category: Category, level: LogLevel) -> None:
        elapsed_ms = (time.perf_counter() - start) * 1000
        self.log(
            level,
            f"⏱️ {operation_name} completed",
            category,
            {"operation": operation_name, "durationMs": f"{elapsed_ms:.2f}"},
        )

    # -------------------------------------------------------------------------
    # Scoped Logging
    # -------------------------------------------------------------------------

    def scoped(self, correlation_id: str, category: Category = LogCategory.GENERAL) -> ScopedLogger:
        return ScopedLogger(self, correlation_id, category)

    # -------------------------------------------------------------------------
    # Pipeline tail
    # -------------------------------------------------------------------------

    def _capture_entry(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        if self._capturing:
            self._captured.append(event_dict["entry"])
        return event_dict

    def _dispatch_entry(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        entry = event_dict["entry"]
        self._dispatcher.submit(lambda: self._emit(entry))
        raise structlog.DropEvent

    def _emit(self, entry: LogEntry) -> None:
        configuration = self._configuration
        if configuration.enable_console_output:
            self._emit_to(self._console_sink, entry)
        if configuration.enable_file_logging and self._file_sink is not None:
            self._emit_to(self._file_sink, entry)
        if configuration.enable_os_logging:
            self._emit_to(self._os_sink, entry)

    @staticmethod
    def _emit_to(sink: BaseSink, entry: LogEntry) -> None:
        try:
            sink.emit(entry)
        except Exception:
            pass  # Fail silently to avoid breaking the application

    # -------------------------------------------------------------------------
    # Test Capture
    # -------------------------------------------------------------------------

    @property
    def is_capturing(self) -> bool:
        return self._capturing

    def start_capturing_logs(self) -> None:
        with self._lock:
            self._captured.clear()
            self._capturing = True

    def stop_capturing_logs(self) -> None:
        with self._lock:
            self._capturing = False

    def get_captured_logs(self) -> list[LogEntry]:
        return self._captured.snapshot()

    def clear_captured_logs(self) -> None:
        self._captured.clear()

    # -------------------------------------------------------------------------
    # Log Retrieval
    # -------------------------------------------------------------------------

    def get_log_contents(self) -> str | None:
        """Current log file as text, or None when it does not exist or cannot be read."""
        try:
            return self.log_file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None

    def get_log_file_path(self) -> Path | None:
        path = self.log_file_path
        return path if path.exists() else None

    def clear_logs(self) -> None:
        """Truncate the log file, leaving only the cleared marker."""
        sink = self._file_sink
        if sink is None:
            return
        if self._dispatcher.submit(sink.clear):
            self._dispatcher.join()
        else:
            sink.clear()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def flush(self, timeout: float | None = None) -> bool:
        """Block until every entry queued so far has reached the sinks."""
        return self._dispatcher.join(timeout)

    def close(self) -> None:
        """Drain pending entries, stop the worker and close the sinks."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._dispatcher.shutdown()
        for sink in (self._console_sink, self._file_sink, self._os_sink):
            if sink is not None:
                sink.close()

    def __enter__(self) -> Logger:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


# =============================================================================
# Process Default
# =============================================================================

_default_logger: Logger | None = None
_default_lock = threading.Lock()


def get_logger() -> Logger:
    """The process default logger, created on first use and closed at exit."""
    global _default_logger
    with _default_lock:
        if _default_logger is None:
            _default_logger = Logger()
            atexit.register(_default_logger.close)
        return _default_logger


def configure_logging(configuration: LoggerConfiguration | None = None, **changes: Any) -> Logger:
    """
    Reconfigure the process default logger.

    Args:
        configuration: Full replacement configuration (default: the current one)
        **changes: Individual ``LoggerConfiguration`` fields to override,
            e.g. ``log_level="warning"`` or ``enable_file_logging=False``
    """
    logger = get_logger()
    base = configuration or logger.configuration
    if changes:
        base = LoggerConfiguration.model_validate({**base.model_dump(), **changes})
    logger.configure(base)
    return logger
