"""
fanlog: triple-layer structured logging.

One call fans out to up to three sinks:
- console: a human-readable line on stdout
- file: Logs/app.log with single-generation rotation
- os: the platform syslog facility

Also provides correlation-scoped loggers, timing helpers and an in-memory
capture mode for test assertions.

Library: structlog for the filtering/processor pipeline, orjson for JSON output.
"""

from .config import LoggerConfiguration, LoggingSettings, default_configuration
from .core import Logger, configure_logging, get_logger
from .interceptors import FanlogHandler, install_stdlib_bridge
from .scoped import ScopedLogger
from .sinks import BaseSink, ConsoleSink, OSLogSink, RotatingFileSink
from .types import LogCategory, LogEntry, LogLevel, SourceLocation

__version__ = "0.1.0"

__all__ = [
    # Core
    "Logger",
    "ScopedLogger",
    "configure_logging",
    "get_logger",
    # Configuration
    "LoggerConfiguration",
    "LoggingSettings",
    "default_configuration",
    # Types
    "LogCategory",
    "LogEntry",
    "LogLevel",
    "SourceLocation",
    # Sinks
    "BaseSink",
    "ConsoleSink",
    "OSLogSink",
    "RotatingFileSink",
    # Stdlib bridge
    "FanlogHandler",
    "install_stdlib_bridge",
]
