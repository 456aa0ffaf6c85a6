"""
Line renderers for log entries and color utilities.
"""

from __future__ import annotations

from datetime import timezone
from typing import Any, Mapping

import orjson

from .types import LogEntry, LogLevel

# =============================================================================
# Colors
# =============================================================================

COLORS = {
    "reset": "\033[0m",
    "error": "\033[31m",
    "fatal": "\033[1;31m",
    "category": "\033[35m",
}


def colorize(text: str, color: str) -> str:
    """Apply ANSI color to text."""
    return f"{COLORS.get(color, '')}{text}{COLORS['reset']}"


# =============================================================================
# JSON Serialization
# =============================================================================


def orjson_dumps(v: Any) -> str:
    """Fast JSON serialization using orjson."""
    return orjson.dumps(v, option=orjson.OPT_UTC_Z | orjson.OPT_NAIVE_UTC).decode()


# =============================================================================
# Text Renderers
# =============================================================================


def format_context(context: Mapping[str, str] | None) -> str:
    """Render context as `` [k=v, k2=v2]``, or an empty string when there is none."""
    if not context:
        return ""
    pairs = ", ".join(f"{key}={value}" for key, value in context.items())
    return f" [{pairs}]"


def format_timestamp(entry: LogEntry) -> str:
    return entry.timestamp.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class ConsoleFormatter:
    """Single-line, human-readable rendering for stdout.

    Format: ``<emoji> [category] message [k=v, ...] (file.py:line)``
    """

    @staticmethod
    def _maybe_color(text: str, color: str, use_color: bool) -> str:
        if not use_color:
            return text
        return colorize(text, color)

    @classmethod
    def _level_marker(cls, level: LogLevel, use_color: bool) -> str:
        if level >= LogLevel.ERROR:
            return cls._maybe_color(level.emoji, level.label, use_color)
        return level.emoji

    @classmethod
    def format(cls, entry: LogEntry, *, use_color: bool = False) -> str:
        category = cls._maybe_color(f"[{entry.category}]", "category", use_color)
        return "".join(
            [
                cls._level_marker(entry.level, use_color),
                " ",
                category,
                " ",
                entry.message,
                format_context(entry.context),
                f" ({entry.file_name}:{entry.line})",
            ]
        )


class FileFormatter:
    """Line format of the persistent log file.

    Format: ``[timestamp] [level] [category] [file.py:line] function - message [k=v, ...]``
    """

    @staticmethod
    def format(entry: LogEntry) -> str:
        return (
            f"[{format_timestamp(entry)}] [{entry.level.label}] [{entry.category}] "
            f"[{entry.file_name}:{entry.line}] {entry.function} - {entry.message}"
            f"{format_context(entry.context)}"
        )


class JSONFormatter:
    """One JSON object per line."""

    @staticmethod
    def format(entry: LogEntry) -> str:
        return orjson_dumps(entry.to_dict())
