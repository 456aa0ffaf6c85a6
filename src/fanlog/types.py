"""
Core data types: levels, categories and the immutable log entry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from pathlib import PurePath
from typing import Any
from uuid import UUID, uuid4

# =============================================================================
# Levels
# =============================================================================

_LEVEL_EMOJI = {
    10: "🔍",
    20: "ℹ️",
    30: "⚠️",
    40: "❌",
    50: "💥",
}


class LogLevel(IntEnum):
    """Ordered severity. Values line up with the stdlib/structlog numeric levels."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    FATAL = 50

    @property
    def label(self) -> str:
        return self.name.lower()

    @property
    def emoji(self) -> str:
        return _LEVEL_EMOJI[self.value]

    @classmethod
    def parse(cls, value: LogLevel | str | int) -> LogLevel:
        """Resolve a level from a name ("warning", "CRITICAL") or a numeric value."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            return cls(value)
        name = str(value).strip().upper()
        if name == "CRITICAL":
            return cls.FATAL
        if name == "WARN":
            return cls.WARNING
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Unknown log level: {value!r}") from None

    @classmethod
    def from_stdlib(cls, levelno: int) -> LogLevel:
        """Map an arbitrary stdlib level number onto the nearest level at or below it."""
        for level in reversed(cls):
            if levelno >= level.value:
                return level
        return cls.DEBUG


# =============================================================================
# Categories
# =============================================================================


class LogCategory(str, Enum):
    """Well-known category tags. Any plain string is accepted as a category too."""

    GENERAL = "General"
    NETWORK = "Network"
    DATABASE = "Database"
    UI = "UI"
    API = "API"
    AUTH = "Auth"
    STORAGE = "Storage"
    PERFORMANCE = "Performance"
    TEST = "Test"
    KNOWLEDGE = "Knowledge"
    EMBEDDING = "Embedding"
    SIMILARITY = "Similarity"
    CONTEXT = "Context"
    PERSISTENCE = "Persistence"
    PURCHASE = "Purchase"
    FILE_ATTACHMENT = "FileAttachment"

    def __str__(self) -> str:
        return self.value


Category = LogCategory | str


def category_tag(category: Category) -> str:
    """Render a category as its plain tag string."""
    if isinstance(category, LogCategory):
        return category.value
    return str(category)


# =============================================================================
# Entries
# =============================================================================


@dataclass(frozen=True)
class SourceLocation:
    """Call site of a logging call."""

    file: str
    function: str
    line: int

    @property
    def file_name(self) -> str:
        return PurePath(self.file).name


UNKNOWN_SOURCE = SourceLocation(file="<unknown>", function="<unknown>", line=0)


@dataclass(frozen=True)
class LogEntry:
    """A single emitted record.

    Built once per accepted logging call and never mutated afterwards.
    """

    timestamp: datetime
    level: LogLevel
    category: str
    message: str
    file: str
    function: str
    line: int
    context: dict[str, str] | None = None
    id: UUID = field(default_factory=uuid4)

    @property
    def file_name(self) -> str:
        return PurePath(self.file).name

    @property
    def formatted_message(self) -> str:
        return f"[{self.category}] [{self.level.label}] {self.message} [{self.file_name}:{self.line}]"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": str(self.id),
            "timestamp": self.timestamp,
            "level": self.level.label,
            "category": self.category,
            "message": self.message,
            "file": self.file_name,
            "function": self.function,
            "line": self.line,
        }
        if self.context:
            data["context"] = dict(self.context)
        return data
