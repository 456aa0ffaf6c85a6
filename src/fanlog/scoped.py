"""
Correlation-scoped view over a Logger.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

from .types import Category, LogCategory, LogLevel

if TYPE_CHECKING:
    from .core import Logger


class ScopedLogger:
    """Tags every entry with a fixed correlation id and category.

    Stateless beyond its fields; any number of scoped loggers may share one core.
    """

    CORRELATION_KEY = "correlationId"

    def __init__(self, logger: Logger, correlation_id: str, category: Category = LogCategory.GENERAL):
        self._logger = logger
        self._correlation_id = correlation_id
        self._category = category

    @property
    def correlation_id(self) -> str:
        return self._correlation_id

    @property
    def category(self) -> Category:
        return self._category

    def _context(self, context: Mapping[str, object] | None) -> dict[str, object]:
        merged: dict[str, object] = dict(context or {})
        merged[self.CORRELATION_KEY] = self._correlation_id
        return merged

    def log(self, level: LogLevel, message: str, context: Mapping[str, object] | None = None) -> None:
        self._logger.log(level, message, category=self._category, context=self._context(context))

    def debug(self, message: str, context: Mapping[str, object] | None = None) -> None:
        self.log(LogLevel.DEBUG, message, context)

    def info(self, message: str, context: Mapping[str, object] | None = None) -> None:
        self.log(LogLevel.INFO, message, context)

    def warning(self, message: str, context: Mapping[str, object] | None = None) -> None:
        self.log(LogLevel.WARNING, message, context)

    def error(self, message: str, context: Mapping[str, object] | None = None) -> None:
        self.log(LogLevel.ERROR, message, context)

    def fatal(self, message: str, context: Mapping[str, object] | None = None) -> None:
        self.log(LogLevel.FATAL, message, context)

    def __repr__(self) -> str:
        return f"ScopedLogger(correlation_id={self._correlation_id!r}, category={self._category!s})"
