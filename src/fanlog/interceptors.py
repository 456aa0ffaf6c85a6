"""
Bridge from standard library ``logging`` into a fanlog ``Logger``.

Lets third-party libraries that log through ``logging`` share the same
console, file and OS log sinks as application code.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from .types import Category, LogLevel, SourceLocation

if TYPE_CHECKING:
    from .core import Logger

_EXC_FORMATTER = logging.Formatter()


class FanlogHandler(logging.Handler):
    """
    Redirect standard library logging records to a fanlog Logger.

    The record's logger name becomes the category unless a fixed category is
    given; the record's own call site is kept as the source location.
    """

    def __init__(self, logger: Logger, category: Category | None = None, level: int = logging.NOTSET):
        super().__init__(level)
        self._logger = logger
        self._category = category

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = record.getMessage()
            if record.exc_info:
                msg = f"{msg}\n{_EXC_FORMATTER.formatException(record.exc_info)}"
            self._logger.log(
                LogLevel.from_stdlib(record.levelno),
                msg,
                self._category or self._simplify_logger_name(record.name),
                source=SourceLocation(file=record.pathname, function=record.funcName or "<module>", line=record.lineno),
            )
        except Exception:
            self.handleError(record)

    @staticmethod
    def _simplify_logger_name(name: str) -> str:
        """
        Simplify a logger name for use as a category.

        Rules:
        - "" or "root" -> "stdlib"
        - "urllib3.connectionpool" -> "urllib3.connectionpool"
        - "a.b.c.d" -> "c.d" (keep last 2 parts)
        """
        if not name or name == "root":
            return "stdlib"
        parts = name.split(".")
        if len(parts) <= 2:
            return name
        return ".".join(parts[-2:])


def install_stdlib_bridge(
    logger: Logger,
    level: int | str = logging.INFO,
    names: Iterable[str] | None = None,
) -> FanlogHandler:
    """
    Route standard library logging into ``logger``.

    Args:
        logger: Destination fanlog logger
        level: Minimum stdlib level to forward
        names: Logger names to intercept. When omitted the handler replaces the
            root logger's handlers; named loggers stop propagating so records
            are not forwarded twice.
    """
    handler = FanlogHandler(logger)
    numeric = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level!r}")

    if names is None:
        root_logger = logging.getLogger()
        root_logger.handlers = [handler]
        root_logger.setLevel(numeric)
        return handler

    for name in names:
        lg = logging.getLogger(name)
        lg.handlers = [handler]
        lg.setLevel(numeric)
        lg.propagate = False
    return handler
