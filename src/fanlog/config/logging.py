"""
Logging Configuration.

``LoggerConfiguration`` is the programmatic record a ``Logger`` runs with.
``LoggingSettings`` holds the process-level settings read from the
environment (storage location, OS log subsystem, console format).
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..types import LogLevel
from .environment import EnvironmentSettings

MiB = 1024 * 1024


class LogFormat(str, Enum):
    CONSOLE = "console"
    JSON = "json"


class LoggerConfiguration(BaseModel):
    """Which sinks are enabled, the minimum level and the rotation threshold."""

    model_config = ConfigDict(frozen=True)

    enable_file_logging: bool = True
    enable_os_logging: bool = True
    enable_console_output: bool = True
    max_file_size: int = Field(default=10 * MiB, gt=0, description="Rotation threshold in bytes")
    log_level: LogLevel = LogLevel.DEBUG

    @field_validator("log_level", mode="before")
    @classmethod
    def _parse_level(cls, value: object) -> LogLevel:
        return LogLevel.parse(value)  # type: ignore[arg-type]

    @classmethod
    def debug(cls) -> LoggerConfiguration:
        return cls(
            enable_file_logging=True,
            enable_os_logging=True,
            enable_console_output=True,
            max_file_size=10 * MiB,
            log_level=LogLevel.DEBUG,
        )

    @classmethod
    def production(cls) -> LoggerConfiguration:
        return cls(
            enable_file_logging=False,
            enable_os_logging=True,
            enable_console_output=False,
            max_file_size=5 * MiB,
            log_level=LogLevel.INFO,
        )


class LoggingSettings(BaseSettings):
    """Process-level logging settings.

    ``level`` is kept as the raw name and only parsed when a default
    configuration is built, so a bad value never affects loggers that are
    given an explicit configuration.
    """

    model_config = SettingsConfigDict(
        env_prefix="FANLOG_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app_name: str = Field(default="fanlog", description="Application name, used for storage and syslog ident")
    level: str | None = Field(default=None, description="Overrides the preset's minimum level")
    log_dir: Path | None = Field(default=None, description="Directory holding app.log")
    console_format: LogFormat = Field(default=LogFormat.CONSOLE, description="Console output format")

    @property
    def minimum_level(self) -> LogLevel | None:
        if not self.level:
            return None
        return LogLevel.parse(self.level)


def default_configuration(
    environment: EnvironmentSettings | None = None,
    settings: LoggingSettings | None = None,
) -> LoggerConfiguration:
    """Production preset in production, debug preset everywhere else."""
    environment = environment or EnvironmentSettings()
    settings = settings or LoggingSettings()
    preset = LoggerConfiguration.production() if environment.is_production else LoggerConfiguration.debug()
    level = settings.minimum_level
    if level is not None:
        preset = preset.model_copy(update={"log_level": level})
    return preset
