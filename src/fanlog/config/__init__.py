"""
fanlog Configuration Module.

Usage:
    from fanlog.config import LoggerConfiguration, default_configuration

    LoggerConfiguration.debug()       # every sink on, level=debug
    LoggerConfiguration.production()  # OS log only, level=info
    default_configuration()           # preset chosen by FANLOG_ENV
"""

from .environment import Environment, EnvironmentSettings
from .logging import LogFormat, LoggerConfiguration, LoggingSettings, default_configuration

__all__ = [
    "Environment",
    "EnvironmentSettings",
    "LogFormat",
    "LoggerConfiguration",
    "LoggingSettings",
    "default_configuration",
]
