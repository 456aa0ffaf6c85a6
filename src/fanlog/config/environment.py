"""
Deployment environment.

``FANLOG_ENV`` decides which preset a logger starts with when it is not
given a configuration: the production preset for ``production``, the debug
preset for anything else.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


Environment = Literal["development", "testing", "staging", "production"]


class EnvironmentSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FANLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    env: Environment = Field(default="development", description="Deployment environment")

    @property
    def is_production(self) -> bool:
        return self.env == "production"
