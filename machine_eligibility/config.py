"""Runtime settings for the eligibility service.

Values can be overridden through environment variables prefixed with
``MACHINE_ELIGIBILITY_`` (for example ``MACHINE_ELIGIBILITY_DATABASE_PATH``)
or a ``.env`` file.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Settings for the machine eligibility API."""

    database_path: Optional[str] = Field(
        default=None, description="SQLite file backing the machine registry; in-memory when unset"
    )
    catalog_path: Optional[str] = Field(
        default=None, description="JSON capability catalog; built-in shop catalog when unset"
    )
    seed_demo_machines: bool = Field(
        default=True, description="Populate an empty registry with the demo shop"
    )
    log_level: str = Field(default="INFO", description="Log level")
    api_title: str = Field(default="Machine Eligibility", description="OpenAPI title")

    model_config = SettingsConfigDict(
        env_prefix="MACHINE_ELIGIBILITY_",
        env_file=".env",
        extra="ignore",
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


__all__ = ["EngineSettings", "configure_logging"]
