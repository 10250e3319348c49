"""Codec settings and configuration."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SBFSettings(BaseSettings):
    """
    Configuration of the SBF reader and writer.

    Settings can be configured via:

    1. Environment variables (e.g., SBF_STRICT_MAGIC=false)
    2. .env file in the working directory
    3. Default values defined below

    All settings use the SBF_ prefix for environment variables.

    .. rubric:: Examples

    Accept binary files with foreign magic bytes::

        export SBF_STRICT_MAGIC=false

    Write the global shift with nine decimals::

        export SBF_SHIFT_DECIMALS=9
    """

    strict_magic: Annotated[
        bool,
        Field(
            default=True,
            description="If True, reject binary files whose first two bytes are not 42, 42. "
            "If False, the magic bytes are skipped without being checked.",
        ),
    ]

    shift_decimals: Annotated[
        int,
        Field(
            default=6,
            description="Number of decimals used for the global shift in the ASCII header",
            ge=0,
            le=17,
        ),
    ]

    model_config = SettingsConfigDict(
        env_prefix="SBF_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    @property
    def shift_tolerance(self) -> float:
        """Absolute tolerance for comparing a text global shift with its binary copy."""
        return 10.0**-self.shift_decimals

    def log_config(self) -> None:
        logger.debug(f"SBF settings: strict_magic={self.strict_magic}, shift_decimals={self.shift_decimals}")


@lru_cache
def get_settings() -> SBFSettings:
    """
    Get cached settings instance.

    :return: The codec settings instance.
    """
    settings = SBFSettings()  # type: ignore
    settings.log_config()
    return settings
