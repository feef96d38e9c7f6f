# File: embedtrans/core/config.py
"""
Configuration settings for embedtrans.

This module defines library settings using Pydantic's BaseSettings,
which supports environment variable loading and validation. Every
setting can be overridden with an ``EMBEDTRANS_`` prefixed variable.
"""

import re
from typing import Optional

from pydantic import validator
from pydantic_settings import BaseSettings

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class Settings(BaseSettings):
    """
    Library settings loaded from environment variables.

    Metadata registered with ``@translates`` falls back to these values
    when a model does not pass its own.
    """

    # ================================
    # Translation container defaults
    # ================================

    # Attribute that holds the per-locale translations when a model
    # does not name one explicitly
    DEFAULT_CONTAINER: str = "translations"

    # ================================
    # Server-side resolver functions
    # ================================

    TRANSLATE_FUNCTION_NAME: str = "translate_field"
    TRANSLATE_FUNCTION_SCHEMA: str = "public"

    # Database used by create_translation_engine() when no URL is passed
    DATABASE_URL: str = "sqlite://"
    DATABASE_ECHO: bool = False

    # Where `embedtrans gen-migration` writes Alembic revisions
    MIGRATIONS_PATH: str = "alembic/versions"

    LOG_LEVEL: str = "INFO"

    @validator("TRANSLATE_FUNCTION_NAME", "TRANSLATE_FUNCTION_SCHEMA")
    def validate_identifier(cls, v: str) -> str:
        """Function and schema names are interpolated into DDL."""
        if not _IDENTIFIER.match(v):
            raise ValueError(f"'{v}' is not a valid SQL identifier")
        return v

    @validator("DEFAULT_CONTAINER")
    def validate_container(cls, v: str) -> str:
        if not v.isidentifier():
            raise ValueError(f"'{v}' is not a valid attribute name")
        return v

    @validator("LOG_LEVEL")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        return v.upper() if v.upper() in valid_levels else "INFO"

    class Config:
        """Pydantic settings configuration."""

        case_sensitive = True
        env_prefix = "EMBEDTRANS_"
        env_file = ".env"
        extra = "ignore"


# Create settings instance
settings = Settings()
