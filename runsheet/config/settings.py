from __future__ import annotations

from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from runsheet.constants import DB_SCHEMA

# DATABASE_*, RUNSHEET_* etc. may come from a .env file in the working directory.
load_dotenv()


class DatabaseSettings(BaseSettings):
    """Cue store database (DATABASE_*). Only used by the postgres backend."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    host: str = "localhost"
    port: int = 5432
    user: str = "postgres"
    password: str = ""
    name: str = "runsheet"
    schema_: str = Field(DB_SCHEMA, validation_alias="DATABASE_SCHEMA")

    @field_validator("schema_")
    @classmethod
    def _validate_schema(cls, v: str) -> str:
        if v != DB_SCHEMA:
            msg = f"DATABASE_SCHEMA must be '{DB_SCHEMA}' (got '{v}')"
            raise ValueError(msg)
        return v


class GatewaySettings(BaseSettings):
    """WebSocket gateway bind address (GATEWAY_*)."""

    model_config = SettingsConfigDict(env_prefix="GATEWAY_")

    host: str = "0.0.0.0"
    port: int = 19790


class RunsheetSettings(BaseSettings):
    """Cue scheduler settings. Env vars prefixed with RUNSHEET_."""

    model_config = SettingsConfigDict(env_prefix="RUNSHEET_")

    store_backend: Literal["postgres", "memory"] = "postgres"
    store_timeout_s: float = Field(5.0, gt=0, le=60)
    timezone: str = "UTC"  # run-local time for scheduled cue times
    # Off by default: several cues may be live at once.
    single_live_cue: bool = False
    # Run controllers kept in memory; idle ones beyond this are reloaded on demand.
    max_loaded_runs: int = Field(256, ge=1)

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            msg = f"RUNSHEET_TIMEZONE must be an IANA timezone name (got '{v}')"
            raise ValueError(msg) from e
        return v


class LoggingSettings(BaseSettings):
    """Log output settings. Env vars prefixed with LOG_."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    json_output: bool = Field(True, validation_alias="LOG_JSON")
    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def _validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        v = v.upper()
        if v not in allowed:
            msg = f"LOG_LEVEL must be one of {sorted(allowed)} (got '{v}')"
            raise ValueError(msg)
        return v


class Settings(BaseSettings):
    """All settings sections; built once in the gateway lifespan."""

    model_config = SettingsConfigDict(extra="ignore")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    runsheet: RunsheetSettings = Field(default_factory=RunsheetSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def get_settings() -> Settings:
    """Load and validate settings. Raises ValidationError on invalid values."""
    return Settings()
