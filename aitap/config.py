from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices, field_validator
from typing import Optional, List, Union

from aitap.constants import (
    APP_NAME,
    APP_VERSION,
    CACHE_STORAGE_KEY,
    DEFAULT_AUTOSAVE_INTERVAL_SECONDS,
    DEFAULT_CACHE_EXPIRY_MS,
    DEFAULT_CACHE_MAX_SIZE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_REDACT_LOG_FIELDS,
    DEFAULT_STORAGE_TIMEOUT_SECONDS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_prefix="",
        case_sensitive=False,
        populate_by_name=True,
    )

    app_name: str = APP_NAME
    app_version: str = APP_VERSION
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL, validation_alias=AliasChoices("LOG_LEVEL")
    )
    log_file_path: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("LOG_FILE_PATH")
    )
    log_pretty_console: bool = Field(
        default=False, validation_alias=AliasChoices("LOG_PRETTY_CONSOLE")
    )
    redact_log_fields: Union[List[str], str] = Field(
        default_factory=lambda: list(DEFAULT_REDACT_LOG_FIELDS),
        validation_alias=AliasChoices("REDACT_LOG_FIELDS"),
    )

    # Response cache
    cache_max_size: int = Field(
        default=DEFAULT_CACHE_MAX_SIZE,
        ge=1,
        validation_alias=AliasChoices("CACHE_SIZE", "CACHE_MAX_SIZE"),
    )
    cache_expiry_ms: int = Field(
        default=DEFAULT_CACHE_EXPIRY_MS,
        ge=0,
        validation_alias=AliasChoices("CACHE_EXPIRY", "CACHE_EXPIRY_MS"),
    )

    # Persistence
    cache_storage_key: str = Field(
        default=CACHE_STORAGE_KEY, validation_alias=AliasChoices("CACHE_STORAGE_KEY")
    )
    cache_storage_dir: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("CACHE_STORAGE_DIR")
    )
    cache_storage_quota_bytes: Optional[int] = Field(
        default=None, ge=1, validation_alias=AliasChoices("CACHE_STORAGE_QUOTA_BYTES")
    )
    cache_autosave_interval_seconds: float = Field(
        default=DEFAULT_AUTOSAVE_INTERVAL_SECONDS,
        gt=0,
        validation_alias=AliasChoices("AUTO_SAVE_INTERVAL"),
    )
    cache_storage_timeout_seconds: float = Field(
        default=DEFAULT_STORAGE_TIMEOUT_SECONDS,
        gt=0,
        validation_alias=AliasChoices("CACHE_STORAGE_TIMEOUT"),
    )

    @field_validator("redact_log_fields")
    @classmethod
    def parse_comma_separated(cls, v: Union[List[str], str]) -> List[str]:
        """Parse comma-separated string values into a list.

        Empty strings are converted to empty lists.
        """
        if isinstance(v, str):
            if v.strip() == "":
                return []
            return [item.strip() for item in v.split(",") if item.strip()]
        return v
