"""Settings and configuration management."""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from smartlink.config.routing import RoutingConfig

logger = logging.getLogger(__name__)

DEFAULT_ANDROID_STORE_URL = "https://play.google.com/store/apps/details?id=com.example.app"
DEFAULT_IOS_STORE_URL = "https://apps.apple.com/app/id123456789"
DEFAULT_FALLBACK_URL = "https://example.com/app"

_LOG_FORMATS = ("text", "json")


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Destinations
    android_store_url: str = Field(
        DEFAULT_ANDROID_STORE_URL, description="Google Play listing URL"
    )
    ios_store_url: str = Field(DEFAULT_IOS_STORE_URL, description="App Store listing URL")
    fallback_url: str = Field(
        DEFAULT_FALLBACK_URL, description="Website for desktop and unmatched devices"
    )
    android_deep_link: Optional[str] = Field(
        None, description="App URL to open on Android (unset = store redirect)"
    )
    ios_deep_link: Optional[str] = Field(
        None, description="App URL to open on iOS (unset = store redirect)"
    )

    # Application Settings
    app_name: str = Field("smartlink", description="Application name")
    debug: str = Field(
        "false", description="Debug endpoint switch; only the string 'true' enables it"
    )
    log_level: str = Field("INFO", description="Logging level")
    log_format: str = Field("json", description="Log format: 'text' or 'json'")
    sanitize_logs: bool = Field(True, description="Redact IP addresses from log messages")

    @field_validator("android_store_url", mode="before")
    @classmethod
    def _default_android_store(cls, value):
        return value or DEFAULT_ANDROID_STORE_URL

    @field_validator("ios_store_url", mode="before")
    @classmethod
    def _default_ios_store(cls, value):
        return value or DEFAULT_IOS_STORE_URL

    @field_validator("fallback_url", mode="before")
    @classmethod
    def _default_fallback(cls, value):
        return value or DEFAULT_FALLBACK_URL

    @field_validator("android_deep_link", "ios_deep_link", mode="before")
    @classmethod
    def _empty_deep_link_is_unset(cls, value):
        return value or None

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        if value.lower() not in _LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(_LOG_FORMATS)}")
        return value.lower()

    @property
    def debug_enabled(self) -> bool:
        """Check if the debug endpoint is enabled."""
        return self.debug == "true"

    def routing_config(self) -> RoutingConfig:
        """Build the immutable routing configuration."""
        return RoutingConfig(
            android_store_url=self.android_store_url,
            ios_store_url=self.ios_store_url,
            fallback_url=self.fallback_url,
            android_deep_link=self.android_deep_link,
            ios_deep_link=self.ios_deep_link,
            debug=self.debug_enabled,
        )

    def model_post_init(self, __context) -> None:
        """Warn about configurations that are easy to get wrong."""
        if self.debug_enabled:
            logger.warning("DEBUG is enabled: /api/debug exposes routing details")
        if self.debug.lower() == "true" and not self.debug_enabled:
            logger.warning(
                "DEBUG=%s ignored; only the lowercase string 'true' enables debug mode",
                self.debug,
            )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
