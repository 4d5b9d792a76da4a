"""Configuration management."""

import logging
from functools import cache

from pydantic import ConfigDict, Field, computed_field
from pydantic_settings import BaseSettings

from .consts import (
    DEFAULT_BASE_URL,
    DEFAULT_MAX_CREDENTIAL_RETRIES,
    SEND_URL_PATH,
    TOKEN_URL_PATH,
    UPLOAD_URL_PATH,
)


class Config(BaseSettings):
    """Configuration with computed API endpoints."""

    model_config = ConfigDict(
        env_prefix="WECOM_", case_sensitive=False, extra="ignore"
    )
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Base URL of the WeCom API",
    )
    corp_id: str | None = Field(
        default=None, description="Corp id used by get_client()"
    )
    corp_secret: str | None = Field(
        default=None, repr=False, description="Application secret used by get_client()"
    )
    log_level: str = Field(
        default="INFO",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
        description="Logging level",
    )
    timeout_seconds: int = Field(
        default=30, gt=0, le=300, description="HTTP request timeout in seconds"
    )
    max_credential_retries: int = Field(
        default=DEFAULT_MAX_CREDENTIAL_RETRIES,
        ge=0,
        le=10,
        description="Maximum resubmissions after access token errors",
    )

    @computed_field
    @property
    def token_url(self) -> str:
        """URL for fetching access tokens."""
        return f"{self.base_url}{TOKEN_URL_PATH}"

    @computed_field
    @property
    def send_url(self) -> str:
        """URL for sending application messages."""
        return f"{self.base_url}{SEND_URL_PATH}"

    @computed_field
    @property
    def upload_url(self) -> str:
        """URL for uploading temporary media."""
        return f"{self.base_url}{UPLOAD_URL_PATH}"


@cache
def get_config() -> Config:
    """Get a cached Config instance."""
    return Config()


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """Configure logging for the entire application"""
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,  # Override any existing configuration
    )
    return logging.getLogger("wecom-push")
