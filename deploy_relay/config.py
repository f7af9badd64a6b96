"""Relay configuration using pydantic-settings.

This module defines the RelaySettings class that reads configuration from
environment variables. The Coolify connection details and the webhook secret
are required; a missing webhook secret stops the process at startup.

Environment variables:
- COOLIFY_API_URL: Base URL of the Coolify instance (without /api/v1)
- COOLIFY_API_KEY: Coolify API token sent as a Bearer credential
- WEBHOOKS_SECRET: Shared secret for validating Gitea webhook signatures
- REQUIRE_SIGNATURE: Reject webhooks without an x-gitea-signature header
- PLATFORM_TIMEOUT_SECONDS: Timeout applied to every Coolify API call
"""

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RelaySettings(BaseSettings):
    """Deploy relay configuration from environment variables.

    Required fields (must be set via environment variables):
    - coolify_api_url: Base URL of the Coolify instance
    - coolify_api_key: API token for listing applications and deploying
    - webhooks_secret: Default secret for validating webhook signatures
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Coolify Configuration
    # -------------------------------------------------------------------------
    # Base URL of the Coolify instance; the client appends /api/v1
    coolify_api_url: str

    # API token sent as "Authorization: Bearer <token>"
    coolify_api_key: str

    # Timeout in seconds for each Coolify API request
    platform_timeout_seconds: float = 10.0

    # -------------------------------------------------------------------------
    # Webhook Configuration
    # -------------------------------------------------------------------------
    # Default secret for HMAC-SHA256 signature validation
    webhooks_secret: str

    # When False, webhooks without a signature header are processed unverified
    require_signature: bool = False

    # -------------------------------------------------------------------------
    # Server Configuration
    # -------------------------------------------------------------------------
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("coolify_api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Validate that the Coolify URL is an http(s) URL."""
        if not v or not v.strip():
            raise ValueError("coolify_api_url cannot be empty")
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("coolify_api_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("coolify_api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate that the Coolify API key is not empty."""
        if not v or not v.strip():
            raise ValueError("coolify_api_key cannot be empty")
        return v.strip()

    @field_validator("webhooks_secret")
    @classmethod
    def validate_webhooks_secret(cls, v: str) -> str:
        """Validate that the webhook secret is not empty."""
        if not v:
            raise ValueError("webhooks_secret cannot be empty")
        return v

    @field_validator("platform_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate that the platform timeout is positive."""
        if v <= 0:
            raise ValueError("platform_timeout_seconds must be positive")
        return v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate that port is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError("port must be between 1 and 65535")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that the log level is a known logging level name."""
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {v}")
        return level

    @property
    def api_base_url(self) -> str:
        """Coolify REST API root, e.g. https://coolify.example.com/api/v1."""
        return f"{self.coolify_api_url}/api/v1"


def get_settings() -> RelaySettings:
    """Create and return a RelaySettings instance.

    Returns:
        RelaySettings: Configured settings instance.

    Raises:
        pydantic.ValidationError: If required fields are missing or invalid.
    """
    return RelaySettings()
