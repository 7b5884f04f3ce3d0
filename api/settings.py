"""
Application settings using pydantic-settings for type-safe configuration.

All environment variables are centralized here with proper typing, validation,
and sensible defaults. Settings are loaded once at startup and cached.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _is_docker_environment() -> bool:
    """Detect if running inside a Docker container."""
    if Path("/.dockerenv").exists():
        return True
    try:
        with open("/proc/1/cgroup") as f:
            return "docker" in f.read()
    except (FileNotFoundError, PermissionError):
        pass
    return False


def _is_github_actions() -> bool:
    """Detect if running in GitHub Actions CI environment.

    Returns True only when BOTH CI=true AND GITHUB_ACTIONS=true are set.
    """
    return os.getenv("CI") == "true" and os.getenv("GITHUB_ACTIONS") == "true"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for local development.
    Production values should be set via environment variables or .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # === Database ===
    database_url: str = Field(
        default="sqlite:///./survey_validation.db",
        description="SQLAlchemy database URL",
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL statements to the log",
    )

    # === Authentication ===
    auth_mode: str = Field(
        default="production",
        description="Authentication mode: 'production' (JWT validation) or 'bypass' (dev only)",
    )
    jwt_secret: str = Field(
        default="",
        description="Shared secret for HS256 bearer tokens (required in production mode)",
    )
    jwt_algorithm: str = Field(default="HS256")
    jwt_audience: str | None = Field(
        default=None,
        description="Expected 'aud' claim; unchecked when empty",
    )
    admin_group_name: str = Field(
        default="admin",
        description="Name of the admin group in token claims",
    )

    # === CORS Configuration ===
    # Note: Use str type for env var parsing, convert to list via property
    allowed_origins_str: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="ALLOWED_ORIGINS",
        description="Allowed CORS origins (comma-separated)",
    )

    # === Docker Detection ===
    is_docker: bool = Field(
        default=False,
        description="Whether running in Docker container",
    )

    # === Queue ===
    timezone: str = Field(
        default="Asia/Manila",
        description="Time zone that defines 'today' for completed-today counts",
    )
    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)

    # === Email ===
    email_enabled: bool = Field(default=False)
    smtp_host: str = Field(default="")
    smtp_port: int = Field(default=587)
    smtp_username: str = Field(default="")
    smtp_password: str = Field(default="")
    smtp_use_tls: bool = Field(default=True)
    email_from: str = Field(default="")
    email_delay_seconds: float = Field(
        default=0.1,
        ge=0,
        description="Delay between commit and sending the notification email",
    )
    email_worker_threads: int = Field(default=2, ge=1)
    frontend_url: str = Field(default="http://localhost:5173")

    @property
    def allowed_origins(self) -> list[str]:
        """Parse comma-separated origins string into list."""
        return [origin.strip() for origin in self.allowed_origins_str.split(",") if origin.strip()]

    @field_validator("is_docker", mode="before")
    @classmethod
    def parse_is_docker(cls, v: str | bool) -> bool:
        """Parse IS_DOCKER env var which can be 'true', '1', 'yes', etc."""
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            return v.lower() in ("true", "1", "yes")
        return False

    @field_validator("auth_mode", mode="after")
    @classmethod
    def validate_auth_mode(cls, v: str) -> str:
        """Validate and normalize auth_mode."""
        v = v.lower()
        if v not in ("bypass", "production"):
            raise ValueError(f"Invalid AUTH_MODE: {v}. Must be 'bypass' or 'production'")
        return v

    @field_validator("jwt_audience", mode="before")
    @classmethod
    def blank_audience_is_none(cls, v: str | None) -> str | None:
        return v or None

    def is_docker_environment(self) -> bool:
        """Check if running in a Docker environment."""
        return self.is_docker or _is_docker_environment()

    def get_effective_auth_mode(self) -> str:
        """Get effective auth mode, forcing production in Docker (except CI)."""
        if self.is_docker_environment() and not _is_github_actions():
            return "production"
        return self.auth_mode

    def clamp_page_size(self, limit: int | None) -> int:
        """Requested page size bounded to [1, max_page_size]; default when unset."""
        if limit is None:
            return self.default_page_size
        return max(1, min(limit, self.max_page_size))


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once and cached for the lifetime of the application.
    """
    return Settings()
