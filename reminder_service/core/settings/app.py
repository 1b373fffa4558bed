"""Application settings for FastAPI configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["development", "staging", "production", "test"]


class AppSettings(BaseSettings):
    """FastAPI application settings.

    Environment variables use APP_ prefix.
    Example: APP_DEBUG=true, APP_PUBLIC_BASE_URL="https://flow.example.com"
    """

    # Service identity
    service_name: str = Field(
        default="reminder-service",
        min_length=1,
        max_length=100,
        pattern=r"^[a-z0-9]+(-[a-z0-9]+)*$",
        description="Service name for logging (lowercase, hyphens allowed)",
    )
    title: str = Field(
        default="Reminder Service API",
        min_length=1,
        max_length=200,
        description="API title displayed in documentation",
    )
    version: str = Field(
        default="0.1.0",
        pattern=r"^\d+\.\d+\.\d+(-[a-zA-Z0-9]+)?$",
        description="API version (semver format)",
    )
    environment: Environment = Field(
        default="development", description="Environment: development|staging|production|test",
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Bind address for the HTTP server")  # noqa: S104
    port: int = Field(default=8000, ge=1, le=65535, description="HTTP server port")
    reload: bool = Field(default=False, description="Enable uvicorn auto-reload (development only)")

    # Public URL used to build callback links embedded in notifications
    public_base_url: str = Field(
        default="http://localhost:8000",
        min_length=1,
        description="Externally reachable base URL of this service (no trailing slash)",
    )

    # Run the job worker inside the API process
    run_worker: bool = Field(
        default=False,
        description="Start the reminder job worker in the API lifespan. "
        "Enable on exactly the instances that should process jobs.",
    )

    @field_validator("public_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        """Normalize the base URL so paths can be appended directly."""
        return value.rstrip("/")

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )
