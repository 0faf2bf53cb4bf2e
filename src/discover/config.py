"""Configuration management for discover.

Loads settings from environment variables (and an optional .env file) using
Pydantic. The GitHub token is optional; unauthenticated runs work but hit the
much lower anonymous rate limit.

Usage:
    from discover.config import settings

    print(settings.validate_only)
    print(settings.github_rate_limit)
"""

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Build configuration from environment variables.

    Attributes:
        github_token: GitHub API token (optional)
        github_api_url: Base URL of the GitHub REST API
        github_rate_limit: Client-side GitHub requests/second
        github_cache_ttl: Seconds a fetched issue list stays cached
        validate_only: Structural check run, skips external enrichment
        site_url: Public root URL of the generated site
        foundation_url: Foundation membership list (optional, empty set when None)
        feed_recent_days: Window for a post or episode to count as recent
        max_pipeline_concurrency: Independent pipelines executed at once
        max_document_concurrency: Documents processed at once within a stage
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars
    )

    # GitHub
    github_token: str | None = Field(default=None, description="GitHub API token")
    github_api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL",
    )
    github_rate_limit: int = Field(default=10, ge=1, description="GitHub requests/second")
    github_cache_ttl: float = Field(
        default=600.0,
        ge=0,
        description="Seconds a fetched issue list is reused within a run",
    )

    # Build
    validate_only: bool = Field(
        default=False,
        description="Skip external enrichment during validation-only runs",
    )
    site_url: str = Field(default="https://discoverdot.net", description="Site root URL")
    foundation_url: str | None = Field(
        default=None,
        description="JSON list of foundation repositories (owner/name or GitHub URLs)",
    )
    feed_recent_days: int = Field(
        default=7,
        ge=1,
        description="Days a post or episode stays in the news feed",
    )
    max_pipeline_concurrency: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Max pipelines executing concurrently",
    )
    max_document_concurrency: int = Field(
        default=8,
        ge=1,
        le=256,
        description="Max documents processed concurrently within a module",
    )

    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("github_token")
    @classmethod
    def validate_github_token(cls, v: str | None) -> str | None:
        """Treat a blank token as no token."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("site_url")
    @classmethod
    def validate_site_url(cls, v: str) -> str:
        """Ensure the site URL is absolute."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"site_url must start with http:// or https://, got '{v}'")
        return v.rstrip("/")

    @field_validator("foundation_url")
    @classmethod
    def validate_foundation_url(cls, v: str | None) -> str | None:
        """Blank means no foundation list; otherwise it must be absolute."""
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"foundation_url must start with http:// or https://, got '{v}'")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid:
            raise ValueError(f"log_level must be one of {valid}, got {v}")
        return v_upper


def configure_logging(config: Settings | None = None) -> None:
    """Configure root logging from settings."""
    config = config or settings
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


# Global settings instance, loaded once at import
settings = Settings()
