"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
"""

import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str) -> list[str]:
    if not value.strip():
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        description="PostgreSQL async connection string",
    )
    database_schema: str | None = Field(
        default=None,
        description="PostgreSQL schema for isolated environments (e.g., pr_42)",
    )

    @field_validator("database_schema")
    @classmethod
    def validate_database_schema(cls, v: str | None) -> str | None:
        if v is None:
            return None
        if not re.match(r"^[a-z_][a-z0-9_]{0,62}$", v):
            msg = "Invalid database_schema: must match ^[a-z_][a-z0-9_]{0,62}$"
            raise ValueError(msg)
        return v

    # Caller identity (tokens are issued by the external identity provider)
    jwt_secret_key: str = Field(min_length=32, description="Secret key for verifying identity JWTs (minimum 32 characters)")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")

    # Image host (ImgBB)
    imgbb_api_keys: str = Field(
        default="",
        description="Comma-separated ImgBB API keys, tried in order with rotation on failure",
    )
    imgbb_api_url: str = Field(
        default="https://api.imgbb.com/1/upload",
        description="ImgBB upload endpoint",
    )
    imgbb_timeout: float = Field(
        default=30.0,
        description="ImgBB request timeout in seconds",
        gt=0,
    )

    @property
    def imgbb_api_key_list(self) -> list[str]:
        """Parse ImgBB keys into an ordered list."""
        return _split_csv(self.imgbb_api_keys)

    # Text host (Pastebin)
    pastebin_api_keys: str = Field(
        default="",
        description="Comma-separated Pastebin developer keys, tried in order with rotation on failure",
    )
    pastebin_api_url: str = Field(
        default="https://pastebin.com/api/api_post.php",
        description="Pastebin paste creation endpoint",
    )
    pastebin_host: str = Field(
        default="pastebin.com",
        description="Host that successful paste URLs must belong to",
    )
    pastebin_timeout: float = Field(
        default=45.0,
        description="Pastebin request timeout in seconds (pastes can be large)",
        gt=0,
    )

    @property
    def pastebin_api_key_list(self) -> list[str]:
        """Parse Pastebin keys into an ordered list."""
        return _split_csv(self.pastebin_api_keys)

    # Upload limits
    max_upload_size_mb: int = Field(
        default=50,
        description="Maximum total upload size in megabytes (checked before and after extraction)",
        gt=0,
    )
    max_supplementary_images: int = Field(
        default=20,
        description="Maximum number of images in one supplementary image upload",
        gt=0,
    )
    max_supplementary_image_size_mb: int = Field(
        default=10,
        description="Maximum size of a single supplementary image in megabytes",
        gt=0,
    )
    relocation_concurrency: int = Field(
        default=4,
        description="Maximum binary relocations in flight during one publish run",
        gt=0,
    )

    # Serving
    serve_fetch_timeout: float = Field(
        default=15.0,
        description="Timeout in seconds for fetching hosted content at serve time",
        gt=0,
    )
    serve_fetch_attempts: int = Field(
        default=3,
        description="Attempts when fetching a site's index document",
        gt=0,
    )
    serve_backoff_seconds: float = Field(
        default=1.0,
        description="Linear backoff unit between document fetch attempts",
        ge=0,
    )
    serve_document_max_age: int = Field(
        default=3600,
        description="Cache-Control max-age for served documents",
        ge=0,
    )
    serve_asset_max_age: int = Field(
        default=86400,
        description="Cache-Control max-age for proxied assets",
        ge=0,
    )
    public_base_url: str = Field(
        default="http://localhost:8000",
        description="Public origin used to build live site URLs",
    )
    public_site_prefix: str = Field(
        default="/s",
        description="Path prefix under which published sites are served",
    )

    @field_validator("public_site_prefix")
    @classmethod
    def validate_public_site_prefix(cls, v: str) -> str:
        v = "/" + v.strip("/")
        if v == "/":
            msg = "public_site_prefix must not be the root path"
            raise ValueError(msg)
        return v

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )

    # CORS
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of allowed CORS origins (must be explicitly configured)",
    )
    cors_origin_regex: str = Field(
        default="",
        description="Regex pattern for allowed CORS origins",
    )

    # Environment
    environment: str = Field(
        default="production",
        description="Deployment environment name (e.g. production, dev, staging)",
    )

    # API
    api_v1_prefix: str = Field(
        default="/api/v1",
        description="API version prefix",
    )
    rate_limit_per_minute: int = Field(
        default=200,
        description="Maximum API requests per minute per IP address",
        gt=0,
    )
    trusted_proxy_headers: str = Field(
        default="CF-Connecting-IP,X-Forwarded-For,X-Real-IP",
        description="Comma-separated list of HTTP headers to check for real client IP, in priority order",
    )

    @property
    def trusted_proxy_header_list(self) -> list[str]:
        """Parse trusted proxy headers string into a list."""
        return _split_csv(self.trusted_proxy_headers)

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return _split_csv(self.cors_origins)

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def max_supplementary_image_bytes(self) -> int:
        return self.max_supplementary_image_size_mb * 1024 * 1024

    def live_url(self, slug: str) -> str:
        """Public URL at which a published site is served."""
        return f"{self.public_base_url.rstrip('/')}{self.public_site_prefix}/{slug}/"


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()  # type: ignore[call-arg]
