"""Settings management for FollowDesk.

This module provides centralized configuration management for the FollowDesk
application using Pydantic Settings with environment variable support and
validation.

The settings are organized into logical groups:
- APISettings: Core API configuration
- SupabaseSettings: Hosted Postgres (PostgREST) connection
- StorageSettings: S3-compatible object storage and upload limits

Example:
    Basic usage:
        from followdesk.core.settings import settings

        if settings.debug:
            print(f"Running {settings.project_name} v{settings.version}")

    Environment variables:
        API_DEBUG=true
        SUPABASE_URL=https://project.supabase.co
        SUPABASE_ANON_KEY=your_key_here
        STORAGE_BUCKET_NAME=user-uploads
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class APISettings(BaseSettings):
    """API server configuration settings.

    Attributes:
        version: Application version string.
        prefix: API URL prefix for the owner routes.
        project_name: Human-readable project name.
        debug: Enable debug mode with verbose logging.
        host: Server bind address.
        port: Server bind port (1-65535).
        cors_origins: List of allowed CORS origins.
        log_dir: Directory receiving rotated JSON log files.

    Environment Variables:
        All attributes can be configured via environment variables with
        the 'API_' prefix (e.g., API_DEBUG, API_PORT).
    """

    version: str = Field(default="1.0.0", description="Application version string")
    prefix: str = Field(default="/api/owner", description="API URL prefix")
    project_name: str = Field(
        default="FollowDesk Admin API", description="Human-readable project name"
    )
    debug: bool = Field(
        default=False, description="Enable debug mode with verbose logging"
    )
    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(default=3001, ge=1, le=65535, description="Server bind port")
    cors_origins: List[str] = Field(
        default=["*"], description="List of allowed CORS origins"
    )
    log_dir: str = Field(default="logs", description="Directory for log files")

    model_config = SettingsConfigDict(env_prefix="API_")


class SupabaseSettings(BaseSettings):
    """Supabase project configuration settings.

    Attributes:
        url: Project URL, e.g. https://abc.supabase.co.
        anon_key: API key used by the PostgREST client.

    Environment Variables:
        SUPABASE_URL: Project URL.
        SUPABASE_ANON_KEY: Project API key.
    """

    url: str = Field(default="", description="Supabase project URL")
    anon_key: str = Field(default="", description="Supabase API key")

    @property
    def is_configured(self) -> bool:
        """Check if both the project URL and key are provided."""
        return bool(self.url and self.anon_key)

    model_config = SettingsConfigDict(env_prefix="SUPABASE_")


class StorageSettings(BaseSettings):
    """Object storage configuration settings.

    Supabase Storage exposes an S3-compatible endpoint, so uploads go
    through a regular boto3 S3 client.

    Attributes:
        endpoint: S3 endpoint URL. Derived from the Supabase URL when empty.
        region: Region name passed to the S3 client.
        access_key_id: S3 access key ID.
        secret_access_key: S3 secret access key.
        bucket_name: Bucket receiving profile images.
        public_base_url: Base URL for public object links. Derived from the
            Supabase URL when empty.
        max_image_bytes: Largest accepted profile image.
        allowed_image_types: Accepted MIME types for profile images.
        image_prefix: Key prefix for profile images.
        cache_control_seconds: Cache lifetime set on uploaded objects.

    Environment Variables:
        STORAGE_ENDPOINT, STORAGE_REGION, STORAGE_ACCESS_KEY_ID,
        STORAGE_SECRET_ACCESS_KEY, STORAGE_BUCKET_NAME, STORAGE_PUBLIC_BASE_URL,
        STORAGE_MAX_IMAGE_BYTES, STORAGE_ALLOWED_IMAGE_TYPES,
        STORAGE_IMAGE_PREFIX, STORAGE_CACHE_CONTROL_SECONDS.
    """

    endpoint: str = Field(default="", description="S3 endpoint URL")
    region: str = Field(default="us-east-1", description="S3 region name")
    access_key_id: str = Field(default="", description="S3 access key ID")
    secret_access_key: str = Field(default="", description="S3 secret access key")
    bucket_name: str = Field(default="user-uploads", description="Upload bucket")
    public_base_url: str = Field(
        default="", description="Base URL for public object links"
    )
    max_image_bytes: int = Field(
        default=5 * 1024 * 1024, ge=1, description="Maximum profile image size"
    )
    allowed_image_types: List[str] = Field(
        default=["image/jpeg", "image/jpg", "image/png", "image/webp"],
        description="Accepted profile image MIME types",
    )
    image_prefix: str = Field(
        default="profile-images", description="Key prefix for profile images"
    )
    cache_control_seconds: int = Field(
        default=3600, ge=0, description="Cache lifetime of uploaded objects"
    )

    @property
    def is_configured(self) -> bool:
        """Check if S3 credentials and a bucket are provided."""
        return all([self.access_key_id, self.secret_access_key, self.bucket_name])

    model_config = SettingsConfigDict(env_prefix="STORAGE_")


class Settings(BaseSettings):
    """Composite settings container with nested configuration groups.

    Attributes:
        api: API server configuration settings.
        supabase: Supabase project settings.
        storage: Object storage and upload settings.

    Example:
        from followdesk.core.settings import settings

        print(f"Server running on {settings.api.host}:{settings.api.port}")
    """

    api: APISettings = Field(default_factory=APISettings)
    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    @property
    def debug(self) -> bool:
        """Get debug mode status from API settings."""
        return self.api.debug

    @property
    def version(self) -> str:
        """Get application version from API settings."""
        return self.api.version

    @property
    def prefix(self) -> str:
        """Get API URL prefix from API settings."""
        return self.api.prefix

    @property
    def project_name(self) -> str:
        """Get human-readable project name from API settings."""
        return self.api.project_name

    @property
    def cors_origins(self) -> List[str]:
        """Get CORS allowed origins from API settings."""
        return self.api.cors_origins

    @property
    def storage_endpoint(self) -> str:
        """S3 endpoint, falling back to the Supabase storage S3 gateway."""
        if self.storage.endpoint:
            return self.storage.endpoint
        if self.supabase.url:
            return f"{self.supabase.url.rstrip('/')}/storage/v1/s3"
        return ""

    @property
    def storage_backend(self) -> Optional[str]:
        """Upload path in use: "s3", "supabase" or None when uploads are off."""
        if self.storage.is_configured and self.storage_endpoint:
            return "s3"
        if self.supabase.is_configured:
            return "supabase"
        return None

    @property
    def storage_public_base_url(self) -> Optional[str]:
        """Base URL for public objects in the upload bucket."""
        if self.storage.public_base_url:
            return self.storage.public_base_url.rstrip("/")
        if self.supabase.url:
            return (
                f"{self.supabase.url.rstrip('/')}/storage/v1/object/public/"
                f"{self.storage.bucket_name}"
            )
        return None

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance with environment variables loaded.

    Returns:
        Fully configured Settings instance with all nested configurations
        loaded from environment variables and defaults.
    """
    from dotenv import load_dotenv

    load_dotenv()
    return Settings()


settings = get_settings()
