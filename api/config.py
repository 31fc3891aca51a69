"""
Configuration management for the media storage service.

All settings are read from the environment (or a .env file) once, at startup.
"""
from functools import lru_cache
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MiB = 1024 * 1024


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields in .env file
    )

    # Application
    VERSION: str = "1.0.0"
    DEBUG: bool = False

    # API Configuration
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 3000
    API_WORKERS: int = 4
    API_RELOAD: bool = False
    API_LOG_LEVEL: str = "info"

    # Security
    ADMIN_API_KEYS: str = ""  # Comma-separated list of admin API keys
    CORS_ORIGINS: str = "http://localhost:3000"  # Comma-separated

    # Monitoring
    ENABLE_METRICS: bool = True

    # Local storage
    UPLOAD_DIR: str = "./uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_UPLOAD_SIZE: int = 500 * MiB
    MAX_THUMBNAIL_SIZE: int = 10 * MiB

    # Cloud storage
    ENABLE_CLOUD_STORAGE: bool = False
    S3_BUCKET_NAME: Optional[str] = None
    AWS_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None

    # MinIO compatible storage
    USE_MINIO: bool = False
    MINIO_ENDPOINT: Optional[str] = None
    MINIO_ACCESS_KEY: Optional[str] = None
    MINIO_SECRET_KEY: Optional[str] = None

    # CDN
    CLOUDFRONT_DOMAIN: Optional[str] = None

    @field_validator("UPLOAD_URL_PREFIX")
    @classmethod
    def normalize_url_prefix(cls, v: str) -> str:
        return "/" + v.strip("/")

    @field_validator("MINIO_ENDPOINT")
    @classmethod
    def normalize_minio_endpoint(cls, v: Optional[str]) -> Optional[str]:
        if v and not v.startswith(("http://", "https://")):
            return f"http://{v}"
        return v

    @field_validator("CLOUDFRONT_DOMAIN")
    @classmethod
    def strip_cdn_scheme(cls, v: Optional[str]) -> Optional[str]:
        if v:
            return v.split("://", 1)[-1].rstrip("/")
        return v

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def admin_api_keys(self) -> List[str]:
        """Parse admin API keys."""
        return [key.strip() for key in self.ADMIN_API_KEYS.split(",") if key.strip()]

    @property
    def local_storage_config(self) -> dict:
        """Backend configuration for the local filesystem backend."""
        return {
            "type": "local",
            "name": "local",
            "base_path": self.UPLOAD_DIR,
            "url_prefix": self.UPLOAD_URL_PREFIX,
            "max_file_size": self.MAX_UPLOAD_SIZE,
            "max_thumbnail_size": self.MAX_THUMBNAIL_SIZE,
        }

    @property
    def cloud_storage_config(self) -> dict:
        """Backend configuration for the object store backend."""
        config = {
            "type": "minio" if self.USE_MINIO else "s3",
            "name": "cloud",
            "enabled": self.ENABLE_CLOUD_STORAGE,
            "bucket": self.S3_BUCKET_NAME,
            "region": self.AWS_REGION,
            "access_key": self.AWS_ACCESS_KEY_ID,
            "secret_key": self.AWS_SECRET_ACCESS_KEY,
            "cloudfront_domain": self.CLOUDFRONT_DOMAIN,
            "max_file_size": self.MAX_UPLOAD_SIZE,
            "max_thumbnail_size": self.MAX_THUMBNAIL_SIZE,
        }
        if self.USE_MINIO:
            config.update(
                endpoint_url=self.MINIO_ENDPOINT,
                access_key=self.MINIO_ACCESS_KEY,
                secret_key=self.MINIO_SECRET_KEY,
            )
        return config


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
