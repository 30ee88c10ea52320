"""
Shared configuration management for the Car Registry services.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="CARREG_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local", description="Deployment environment name")
    log_level: str = Field(default="info", description="Root log level")

    # Durable storage
    data_dir: str = Field(default="data", description="Directory holding the JSON collections")
    vehicles_file: str = Field(default="cars.json", description="Collection file for vehicle records")

    # Redis cache
    redis_enabled: bool = Field(default=True, description="Attempt to connect to Redis at startup")
    redis_host: str = Field(default="localhost")
    redis_port: int = Field(default=6379)
    redis_password: Optional[str] = Field(default=None)
    redis_db: int = Field(default=0)
    redis_prefix: str = Field(default="carrag", description="Namespace prepended to every cache key")
    cache_ttl_seconds: int = Field(default=86400, description="Expiration applied to vehicle entries")
    cache_timeout_seconds: float = Field(default=5.0, description="Bound on connect and background writes")

    # HTTP
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Origins allowed by the CORS middleware"
    )


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
