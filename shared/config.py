"""
Shared configuration management for the NASA Mission Control access layer.
"""

from typing import List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        populate_by_name=True,
    )

    # Environment
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("APP_ENV", "NODE_ENV", "environment"),
    )
    log_level: str = Field(default="info")
    log_format: str = Field(default="json")

    # Upstream NASA Open APIs
    nasa_api_key: str = Field(default="DEMO_KEY")
    nasa_api_base_url: str = Field(default="https://api.nasa.gov")
    nasa_api_timeout_seconds: float = Field(default=30.0)
    user_agent: str = Field(default="NASA-Mission-Control-Dashboard/1.0.0")

    # Caching
    cache_ttl_seconds: int = Field(default=3600)
    cache_check_period_seconds: int = Field(default=600)
    image_cache_ttl_seconds: int = Field(default=86400)
    image_cache_check_period_seconds: int = Field(default=3600)

    # Rate limiting
    rate_limit_window_ms: int = Field(default=15 * 60 * 1000)
    rate_limit_max_requests: int = Field(default=100)
    # Honour X-Forwarded-For / X-Real-IP only when running behind a trusted proxy
    trust_proxy: bool = Field(default=False)

    # CORS
    allowed_origins: str = Field(default="http://localhost:3000,http://localhost:5173")

    @property
    def cors_origins(self) -> List[str]:
        """Allowed CORS origins parsed from the comma-separated setting."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str = "gateway"
    port: int = Field(default=5000)
    host: str = "0.0.0.0"


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
