"""Application configuration using pydantic-settings."""

import warnings

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "Rental Catalog"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"  # development, staging, production

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    request_deadline_seconds: float = 20.0

    # PMS (upstream property-management system)
    pms_api_url: str = "https://surforsound.tracksandbox.io/api"
    pms_api_key: str = ""
    pms_api_secret: str = ""
    pms_timeout_seconds: float = 10.0
    pms_transport_retries: int = 2
    pms_cache_ttl_seconds: float = 300.0
    pms_cache_max_entries: int = 1024

    # Reference data (villages)
    nodes_cache_ttl_seconds: float = 300.0

    # Search
    search_batch_size: int = 100
    search_max_candidates: int = 1000
    lookup_page_size: int = 1000
    default_page_size: int = 20
    featured_limit: int = 10
    similar_limit: int = 4
    property_image_limit: int = 10

    # Booking policy
    minimum_stay_floor: int = 3

    # MCP Server
    mcp_port: int = 8001

    # Frontend
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    @model_validator(mode="after")
    def _validate_pms_credentials(self) -> "Settings":
        """Reject missing PMS credentials in production and warn in development."""
        if not self.pms_api_key or not self.pms_api_secret:
            if self.environment == "production":
                raise ValueError("PMS_API_KEY and PMS_API_SECRET must be set in production.")
            warnings.warn(
                "PMS credentials are not configured; upstream requests will be rejected. "
                "Set PMS_API_KEY and PMS_API_SECRET in your .env file.",
                UserWarning,
                stacklevel=1,
            )
        return self


settings = Settings()
