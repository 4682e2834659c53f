"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ROUTEPLANNER_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Customer Route Planner API"
    api_prefix: str = "/api"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    dataset_api_base_url: str = Field(
        default="https://customerdb.eposnorth.co.uk",
        description="Base URL of the customer record service (also hosts the OSRM proxy).",
    )
    page_size: int = Field(default=200, ge=1, le=5000)

    geocoder_base_url: str = Field(
        default="https://nominatim.openstreetmap.org",
        description="Base URL for the Nominatim free-text geocoder.",
    )
    geocoder_user_agent: str = Field(
        default="customer-route-planner/1.0",
        description="User-Agent sent to Nominatim, required by its usage policy.",
    )
    geocoder_email: Optional[str] = Field(default=None, description="Contact email passed to Nominatim.")

    osrm_base_url: str = Field(
        default="https://router.project-osrm.org",
        description="Upstream OSRM service used when the proxy path fails.",
    )
    osrm_proxy_enabled: bool = Field(
        default=True,
        description="Try the record service's /api/osrm proxy before the upstream OSRM service.",
    )
    osrm_profile: Literal["driving", "driving-hgv"] = Field(
        default="driving",
        description="OSRM profile to use when computing trips.",
    )

    request_timeout_seconds: float = Field(default=20.0, gt=0.0)
    connect_timeout_seconds: float = Field(default=10.0, gt=0.0)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:8081",
            "http://127.0.0.1:8081",
            "http://localhost:19006",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("dataset_api_base_url", "geocoder_base_url", "osrm_base_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: Any) -> str:
        return str(value).strip().rstrip("/")

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
