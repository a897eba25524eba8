"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="JOGROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Jogging Route Generator API"
    api_prefix: str = "/api"
    log_level: Literal["critical", "error", "warning", "info", "debug"] = "info"

    directions_provider: Literal["google", "osrm"] = Field(
        default="google",
        description="Directions backend used to fetch candidate routes.",
    )
    google_maps_api_key: Optional[str] = Field(
        default=None,
        description="API key for the Google Directions and Geocoding web services.",
    )
    google_directions_url: str = "https://maps.googleapis.com/maps/api/directions/json"
    google_geocode_url: str = "https://maps.googleapis.com/maps/api/geocode/json"
    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for an OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: str = Field(default="foot", description="OSRM profile used for walking routes.")

    provider_timeout_seconds: float = Field(default=10.0, gt=0.0)
    synthesis_timeout_seconds: float = Field(default=45.0, gt=0.0)
    max_parallel_trials: int = Field(default=4, ge=1, le=16)

    loop_trials: int = Field(default=12, ge=1)
    loop_waypoint_count: int = Field(default=2, ge=1, le=8)
    extension_trials: int = Field(default=10, ge=1)
    tolerance_low_ratio: float = Field(default=0.7, gt=0.0)
    tolerance_high_ratio: float = Field(default=1.3, gt=0.0)
    random_seed: Optional[int] = Field(
        default=None,
        description="Seed for waypoint sampling. Leave unset for non-deterministic routes.",
    )
    early_exit: bool = Field(
        default=False,
        description="Stop a trial batch once a candidate lands inside the tolerance band.",
    )

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            return tuple(item.strip() for item in value.split(",") if item.strip())
        return tuple()

    @field_validator("osrm_base_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.rstrip("/") or None
        return value

    @model_validator(mode="after")
    def _check_tolerance_band(self) -> "Settings":
        if self.tolerance_low_ratio > self.tolerance_high_ratio:
            raise ValueError("tolerance_low_ratio must not exceed tolerance_high_ratio")
        return self


settings = Settings()
