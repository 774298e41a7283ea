"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="TRIPS_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Trip Planner API"
    api_prefix: str = "/api"
    api_base_url: str = Field(
        default="https://mytrips-api.bahar.co.il",
        description="Base URL of the trips/stops CRUD service.",
    )
    routing_base_url: Optional[str] = Field(
        default=None,
        description="Base URL of the routing service. Falls back to api_base_url when unset.",
    )
    optimize_path: str = Field(
        default="/routing/days/route-breakdown",
        description="Path of the route optimization endpoint on the routing service.",
    )
    request_timeout_seconds: float = Field(default=60.0, gt=0.0)
    connect_timeout_seconds: float = Field(default=10.0, gt=0.0)
    routing_max_retries: int = Field(
        default=0,
        ge=0,
        description="Extra attempts after transport failures or 5xx responses.",
    )
    routing_backoff_seconds: float = Field(default=1.0, ge=0.0)
    min_stops_for_optimization: int = Field(default=3, ge=2)
    baseline_average_speed_kmh: float = Field(
        default=40.0,
        gt=0.0,
        description="Average speed used to estimate the current order's duration.",
    )
    data_root: Path = Field(default=Path("data"), description="Root directory for archived runs.")
    archive_runs: bool = Field(default=False, description="Write request/outcome JSON for each attempt.")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @property
    def effective_routing_base_url(self) -> str:
        return (self.routing_base_url or self.api_base_url).rstrip("/")

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

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
