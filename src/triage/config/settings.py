"""Application settings loaded from environment."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strongly typed settings for the triage engine."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    pghost: Optional[str] = Field(default=None, alias="PGHOST")
    pgport: int = Field(default=5432, alias="PGPORT")
    pguser: Optional[str] = Field(default=None, alias="PGUSER")
    pgpassword: Optional[str] = Field(default=None, alias="PGPASSWORD")
    pgdatabase: Optional[str] = Field(default=None, alias="PGDATABASE")

    # Reverse geocoder (Nominatim compatible)
    geocoder_base_url: str = Field(
        default="https://nominatim.openstreetmap.org",
        alias="GEOCODER_BASE_URL",
    )
    geocoder_user_agent: str = Field(
        default="issue-triage-engine/0.1",
        alias="GEOCODER_USER_AGENT",
    )
    geocoder_timeout_seconds: float = Field(default=5.0, alias="GEOCODER_TIMEOUT_SECONDS")
    geocoder_max_retries: int = Field(default=1, alias="GEOCODER_MAX_RETRIES")

    # Clustering
    cluster_radius_meters: float = Field(default=50.0, alias="CLUSTER_RADIUS_METERS")
    cluster_query_timeout_seconds: float = Field(
        default=5.0, alias="CLUSTER_QUERY_TIMEOUT_SECONDS"
    )

    # Location classifier
    major_road_radius_meters: float = Field(default=100.0, alias="MAJOR_ROAD_RADIUS_METERS")
    location_vocabulary_path: Optional[str] = Field(
        default=None, alias="TRIAGE_LOCATION_VOCABULARY_PATH"
    )

    # Categories
    categories: list[str] = Field(
        default_factory=lambda: ["pothole", "garbage", "waterleak", "others"],
        alias="TRIAGE_CATEGORIES",
    )
    fallback_category: str = Field(default="others", alias="TRIAGE_FALLBACK_CATEGORY")

    # Runtime
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    run_env: str = Field(default="local", alias="RUN_ENV")

    def get_database_url(self) -> str:
        """Return a usable database URL or raise."""
        if self.database_url:
            return self.database_url

        if all([self.pghost, self.pguser, self.pgpassword, self.pgdatabase]):
            return (
                "postgresql://"
                f"{self.pguser}:{self.pgpassword}@{self.pghost}:{self.pgport}/"
                f"{self.pgdatabase}"
            )

        raise ValueError("DATABASE_URL or PG* env vars must be set")
