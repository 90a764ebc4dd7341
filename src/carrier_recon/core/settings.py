from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "sqlite+aiosqlite:///./carrier_recon.db"
    service_name: str = "carrier-recon"
    log_level: str = "INFO"

    # Linking workers (staging -> canonical orders)
    linking_worker_enabled: bool = True
    linking_providers: list[str] = Field(
        default_factory=lambda: ["european_fulfillment", "fhb", "elogy", "digistore"]
    )
    linking_interval_seconds: int = 2 * 60
    linking_batch_size: int = 100
    linking_drain_batch_size: int = 500
    linking_record_timeout_seconds: float = 30.0
    linking_phone_scan_window: int = 1000
    linking_price_tolerance: float = 1.0

    @field_validator("linking_providers", mode="before")
    @classmethod
    def _parse_provider_list(cls, value: object) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, (list, tuple, set)):
            return [str(item).strip() for item in value if str(item).strip()]
        return []

    # Staging ingestion workers (provider API -> staging tables)
    ingestion_worker_enabled: bool = False
    ingestion_providers: list[str] = Field(default_factory=list)
    ingestion_interval_seconds: int = 10 * 60
    ingestion_http_timeout_seconds: float = 15.0
    ingestion_max_pages: int = 10

    @field_validator("ingestion_providers", mode="before")
    @classmethod
    def _parse_ingestion_list(cls, value: object) -> list[str]:
        return cls._parse_provider_list(value)

    # Adaptive polling for the digital-product platform
    adaptive_business_interval_seconds: int = 5 * 60
    adaptive_off_hours_interval_seconds: int = 15 * 60
    business_hours_start_utc: int = 8
    business_hours_end_utc: int = 20

    # Worker schedule definitions
    worker_schedule_path: str = "config/workers.toml"


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
