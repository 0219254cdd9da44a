"""
Configuration management for ClimateGuard API
"""
import os
from typing import List, Optional
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

load_dotenv()


def _env(name: str, default=None):
    return os.getenv(name.upper(), default)


class Settings(BaseModel):
    """Application settings with environment variable support"""

    model_config = ConfigDict(validate_default=True)

    # API Configuration
    api_title: str = "ClimateGuard API"
    api_description: str = "City climate monitoring: heatwave, air quality, flood and water quality readings with alerts"
    api_version: str = "1.0.0"
    debug: bool = Field(default_factory=lambda: _env("debug", False))

    # Database Configuration
    mongodb_uri: str = Field(default_factory=lambda: _env("mongodb_uri", "mongodb://localhost:27017"))
    mongodb_db: str = Field(default_factory=lambda: _env("mongodb_db", "climateguard"))
    mongodb_timeout_ms: int = Field(default_factory=lambda: _env("mongodb_timeout_ms", 3000))
    mongodb_connect_attempts: int = Field(default_factory=lambda: _env("mongodb_connect_attempts", 3))

    # Redis Configuration
    redis_url: str = Field(default_factory=lambda: _env("redis_url", "redis://localhost:6379"))

    # Security Configuration
    api_key: Optional[str] = Field(default_factory=lambda: _env("api_key"))
    cors_origins: List[str] = Field(default_factory=lambda: _env("cors_origins", ["http://localhost:5173"]))
    trusted_hosts: List[str] = Field(default_factory=lambda: _env("trusted_hosts", ["localhost", "127.0.0.1"]))

    # Rate Limiting
    rate_limit_requests: int = 100
    rate_limit_window: int = 900

    # External APIs
    openweather_api_key: Optional[str] = Field(default_factory=lambda: _env("openweather_api_key"))
    openweather_url: str = "https://api.openweathermap.org"
    geocode_country: str = Field(default_factory=lambda: _env("geocode_country", "IN"))
    http_timeout_seconds: float = Field(default_factory=lambda: _env("http_timeout_seconds", 10.0))

    # Ingestion
    scheduler_enabled: bool = Field(default_factory=lambda: _env("scheduler_enabled", True))
    ingestion_city_delay_seconds: float = Field(default_factory=lambda: _env("ingestion_city_delay_seconds", 0.5))
    heatwave_alert_hours: int = 24
    air_quality_alert_hours: int = 12

    # Logging Configuration
    log_level: str = Field(default_factory=lambda: _env("log_level", "INFO"))

    @field_validator('cors_origins', 'trusted_hosts', mode='before')
    @classmethod
    def parse_list(cls, v):
        if isinstance(v, str):
            return [item.strip() for item in v.split(',') if item.strip()]
        return v

    @field_validator('debug', 'scheduler_enabled', mode='before')
    @classmethod
    def parse_bool(cls, v):
        if isinstance(v, str):
            return v.lower() in ('true', '1', 'yes', 'on')
        return v


# Global settings instance
settings = Settings()
