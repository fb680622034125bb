# /chatform/config/settings.py

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CHATFORM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Deployment
    environment: str = Field(default="production", description="development, production or test")
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    # App Metadata & Limits
    api_version: str = "v1"
    max_sessions: int = Field(default=1000, ge=1)

    # Chat behaviour
    # Multiplier applied to every output `wait`; 0 disables artificial delays.
    wait_time_scale: float = Field(default=1.0, ge=0)

    # Comma-separated list of origins allowed by the CORS middleware.
    cors_allowed_origins: str = ""

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]

    # ---------------- Validators ---------------- #

    @field_validator("environment")
    @classmethod
    def environment_must_be_known(cls, v: str) -> str:
        v = v.lower()
        if v not in ("development", "production", "test"):
            raise ValueError("ENVIRONMENT must be one of development, production, test")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return v


settings = Settings()
