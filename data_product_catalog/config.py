"""
Configuration management for the Data Product Catalog.
"""

from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Data Product Catalog")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")

    # API
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    api_workers: int = Field(default=1)
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])

    # Storage
    database_url: str = Field(default="sqlite:///./data_product_catalog.db")
    storage_backend: Literal["sql", "memory"] = Field(
        default="sql",
        description="Which catalog storage implementation to wire in at startup.",
    )
    seed_on_startup: bool = Field(default=False)

    # Catalog behaviour
    default_changed_by: str = Field(
        default="system",
        description="Author recorded in the change log when a request names none.",
    )
    recent_changes_max_limit: int = Field(default=500, ge=1)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="json")


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get application settings."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next access re-reads the environment."""
    global _settings
    _settings = None
