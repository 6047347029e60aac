"""Application configuration management."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "VM On/Off"
    debug: bool = False
    log_level: str = "INFO"

    # Providers to register, keyed by name
    enabled_providers: list[Literal["azure"]] = ["azure"]

    # Azure service principal (client credentials flow)
    azure_client_id: str | None = None
    azure_client_secret: str | None = None
    azure_tenant_id: str | None = None
    azure_subscription_id: str | None = None

    # Azure endpoints
    azure_scopes: list[str] = ["https://management.azure.com/.default"]
    azure_login_url: str = "https://login.microsoftonline.com"
    azure_management_url: str = "https://management.azure.com"
    azure_compute_api_version: str = "2021-07-01"

    # Renew cached tokens when they expire within this window (seconds).
    # 0 renews only once the expiry instant has passed.
    token_refresh_buffer_seconds: int = 300


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
