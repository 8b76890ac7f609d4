from functools import lru_cache

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "hubspot-pdf-chooser"
    app_env: str = "dev"
    hubspot_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("PDFC_HUBSPOT_API_KEY", "HUBSPOT_API_KEY"),
    )
    hubspot_base_url: str = "https://api.hubapi.com"
    page_size: int = Field(default=100, ge=1, le=100)
    default_limit: int = Field(default=500, gt=0)
    upstream_timeout_seconds: float | None = None
    cache_ttl_seconds: int = 24 * 60 * 60
    client_fetch_limit: int = Field(default=1000, gt=0)
    cache_db_path: str = "data/cache.db"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_prefix="PDFC_", populate_by_name=True)


@lru_cache
def get_settings() -> Settings:
    return Settings()
